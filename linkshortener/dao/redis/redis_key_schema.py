import functools
from collections.abc import Callable

import xxhash


__all__ = ['RedisKeySchema']  # hide internal decorator prefix_key from imports


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class RedisKeySchema:
    """Provide standardized Redis keys for storing short links.

    An optional prefix can be provided to namespace all generated keys.
    It is highly encouraged to set a custom prefix for each app and environment,
    e.g. "linkshortener:prod" or "linkshortener:dev".

    Creators are addressed by their storage key ('user:<id>' or 'anonymous').
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def link_key(self, shortcode: str) -> str:
        return f'links:{shortcode}'

    @prefix_key
    def link_expiry_key(self) -> str:
        # Outside 'links:' so no short code can address the sweep index
        return 'expiry:links'

    @prefix_key
    def user_links_key(self, creator_key: str) -> str:
        return f'users:{creator_key}:links'

    @prefix_key
    def user_url_key(self, creator_key: str, target: str) -> str:
        # Fixed-length key for arbitrarily long URLs; the stored record's URL is
        # compared again after lookup, so digest collisions never merge links.
        digest = xxhash.xxh64_hexdigest(target.encode('utf-8'))
        return f'users:{creator_key}:urls:{digest}'
