"""Data Access Object (DAO) implementation for managing short links in Redis

This module provides a Redis-based implementation of LinkBaseDAO for CRUD-like
operations with LinkModel instances.

Redis layout (all keys namespaced by the DAO prefix):
    links:<code>                          HASH    the link record
    expiry:links                          ZSET    code -> expires_at epoch (sweep index)
    users:<creator>:links                 ZSET    code -> created_at epoch (listing, quota)
    users:<creator>:urls:<xxh64(url)>     STRING  code of the creator's link for a URL (dedup)

Responsibilities:
    - Insert links with an atomic "insert if code absent" guarantee (WATCH/MULTI);
    - Count clicks with a server-side atomic increment;
    - Maintain the creator, URL and expiry indexes;
    - Sweep expired records;
    - Raise appropriate DAO exceptions.

Classes:
    LinkRedisDAO:
        DAO for storing and retrieving LinkModel in a Redis datastore.

Example:
    >>> from linkshortener.models import LinkModel, IdentifiedCreator
    >>> from linkshortener.dao.redis import LinkRedisDAO

    >>> dao = LinkRedisDAO(prefix="app:dev")
    >>> link = LinkModel(shortcode="abc123", target="https://example.com/page",
    ...                  creator=IdentifiedCreator("user123"))
    >>> dao.insert(link)
    <LinkRedisDAO>
    >>> dao.increment_clicks("abc123")
    1
    >>> dao.get("abc123").clicks
    1
"""

import logging
from datetime import datetime, UTC

import redis
from beartype import beartype

from linkshortener.models import Creator, LinkModel, creator_from_key
from linkshortener.dao.base import LinkBaseDAO
from linkshortener.dao.redis.mixins import RedisClientMixin
from linkshortener.dao.redis.helpers import handle_redis_connection_error
from linkshortener.dao.exceptions import ShortURLAlreadyExistsError, ShortURLNotFoundError, ShortURLNotOwnedError


logger = logging.getLogger(__name__)


# KEYS[1] = link key
# Returns nil when the link doesn't exist, so a purged link is never resurrected
# as a bare {clicks: 1} hash.
INCREMENT_CLICKS_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return false
end
return redis.call('HINCRBY', KEYS[1], 'clicks', 1)
"""

# KEYS[1] = link key, ARGV[1] = requesting creator key ('' skips the ownership check)
# Returns 0 when missing, -1 when owned by someone else, 1 when deactivated.
DEACTIVATE_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return 0
end
if ARGV[1] ~= '' and redis.call('HGET', KEYS[1], 'creator') ~= ARGV[1] then
    return -1
end
redis.call('HSET', KEYS[1], 'active', 0)
return 1
"""


def _to_hash(link: LinkModel) -> dict[str, str | int]:
    mapping = {
        'target': link.target,
        'creator': link.creator.key,
        'clicks': link.clicks,
        'created_at': link.created_at.isoformat(),
        'expires_at': link.expires_at.isoformat() if link.expires_at is not None else '',
        'active': int(link.active),
        'custom_alias': int(link.custom_alias),
    }
    if link.title is not None:
        mapping['title'] = link.title
    if link.description is not None:
        mapping['description'] = link.description
    return mapping


def _from_hash(shortcode: str, data: dict[str, str]) -> LinkModel:
    expires_at = data.get('expires_at') or None
    return LinkModel(
        shortcode=shortcode,
        target=data['target'],
        creator=creator_from_key(data['creator']),
        clicks=int(data.get('clicks', 0)),
        created_at=datetime.fromisoformat(data['created_at']),
        expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        active=data.get('active', '1') == '1',
        custom_alias=data.get('custom_alias', '0') == '1',
        title=data.get('title'),
        description=data.get('description'),
    )


class LinkRedisDAO(RedisClientMixin, LinkBaseDAO):
    """Redis-based Data Access Object (DAO) for managing short links

    This class implements the LinkBaseDAO interface using Redis as a data store.

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    NOTE:
        Link keys carry no Redis-native TTL. The service checks expiry on every
        read and purge_expired() removes expired records, so an expired link
        reports "expired" (not "not found") until the sweep runs.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._increment_clicks = self.redis.register_script(INCREMENT_CLICKS_SCRIPT)
        self._deactivate = self.redis.register_script(DEACTIVATE_SCRIPT)

    @handle_redis_connection_error
    @beartype
    def insert(self, link: LinkModel, **kwargs) -> 'LinkRedisDAO':
        """Insert a link record and its index entries

        The record and all index entries are written in one MULTI/EXEC block,
        guarded by WATCH on the link key.

        Args:
            link (LinkModel):
                LinkModel instance to store.
            **kwargs:
                Optional keyword arguments (for future use).

        Returns:
            LinkRedisDAO: self (for method chaining)

        Raises:
            ShortURLAlreadyExistsError:
                If a link with the same shortcode already exists.
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        link_key = self.keys.link_key(link.shortcode)
        user_links_key = self.keys.user_links_key(link.creator.key)
        user_url_key = self.keys.user_url_key(link.creator.key, link.target)

        # NOTE: EXISTS followed by a plain write would let two concurrent requests
        #       both see "absent" and both write, the second silently overwriting
        #       the first:
        #
        #       (request 1): EXISTS <app>:links:<code>  => 0
        #       (request 2): EXISTS <app>:links:<code>  => 0
        #       (request 1): HSET <app>:links:<code> ...
        #       (request 2): HSET <app>:links:<code> ...   => request 1's link is lost
        #
        #       WATCH makes EXEC fail for the loser when the key changed after WATCH,
        #       so exactly one of the racing inserts succeeds.
        with self.redis.pipeline(transaction=True) as pipe:
            try:
                pipe.watch(link_key)
                if pipe.exists(link_key):
                    raise ShortURLAlreadyExistsError(f"Short URL with code '{link.shortcode}' already exists.")

                pipe.multi()
                pipe.hset(link_key, mapping=_to_hash(link))
                pipe.zadd(user_links_key, {link.shortcode: link.created_at.timestamp()})
                pipe.set(user_url_key, link.shortcode)
                if link.expires_at is not None:
                    pipe.zadd(self.keys.link_expiry_key(), {link.shortcode: link.expires_at.timestamp()})
                pipe.execute()
            except redis.exceptions.WatchError as e:
                raise ShortURLAlreadyExistsError(f"Short URL with code '{link.shortcode}' already exists.") from e
        return self

    @handle_redis_connection_error
    @beartype
    def get(self, shortcode: str, **kwargs) -> LinkModel:
        """Retrieve a stored link by shortcode

        Raises:
            ShortURLNotFoundError:
                If the link does not exist in Redis.
            DataStoreError:
                If Redis connectivity issues occur.

        Example:
            >>> dao.get('abc123')
            LinkModel(shortcode='abc123', target='https://example.com', ...)
        """
        data = self.redis.hgetall(self.keys.link_key(shortcode))
        if not data:
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.")
        return _from_hash(shortcode, data)

    @handle_redis_connection_error
    @beartype
    def find_by_url(self, creator: Creator, target: str, **kwargs) -> LinkModel | None:
        shortcode = self.redis.get(self.keys.user_url_key(creator.key, target))
        if shortcode is None:
            return None

        try:
            link = self.get(shortcode)
        except ShortURLNotFoundError:
            # Index entry outlived its record (deleted or purged concurrently)
            return None

        if link.target != target or link.creator != creator:
            return None
        return link

    @handle_redis_connection_error
    @beartype
    def increment_clicks(self, shortcode: str, **kwargs) -> int:
        """Atomically add one click to a link

        HINCRBY runs server-side, so concurrent resolutions of the same link
        never lose an increment.

        Returns:
            int: the new click count.

        Raises:
            ShortURLNotFoundError:
                If no link with the given short code exists.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        clicks = self._increment_clicks(keys=[self.keys.link_key(shortcode)])
        if clicks is None:
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.")
        return int(clicks)

    @handle_redis_connection_error
    @beartype
    def deactivate(self, shortcode: str, creator: Creator | None, **kwargs) -> LinkModel:
        """Clear the active flag of a link

        Args:
            shortcode (str):
                The link's short code.
            creator (Creator | None):
                Requesting creator; must own the link. None skips the check
                (administrative callers).

        Raises:
            ShortURLNotFoundError:
                If no link with the given short code exists.
            ShortURLNotOwnedError:
                If the link belongs to another creator.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        result = self._deactivate(
            keys=[self.keys.link_key(shortcode)],
            args=['' if creator is None else creator.key],
        )
        if int(result) == 0:
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.")
        if int(result) == -1:
            raise ShortURLNotOwnedError(f"Short URL with code '{shortcode}' belongs to another creator.")
        return self.get(shortcode)

    @handle_redis_connection_error
    @beartype
    def delete(self, shortcode: str, creator: Creator | None, **kwargs) -> LinkModel:
        """Remove a link and its index entries

        Raises:
            ShortURLNotFoundError:
                If no link with the given short code exists.
            ShortURLNotOwnedError:
                If the link belongs to another creator.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        link = self.get(shortcode)
        if creator is not None and link.creator != creator:
            raise ShortURLNotOwnedError(f"Short URL with code '{shortcode}' belongs to another creator.")

        self._remove([link])
        return link

    @handle_redis_connection_error
    @beartype
    def count_created_since(self, creator: Creator, since: datetime, **kwargs) -> int:
        """Count a creator's links created strictly after `since`"""
        return int(self.redis.zcount(self.keys.user_links_key(creator.key), f'({since.timestamp()}', '+inf'))

    @handle_redis_connection_error
    @beartype
    def list_by_creator(self, creator: Creator, offset: int, limit: int, **kwargs) -> tuple[list[LinkModel], int]:
        """Page through a creator's links, newest first

        Returns:
            tuple[list[LinkModel], int]: the page of links and the creator's total link count.
        """
        if offset < 0 or limit < 1:
            raise ValueError(f'Offset must be >= 0 and limit >= 1 (given values: offset={offset}, limit={limit}).')

        user_links_key = self.keys.user_links_key(creator.key)
        with self.redis.pipeline(transaction=False) as pipe:
            pipe.zrevrange(user_links_key, offset, offset + limit - 1)
            pipe.zcard(user_links_key)
            shortcodes, total = pipe.execute()

        return self._get_many(shortcodes), int(total)

    @handle_redis_connection_error
    @beartype
    def purge_expired(self, now: datetime | None = None, batch_size: int = 500, **kwargs) -> int:
        """Remove every link whose expiry is at or before `now`

        Safe to run concurrently with reads and with other sweeps: a read racing
        the sweep observes the record either before or after removal.

        Returns:
            int: number of link records removed.
        """
        now_ts = (now or datetime.now(UTC)).timestamp()
        expiry_key = self.keys.link_expiry_key()
        purged = 0

        while True:
            shortcodes = self.redis.zrangebyscore(expiry_key, '-inf', now_ts, start=0, num=batch_size)
            if not shortcodes:
                break

            links = self._get_many(shortcodes)
            # Index entries whose record is already gone only need the sweep entry removed
            self.redis.zrem(expiry_key, *shortcodes)
            purged += self._remove(links)

            if len(shortcodes) < batch_size:
                break

        if purged:
            logger.info('Purged expired links.', extra={'purged': purged})
        return purged

    def _get_many(self, shortcodes: list[str]) -> list[LinkModel]:
        if not shortcodes:
            return []
        with self.redis.pipeline(transaction=False) as pipe:
            for shortcode in shortcodes:
                pipe.hgetall(self.keys.link_key(shortcode))
            records = pipe.execute()
        return [_from_hash(code, data) for code, data in zip(shortcodes, records) if data]

    def _remove(self, links: list[LinkModel]) -> int:
        """Delete link records together with their index entries"""
        if not links:
            return 0

        url_keys = [self.keys.user_url_key(link.creator.key, link.target) for link in links]
        with self.redis.pipeline(transaction=False) as pipe:
            for url_key in url_keys:
                pipe.get(url_key)
            url_owners = pipe.execute()

        delete_replies, queued = [], 0
        with self.redis.pipeline(transaction=True) as pipe:
            for link, url_key, url_owner in zip(links, url_keys, url_owners):
                delete_replies.append(queued)
                pipe.delete(self.keys.link_key(link.shortcode))
                pipe.zrem(self.keys.user_links_key(link.creator.key), link.shortcode)
                pipe.zrem(self.keys.link_expiry_key(), link.shortcode)
                queued += 3
                # A newer link for the same URL may own the dedup entry by now
                if url_owner == link.shortcode:
                    pipe.delete(url_key)
                    queued += 1
            results = pipe.execute()

        return sum(int(results[i] or 0) for i in delete_replies)
