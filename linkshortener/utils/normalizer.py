"""URL normalization utility

Canonicalize destination URLs so equal destinations compare equal for
duplicate collapsing.

Rules:
    - Surrounding whitespace is trimmed.
    - A missing scheme defaults to `https://`.
    - Scheme and host are lower-cased. Path and query keep their case.
    - The fragment is dropped.
    - Only http/https URLs with a host are accepted.

Functions:
    normalize_url(raw: str) -> str:
        Return the canonical form of a URL or raise InvalidURLError.

Example:
    >>> from linkshortener.utils import normalize_url
    >>> normalize_url('example.com/x')
    'https://example.com/x'
    >>> normalize_url('HTTPS://EXAMPLE.com/x#top')
    'https://example.com/x'
"""

import re
from urllib.parse import urlsplit, urlunsplit

from linkshortener.exceptions import InvalidURLError


ALLOWED_SCHEMES = frozenset({'http', 'https'})

_SCHEME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9+.-]*://')
_HOST_RE = re.compile(r'^(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)*[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$')


def _valid_host(hostname: str) -> bool:
    # IPv6 literals come back from urlsplit without brackets
    if ':' in hostname:
        return True
    # a bare label such as "localhost" has no top-level domain
    return '.' in hostname and bool(_HOST_RE.match(hostname))


def normalize_url(raw: str) -> str:
    """Canonicalize a destination URL.

    Args:
        raw (str):
            URL as supplied by the creator, with or without a scheme.

    Returns:
        str:
            Normalized absolute URL (scheme + host + path + query).

    Raises:
        InvalidURLError:
            If the URL is empty, uses a scheme other than http/https,
            has no host, or can't be parsed.
    """
    if not isinstance(raw, str):
        raise InvalidURLError(f'URL must be a string (given type: {type(raw)}).')

    url = raw.strip()
    if not url:
        raise InvalidURLError('URL must be a non-empty string.')
    if any(ch.isspace() for ch in url):
        raise InvalidURLError(f'URL must not contain whitespace: {url!r}.')
    if not _SCHEME_RE.match(url):
        # "mailto:x" or "javascript:x" carry a scheme without "//"; reject rather than prefixing
        scheme, sep, rest = url.partition(':')
        if sep and scheme.isalpha() and scheme.lower() not in ALLOWED_SCHEMES and not rest[:1].isdigit():
            raise InvalidURLError(f'Unsupported URL scheme {scheme.lower()!r}.')
        url = f'https://{url}'

    try:
        components = urlsplit(url)
        hostname = components.hostname
        port = components.port
    except ValueError as e:
        raise InvalidURLError(f'Malformed URL {raw!r}.') from e

    scheme = components.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidURLError(f'Unsupported URL scheme {scheme!r}.')
    if not hostname or not _valid_host(hostname):
        raise InvalidURLError(f'URL {raw!r} has no resolvable host.')

    # Rebuild netloc with a lower-cased host while keeping credentials and port as given
    host = f'[{hostname}]' if ':' in hostname else hostname
    netloc = host if port is None else f'{host}:{port}'
    userinfo, at, _ = components.netloc.rpartition('@')
    if at:
        netloc = f'{userinfo}@{netloc}'

    return urlunsplit((scheme, netloc, components.path, components.query, ''))
