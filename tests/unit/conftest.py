import threading
from dataclasses import replace
from datetime import datetime, UTC

import pytest

from linkshortener.models import Creator, LinkModel
from linkshortener.dao.base import LinkBaseDAO
from linkshortener.dao.exceptions import ShortURLAlreadyExistsError, ShortURLNotFoundError, ShortURLNotOwnedError
from linkshortener.services import LinkService, QuotaGuard
from linkshortener.utils.config import LinkSettings


class InMemoryLinkDAO(LinkBaseDAO):
    """Thread-safe LinkBaseDAO keeping links in a dict.

    One lock serializes every operation, which gives the same guarantees as
    the Redis DAO: insert-if-absent and click increments are atomic.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.links: dict[str, LinkModel] = {}
        self.closed = False

    def insert(self, link, **kwargs):
        with self._lock:
            if link.shortcode in self.links:
                raise ShortURLAlreadyExistsError(f"Short URL with code '{link.shortcode}' already exists.")
            self.links[link.shortcode] = link
        return self

    def get(self, shortcode, **kwargs):
        with self._lock:
            link = self.links.get(shortcode)
        if link is None:
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.")
        return link

    def find_by_url(self, creator, target, **kwargs):
        with self._lock:
            matches = [l for l in self.links.values() if l.creator == creator and l.target == target]
        return max(matches, key=lambda l: l.created_at, default=None)

    def increment_clicks(self, shortcode, **kwargs):
        with self._lock:
            link = self._owned(shortcode, None)
            self.links[shortcode] = replace(link, clicks=link.clicks + 1)
            return link.clicks + 1

    def deactivate(self, shortcode, creator, **kwargs):
        with self._lock:
            link = replace(self._owned(shortcode, creator), active=False)
            self.links[shortcode] = link
            return link

    def delete(self, shortcode, creator, **kwargs):
        with self._lock:
            link = self._owned(shortcode, creator)
            del self.links[shortcode]
            return link

    def count_created_since(self, creator, since, **kwargs):
        with self._lock:
            return sum(1 for l in self.links.values() if l.creator == creator and l.created_at > since)

    def list_by_creator(self, creator, offset, limit, **kwargs):
        with self._lock:
            links = sorted(
                (l for l in self.links.values() if l.creator == creator),
                key=lambda l: l.created_at,
                reverse=True,
            )
        return links[offset : offset + limit], len(links)

    def purge_expired(self, now=None, **kwargs):
        now = now or datetime.now(UTC)
        with self._lock:
            expired = [code for code, link in self.links.items() if link.is_expired(now)]
            for code in expired:
                del self.links[code]
        return len(expired)

    def close(self):
        self.closed = True

    def _owned(self, shortcode: str, creator: Creator | None) -> LinkModel:
        link = self.links.get(shortcode)
        if link is None:
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.")
        if creator is not None and link.creator != creator:
            raise ShortURLNotOwnedError(f"Short URL with code '{shortcode}' belongs to another creator.")
        return link


@pytest.fixture
def dao() -> InMemoryLinkDAO:
    return InMemoryLinkDAO()


@pytest.fixture
def settings() -> LinkSettings:
    return LinkSettings()


@pytest.fixture
def quota_guard(dao: InMemoryLinkDAO, settings: LinkSettings) -> QuotaGuard:
    return QuotaGuard(dao, settings)


@pytest.fixture
def service(dao: InMemoryLinkDAO, settings: LinkSettings) -> LinkService:
    return LinkService(dao, settings)
