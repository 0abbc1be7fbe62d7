"""Abstract base class for short link data access objects (DAOs).

This class establishes a consistent contract for all link store implementations,
regardless of the underlying storage mechanism (e.g., Redis, DynamoDB, PostgreSQL).

Responsibilities:
    - Insert LinkModel records with an atomic "insert if code absent" guarantee.
    - Count clicks atomically, without losing concurrent increments.
    - Index links by creator (listing, quota window) and by normalized URL (dedup).
    - Remove expired records on demand (sweep).
    - Standardize error handling across multiple data store implementations.

Only insert() and increment_clicks() need to be atomic across concurrent
requests. Every other operation tolerates eventual consistency.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from linkshortener.models import LinkModel, IdentifiedCreator
        >>> from linkshortener.dao.redis import LinkRedisDAO

        >>> dao = LinkRedisDAO(...)

        >>> link = LinkModel(
        ...     shortcode='a1b2c3',
        ...     target='https://example.com/blog/article-123',
        ...     creator=IdentifiedCreator('user123'),
        ... )
        >>> dao.insert(link)

        >>> dao.get('a1b2c3').target
        'https://example.com/blog/article-123'

        >>> dao.increment_clicks('a1b2c3')
        1
"""

from abc import ABC, abstractmethod
from datetime import datetime

from linkshortener.models import Creator, LinkModel
from linkshortener.dao.exceptions import ShortURLNotFoundError


class LinkBaseDAO(ABC):
    """Interface for short link data access objects (DAOs).

    Methods:
        insert(link: LinkModel) -> LinkBaseDAO:
            Atomically insert a LinkModel if its short code is free.
            Raises ShortURLAlreadyExistsError if the short code is taken.

        get(shortcode: str) -> LinkModel:
            Retrieve a LinkModel regardless of its active flag or expiry.
            Raises ShortURLNotFoundError if the entry does not exist.

        find_by_url(creator: Creator, target: str) -> LinkModel | None:
            Retrieve the link a creator made for a normalized URL, if any.

        increment_clicks(shortcode: str) -> int:
            Atomically increment the click counter and return the new value.
            Raises ShortURLNotFoundError if the entry does not exist.

        deactivate(shortcode: str, creator: Creator | None) -> LinkModel:
            Clear the active flag. `creator=None` skips the ownership check.
            Raises ShortURLNotFoundError or ShortURLNotOwnedError.

        delete(shortcode: str, creator: Creator | None) -> LinkModel:
            Remove the record and its index entries. `creator=None` skips the
            ownership check. Raises ShortURLNotFoundError or ShortURLNotOwnedError.

        count_created_since(creator: Creator, since: datetime) -> int:
            Count records of a creator created strictly after `since`.

        list_by_creator(creator: Creator, offset: int, limit: int) -> tuple[list[LinkModel], int]:
            Page through a creator's links, newest first, with the total count.

        purge_expired(now: datetime | None) -> int:
            Remove records whose expiry has passed and return how many were removed.

        close() -> None:
            Release the underlying connection resources.

    All methods raise DataStoreError on connection or timeout failures.

    Subclassing:
        Datastore-specific implementations (e.g., LinkRedisDAO) must extend
        this class and implement all abstract methods.
    """

    @abstractmethod
    def insert(self, link: LinkModel, **kwargs) -> 'LinkBaseDAO':
        """Insert a new LinkModel into the data store.

        Two concurrent inserts of the same short code never both succeed:
        exactly one wins and the other raises ShortURLAlreadyExistsError.

        Args:
            link (LinkModel):
                The LinkModel instance to be inserted.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            LinkBaseDAO: self (for method chaining)

        Raises:
            ShortURLAlreadyExistsError:
                If a LinkModel with the same short code already exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def get(self, shortcode: str, **kwargs) -> LinkModel:
        """Retrieve a LinkModel by its short code.

        The caller decides what inactive or expired records mean.

        Raises:
            ShortURLNotFoundError:
                If no LinkModel with the given short code exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def find_by_url(self, creator: Creator, target: str, **kwargs) -> LinkModel | None:
        """Retrieve the most recent link a creator made for a normalized URL.

        Anonymous creators share one pool keyed by the anonymous sentinel.
        """
        pass

    @abstractmethod
    def increment_clicks(self, shortcode: str, **kwargs) -> int:
        """Atomically add one click and return the new click count.

        Raises:
            ShortURLNotFoundError:
                If no LinkModel with the given short code exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def deactivate(self, shortcode: str, creator: Creator | None, **kwargs) -> LinkModel:
        pass

    @abstractmethod
    def delete(self, shortcode: str, creator: Creator | None, **kwargs) -> LinkModel:
        pass

    @abstractmethod
    def count_created_since(self, creator: Creator, since: datetime, **kwargs) -> int:
        pass

    @abstractmethod
    def list_by_creator(self, creator: Creator, offset: int, limit: int, **kwargs) -> tuple[list[LinkModel], int]:
        pass

    @abstractmethod
    def purge_expired(self, now: datetime | None = None, **kwargs) -> int:
        """Remove records whose expiry is at or before `now`.

        Idempotent. Resolution never depends on the sweep having run: expiry
        is always checked when a link is read.

        Returns:
            int: Number of records removed.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self) -> 'LinkBaseDAO':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def find_active(self, shortcode: str, **kwargs) -> LinkModel:
        """Retrieve a link only if its active flag is set.

        Expiry is not checked here. Callers compare `expires_at` themselves.

        Raises:
            ShortURLNotFoundError:
                If the link doesn't exist or has been deactivated.
        """
        link = self.get(shortcode, **kwargs)
        if not link.active:
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' is not active.")
        return link
