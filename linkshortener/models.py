from dataclasses import dataclass, field
from datetime import datetime, UTC

from linkshortener.constants import ANONYMOUS_CREATOR_KEY


@dataclass(frozen=True)
class IdentifiedCreator:
    """Creator resolved to an authenticated user id."""

    user_id: str

    def __post_init__(self):
        if not self.user_id:
            raise ValueError('Identified creators need a non-empty user id.')

    @property
    def key(self) -> str:
        return f'user:{self.user_id}'

    @property
    def anonymous(self) -> bool:
        return False


@dataclass(frozen=True)
class AnonymousCreator:
    """Creator without an identity. All anonymous callers share one bucket."""

    @property
    def key(self) -> str:
        return ANONYMOUS_CREATOR_KEY

    @property
    def anonymous(self) -> bool:
        return True


ANONYMOUS = AnonymousCreator()

Creator = IdentifiedCreator | AnonymousCreator


def creator_from_key(key: str) -> Creator:
    """Rebuild a Creator from its storage key.

    Example:
        >>> creator_from_key('user:42')
        IdentifiedCreator(user_id='42')
        >>> creator_from_key('anonymous')
        AnonymousCreator()
    """
    if key == ANONYMOUS_CREATOR_KEY:
        return ANONYMOUS
    if key.startswith('user:'):
        return IdentifiedCreator(user_id=key.removeprefix('user:'))
    raise ValueError(f'Unknown creator key {key!r}.')


# fmt: off
@dataclass(frozen=True)
class LinkModel:
    """Represent a short code to destination URL mapping.

    Example:
        >>> from datetime import datetime, timedelta, UTC
        >>> link = LinkModel(
        ...     shortcode='abc123',
        ...     target='https://example.com/article/123',
        ...     creator=IdentifiedCreator('user123'),
        ...     expires_at=datetime.now(UTC) + timedelta(days=5),
        ... )
        >>> link.clicks
        0
        >>> link.is_expired()
        False
    """
    shortcode: str                      # Unique short identifier, primary lookup key
    target: str                         # Normalized destination URL
    creator: Creator = ANONYMOUS        # Owner, used for quota, dedup and "my links"
    clicks: int = 0                     # Resolution counter, never decreases
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime | None = None  # None means the link never expires
    active: bool = True                 # Soft-delete flag, independent of expiry
    custom_alias: bool = False          # True when the creator chose the code
    title: str | None = None
    description: str | None = None
# fmt: on

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.now(UTC))


@dataclass(frozen=True)
class CreatedLink:
    """Outcome of a create request.

    `existing` is True when an active link for the same (creator, URL) pair
    was returned instead of creating a new one.
    """

    link: LinkModel
    existing: bool = False


@dataclass(frozen=True)
class LinkPage:
    """One page of a creator's links, newest first."""

    links: list[LinkModel]
    page: int
    page_size: int
    total: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.page_size) if self.page_size else 0
