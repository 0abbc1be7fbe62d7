"""Per-creator link creation quota.

The guard counts the links a creator created within a trailing window and
rejects a new creation once the count reaches the creator's ceiling. The
count comes from the link store's creator index, so there is no separate
counter to drift.

Anonymous callers cannot be told apart, so they all draw from one shared
bucket with its own ceiling.
"""

import logging
from datetime import datetime, UTC

from linkshortener.constants import Event
from linkshortener.dao.base import LinkBaseDAO
from linkshortener.exceptions import QuotaExceededError
from linkshortener.models import Creator
from linkshortener.services.helpers import handle_data_store_error
from linkshortener.utils.config import LinkSettings


logger = logging.getLogger(__name__)


class QuotaGuard:
    """Admit or reject link creation requests per creator.

    Example:
        >>> guard = QuotaGuard(dao, LinkSettings(quota_limit=5))
        >>> guard.admit(IdentifiedCreator('user123'))   # 5 times
        >>> guard.admit(IdentifiedCreator('user123'))
        Traceback (most recent call last):
        ...
        QuotaExceededError: Link creation quota of 5 per 3600s reached.
    """

    def __init__(self, dao: LinkBaseDAO, settings: LinkSettings | None = None):
        self.dao = dao
        self.settings = settings or LinkSettings()

    def limit_for(self, creator: Creator) -> int:
        if creator.anonymous:
            return self.settings.anonymous_quota_limit
        return self.settings.quota_limit

    @handle_data_store_error
    def used(self, creator: Creator, now: datetime | None = None) -> int:
        """Number of links the creator created within the current window."""
        now = now or datetime.now(UTC)
        return self.dao.count_created_since(creator, now - self.settings.quota_window)

    def admit(self, creator: Creator, now: datetime | None = None) -> None:
        """Raise QuotaExceededError if the creator has no creations left.

        Raises:
            QuotaExceededError:
                If the creator reached the ceiling. `retry_after` holds the
                window length in seconds.

            StoreUnavailableError:
                If the link store can't be reached.
        """
        limit = self.limit_for(creator)
        used = self.used(creator, now)
        if used >= limit:
            logger.info(
                'Link creation quota exceeded.',
                extra={'event': Event.QUOTA_EXCEEDED, 'creator': creator.key, 'used': used, 'limit': limit},
            )
            raise QuotaExceededError(
                f'Link creation quota of {limit} per {self.settings.quota_window_seconds}s reached.',
                retry_after=self.settings.quota_window_seconds,
            )
