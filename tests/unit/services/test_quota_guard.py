"""Unit tests for QuotaGuard

Test coverage includes:

1. Admission within the window
   - Ensures creators are admitted until the ceiling is reached.
   - Confirms the ceiling is per creator and anonymous callers share one bucket.

2. Window boundaries
   - Validates a creation leaves the window exactly one window length later.

3. Store failures
   - Confirms DataStoreError surfaces as StoreUnavailableError.
"""

from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock

import pytest

from linkshortener.constants import Event
from linkshortener.dao.base import LinkBaseDAO
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import QuotaExceededError, StoreUnavailableError
from linkshortener.models import ANONYMOUS, IdentifiedCreator, LinkModel
from linkshortener.services import QuotaGuard
from linkshortener.utils.config import LinkSettings


NOW = datetime(2025, 10, 15, 12, 0, tzinfo=UTC)
ALICE = IdentifiedCreator('alice')
BOB = IdentifiedCreator('bob')


def seed(dao, creator, count, start=NOW):
    for i in range(count):
        dao.insert(
            LinkModel(
                shortcode=f'{creator.key.replace(":", "-")}-{start.timestamp():.0f}-{i}',
                target=f'https://example.com/{i}',
                creator=creator,
                created_at=start + timedelta(minutes=i),
            )
        )


# -------------------------------
# 1. Admission within the window
# -------------------------------


def test_admits_until_ceiling(dao, quota_guard):
    seed(dao, ALICE, 4)
    quota_guard.admit(ALICE, NOW + timedelta(minutes=10))

    seed(dao, ALICE, 1, start=NOW + timedelta(minutes=5))
    with pytest.raises(QuotaExceededError) as exc_info:
        quota_guard.admit(ALICE, NOW + timedelta(minutes=10))

    assert exc_info.value.retry_after == 3600
    assert exc_info.value.error_code == 'link:quota_exceeded_error'


def test_ceiling_is_per_creator(dao, quota_guard):
    seed(dao, ALICE, 5)
    quota_guard.admit(BOB, NOW + timedelta(minutes=10))


def test_anonymous_callers_share_one_bucket(dao):
    guard = QuotaGuard(dao, LinkSettings(anonymous_quota_limit=2))
    seed(dao, ANONYMOUS, 2)

    with pytest.raises(QuotaExceededError):
        guard.admit(ANONYMOUS, NOW + timedelta(minutes=5))
    guard.admit(ALICE, NOW + timedelta(minutes=5))


def test_zero_ceiling_disables_creation(dao):
    guard = QuotaGuard(dao, LinkSettings(anonymous_quota_limit=0))
    with pytest.raises(QuotaExceededError):
        guard.admit(ANONYMOUS, NOW)


def test_rejection_is_logged(dao, quota_guard, caplog):
    seed(dao, ALICE, 5)
    with caplog.at_level('INFO'), pytest.raises(QuotaExceededError):
        quota_guard.admit(ALICE, NOW + timedelta(minutes=10))

    record = next(r for r in caplog.records if getattr(r, 'event', None) == Event.QUOTA_EXCEEDED)
    assert record.creator == 'user:alice'
    assert record.limit == 5


# -------------------------------
# 2. Window boundaries
# -------------------------------


def test_creation_leaves_window_after_window_length(dao, quota_guard):
    seed(dao, ALICE, 1)  # created at NOW
    seed(dao, ALICE, 4, start=NOW + timedelta(minutes=30))

    with pytest.raises(QuotaExceededError):
        quota_guard.admit(ALICE, NOW + timedelta(minutes=59, seconds=59))
    quota_guard.admit(ALICE, NOW + timedelta(minutes=60))


def test_count_uses_window_start(settings):
    dao = MagicMock(spec=LinkBaseDAO)
    dao.count_created_since.return_value = 0
    guard = QuotaGuard(dao, settings)

    guard.admit(ALICE, NOW)

    dao.count_created_since.assert_called_once_with(ALICE, NOW - timedelta(hours=1))


# -------------------------------
# 3. Store failures
# -------------------------------


def test_store_failure_surfaces_as_unavailable(settings):
    dao = MagicMock(spec=LinkBaseDAO)
    dao.count_created_since.side_effect = DataStoreError("Can't connect to Redis at redis.test:6379/0.")

    with pytest.raises(StoreUnavailableError):
        QuotaGuard(dao, settings).admit(ALICE, NOW)
