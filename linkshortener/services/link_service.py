"""Short link lifecycle: create, resolve, deactivate, delete, list and sweep.

LinkService is the single entry point the Lambda handlers talk to. It
combines the URL normalizer, the short code generator, the quota guard and
a LinkBaseDAO implementation, and translates DAO errors into the
LinkError taxonomy from `linkshortener.exceptions`.

Create runs these steps in order:
    1. Quota check for the creator.
    2. Custom alias format, deny-list and availability check (if given).
    3. URL normalization.
    4. Dedup lookup by (creator, normalized URL). An active, unexpired hit
       is returned as-is with `existing=True`.
    5. Title and description validation.
    6. Insert with a bounded short code generation loop.

Example:
    >>> with LinkRedisDAO(**redis_config, prefix=app_prefix()) as dao:
    ...     service = LinkService(dao, LinkSettings())
    ...     created = service.create(IdentifiedCreator('user123'), 'Example.com/a#top')
    ...     created.link.target
    'https://example.com/a'
    ...     service.resolve(created.link.shortcode)
    'https://example.com/a'
"""

import logging
from datetime import datetime, UTC

from linkshortener.constants import Event, Limits, ShortCode
from linkshortener.dao.base import LinkBaseDAO
from linkshortener.dao.exceptions import (
    DataStoreError,
    ShortURLAlreadyExistsError,
    ShortURLNotFoundError,
    ShortURLNotOwnedError,
)
from linkshortener.exceptions import (
    AliasTakenError,
    CodeSpaceExhaustedError,
    InvalidLinkMetadataError,
    LinkExpiredError,
    LinkNotFoundError,
    NotOwnerError,
    StoreUnavailableError,
)
from linkshortener.models import Creator, CreatedLink, LinkModel, LinkPage
from linkshortener.services.helpers import handle_data_store_error
from linkshortener.services.quota_guard import QuotaGuard
from linkshortener.utils.config import LinkSettings
from linkshortener.utils.normalizer import normalize_url
from linkshortener.utils.shortener import generate_shortcode, validate_alias


logger = logging.getLogger(__name__)


def _clean_text(value: str | None, name: str, max_length: int) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidLinkMetadataError(f'{name} must be a string.')
    value = value.strip()
    if len(value) > max_length:
        raise InvalidLinkMetadataError(f'{name} must be at most {max_length} characters long.')
    return value or None


class LinkService:
    """Apply the short link lifecycle rules on top of a link store.

    Attributes:
        dao (LinkBaseDAO):
            Link store.

        settings (LinkSettings):
            TTL, quota, retry and pagination settings.

        quota_guard (QuotaGuard):
            Creation quota check. Built from `dao` and `settings` if omitted.
    """

    def __init__(self, dao: LinkBaseDAO, settings: LinkSettings | None = None, quota_guard: QuotaGuard | None = None):
        self.dao = dao
        self.settings = settings or LinkSettings()
        self.quota_guard = quota_guard or QuotaGuard(dao, self.settings)

    @handle_data_store_error
    def create(
        self,
        creator: Creator,
        target_url: str,
        custom_alias: str | None = None,
        title: str | None = None,
        description: str | None = None,
    ) -> CreatedLink:
        """Create a short link, or return the creator's existing one for the URL.

        Raises:
            QuotaExceededError: The creator reached the creation quota.
            AliasBadFormatError: The alias doesn't match the short code format.
            AliasReservedError: The alias is on the reserved deny-list.
            AliasTakenError: The alias is already in use.
            InvalidURLError: The destination URL can't be normalized.
            InvalidLinkMetadataError: The title or description is too long.
            CodeSpaceExhaustedError: No free code was found within the attempt budget.
            StoreUnavailableError: The link store can't be reached.
        """
        now = datetime.now(UTC)
        self.quota_guard.admit(creator, now)

        if custom_alias is not None:
            validate_alias(custom_alias)
            if self._exists(custom_alias):
                raise AliasTakenError(f"Alias '{custom_alias}' is already taken.")

        target = normalize_url(target_url)

        existing = self.dao.find_by_url(creator, target)
        if existing is not None and existing.active and not existing.is_expired(now):
            logger.info(
                'Existing short link found for this URL.',
                extra={'event': Event.LINK_EXISTS, 'shortcode': existing.shortcode, 'creator': creator.key},
            )
            return CreatedLink(link=existing, existing=True)

        title = _clean_text(title, 'title', Limits.TITLE_LENGTH)
        description = _clean_text(description, 'description', Limits.DESCRIPTION_LENGTH)
        ttl = self.settings.ttl

        def build(shortcode: str) -> LinkModel:
            return LinkModel(
                shortcode=shortcode,
                target=target,
                creator=creator,
                created_at=now,
                expires_at=None if ttl is None else now + ttl,
                custom_alias=custom_alias is not None,
                title=title,
                description=description,
            )

        if custom_alias is not None:
            try:
                link = self._insert(build(custom_alias))
            except ShortURLAlreadyExistsError as e:
                raise AliasTakenError(f"Alias '{custom_alias}' is already taken.") from e
        else:
            link = self._insert_generated(build)

        logger.info(
            'Short link created.',
            extra={
                'event': Event.LINK_CREATED,
                'shortcode': link.shortcode,
                'creator': creator.key,
                'custom_alias': link.custom_alias,
            },
        )
        return CreatedLink(link=link)

    @handle_data_store_error
    def resolve(self, shortcode: str) -> str:
        """Return the destination URL for a short code and count the click.

        A failure to count the click is logged and doesn't fail the redirect.

        Raises:
            LinkNotFoundError: The code is unknown or the link was deactivated.
            LinkExpiredError: The link is past its expiry.
            StoreUnavailableError: The link store can't be reached.
        """
        try:
            link = self.dao.find_active(shortcode)
        except ShortURLNotFoundError as e:
            logger.info('Short link not found.', extra={'event': Event.LINK_NOT_FOUND, 'shortcode': shortcode})
            raise LinkNotFoundError(f"Short URL with code '{shortcode}' not found.") from e

        if link.is_expired():
            logger.info('Short link expired.', extra={'event': Event.LINK_EXPIRED, 'shortcode': shortcode})
            raise LinkExpiredError(f"Short URL with code '{shortcode}' has expired.")

        # Click accounting must never block a redirect
        try:
            self.dao.increment_clicks(shortcode)
        except Exception:
            logger.exception(
                'Failed to count click.',
                extra={'event': Event.CLICK_COUNT_FAILED, 'shortcode': shortcode},
            )

        logger.info('Short link resolved.', extra={'event': Event.REDIRECT_SUCCESS, 'shortcode': shortcode})
        return link.target

    @handle_data_store_error
    def deactivate(self, shortcode: str, requester: Creator, as_admin: bool = False) -> LinkModel:
        """Soft-delete a link. Only its creator or an admin may do so.

        Deactivating an inactive link is a no-op that returns the record.
        """
        link = self._owned(self.dao.deactivate, shortcode, requester, as_admin)
        logger.info(
            'Short link deactivated.',
            extra={'event': Event.LINK_DEACTIVATED, 'shortcode': shortcode, 'requester': requester.key},
        )
        return link

    @handle_data_store_error
    def delete(self, shortcode: str, requester: Creator, as_admin: bool = False) -> LinkModel:
        """Remove a link record and its index entries for good."""
        link = self._owned(self.dao.delete, shortcode, requester, as_admin)
        logger.info(
            'Short link deleted.',
            extra={'event': Event.LINK_DELETED, 'shortcode': shortcode, 'requester': requester.key},
        )
        return link

    @handle_data_store_error
    def stats(self, shortcode: str, requester: Creator, as_admin: bool = False) -> LinkModel:
        """Return the full link record, clicks included, to its creator or an admin."""
        try:
            link = self.dao.get(shortcode)
        except ShortURLNotFoundError as e:
            raise LinkNotFoundError(f"Short URL with code '{shortcode}' not found.") from e
        if not as_admin and (requester.anonymous or link.creator != requester):
            raise NotOwnerError(f"Short URL with code '{shortcode}' belongs to another creator.")
        return link

    @handle_data_store_error
    def list_links(self, creator: Creator, page: int = 1, page_size: int | None = None) -> LinkPage:
        """Page through a creator's links, newest first.

        `page` is 1-based. `page_size` is clamped to [1, max_page_size].
        """
        if page < 1:
            raise ValueError(f'page must be >= 1 (given value: {page}).')
        page_size = page_size or self.settings.page_size
        page_size = max(1, min(page_size, self.settings.max_page_size))

        links, total = self.dao.list_by_creator(creator, offset=(page - 1) * page_size, limit=page_size)
        logger.debug(
            'Listed short links.',
            extra={'event': Event.LINKS_LISTED, 'creator': creator.key, 'page': page, 'count': len(links)},
        )
        return LinkPage(links=links, page=page, page_size=page_size, total=total)

    @handle_data_store_error
    def purge_expired(self, now: datetime | None = None) -> int:
        """Remove every link whose expiry is at or before `now`."""
        purged = self.dao.purge_expired(now or datetime.now(UTC))
        logger.info('Expired short links purged.', extra={'event': Event.LINKS_PURGED, 'purged': purged})
        return purged

    def _exists(self, shortcode: str) -> bool:
        try:
            self.dao.get(shortcode)
        except ShortURLNotFoundError:
            return False
        return True

    def _insert(self, link: LinkModel) -> LinkModel:
        """Insert a link, retrying transient store errors a bounded number of times."""
        for attempt in range(self.settings.store_retries + 1):
            try:
                self.dao.insert(link)
                return link
            except ShortURLAlreadyExistsError:
                # A failed attempt may have committed before its reply was lost
                stored = self._committed(link) if attempt else None
                if stored is None:
                    raise
                logger.info(
                    'Insert committed before the store error, keeping it.',
                    extra={'shortcode': link.shortcode, 'attempt': attempt + 1},
                )
                return stored
            except DataStoreError as e:
                if attempt == self.settings.store_retries:
                    raise StoreUnavailableError(str(e)) from e
                logger.warning(
                    'Transient store error on insert, retrying.',
                    extra={'event': Event.STORE_UNAVAILABLE, 'shortcode': link.shortcode, 'attempt': attempt + 1},
                )

    def _committed(self, link: LinkModel) -> LinkModel | None:
        """Return the stored record if it is `link` itself, written by an earlier attempt."""
        try:
            stored = self.dao.get(link.shortcode)
        except ShortURLNotFoundError:
            return None
        if (stored.creator, stored.target, stored.created_at) != (link.creator, link.target, link.created_at):
            return None
        return stored

    def _insert_generated(self, build) -> LinkModel:
        # Codes grow by one character every second collision
        for attempt in range(self.settings.max_insert_attempts):
            length = min(self.settings.code_length + attempt // 2, ShortCode.MAX_LENGTH)
            link = build(generate_shortcode(length))
            try:
                return self._insert(link)
            except ShortURLAlreadyExistsError:
                logger.warning(
                    'Short code collision.',
                    extra={'event': Event.CODE_COLLISION, 'shortcode': link.shortcode, 'attempt': attempt + 1},
                )

        logger.critical(
            'Could not find a free short code.',
            extra={'event': Event.CODE_SPACE_EXHAUSTED, 'attempts': self.settings.max_insert_attempts},
        )
        raise CodeSpaceExhaustedError(
            f'No free short code found after {self.settings.max_insert_attempts} attempts.'
        )

    def _owned(self, operation, shortcode: str, requester: Creator, as_admin: bool) -> LinkModel:
        if not as_admin and requester.anonymous:
            raise NotOwnerError('Anonymous callers cannot modify short links.')
        try:
            return operation(shortcode, None if as_admin else requester)
        except ShortURLNotFoundError as e:
            raise LinkNotFoundError(f"Short URL with code '{shortcode}' not found.") from e
        except ShortURLNotOwnedError as e:
            logger.info(
                'Short link belongs to another creator.',
                extra={'event': Event.NOT_OWNER, 'shortcode': shortcode, 'requester': requester.key},
            )
            raise NotOwnerError(str(e)) from e
