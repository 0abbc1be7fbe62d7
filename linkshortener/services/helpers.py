import functools
import logging
from collections.abc import Callable

from linkshortener.constants import Event
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import StoreUnavailableError


logger = logging.getLogger(__name__)


def handle_data_store_error[F: Callable](method: F) -> F:
    """Surface data store outages as StoreUnavailableError.

    DAOs raise DataStoreError for connection and timeout failures. Callers of
    the service layer only ever see StoreUnavailableError, which maps to a
    "service degraded" response.

    Example:
        >>> class LinkService:
        ...     @handle_data_store_error
        ...     def resolve(self, shortcode):
        ...         return self.dao.find_active(shortcode).target
    """

    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DataStoreError as e:
            logger.error(
                'Link store unavailable.',
                extra={'event': Event.STORE_UNAVAILABLE, 'operation': method.__name__},
            )
            raise StoreUnavailableError(str(e)) from e

    return wrapper
