import json
import logging

from linkshortener.types import LambdaEvent, LambdaContext
from linkshortener.dao.redis import LinkRedisDAO
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import StoreUnavailableError
from linkshortener.services import LinkService
from linkshortener.utils import load_config, link_settings, app_prefix
from linkshortener.lambdas.purge_expired_links.constants import SUCCESS, ERROR


logger = logging.getLogger(__name__)


def response_success(*, purged: int) -> str:
    return json.dumps(
        {
            'status': SUCCESS,
            'purged': purged,
            'message': f'Purged {purged} expired short links',
        }
    )


def response_error(*, error: Exception) -> str:
    return json.dumps(
        {
            'status': ERROR,
            'message': 'Failed to purge expired short links',
            'reason': str(error),
            'error': error.__class__.__name__,
        }
    )


def lambda_handler(event: LambdaEvent, context: LambdaContext) -> str:
    """Remove expired short links (EventBridge schedule).

    Resolution checks expiry on every read, so this sweep only reclaims
    storage and index entries. Running it twice is harmless.

    Diagnostic responses (NOT valid HTTP responses):
        `success`:
            status: success
            purged: <number of removed links>
            message: Purged <n> expired short links
        `error`:
            status: error
            message: Failed to purge expired short links
            reason: <reason>
            error: <error class name> (e.g. StoreUnavailableError, DataStoreError)
    """
    app_config = load_config('purge_expired_links')
    redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}
    settings = link_settings(app_config)

    try:
        with LinkRedisDAO(**redis_config, prefix=app_prefix()) as dao:
            purged = LinkService(dao, settings).purge_expired()
    except (StoreUnavailableError, DataStoreError) as error:
        logger.exception(
            'Failed to purge expired short links.',
            extra={'event': ERROR, 'reason': str(error), 'error': error.__class__.__name__},
        )
        return response_error(error=error)

    logger.info('Purged %s expired short links.', purged, extra={'event': SUCCESS, 'purged': purged})
    return response_success(purged=purged)
