import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.dao.redis import LinkRedisDAO
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import LinkError
from linkshortener.services import LinkService
from linkshortener.utils import load_config, link_settings, app_prefix, guarantee_500_response
from linkshortener.utils.runtime import get_creator, is_admin
from linkshortener.lambdas.responses import response_json, response_400, response_401, error_response, link_body
from linkshortener.lambdas.link_stats.constants import MISSING_SHORTCODE, MISSING_CREDENTIALS


logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle GET /links/{shortcode}: the full record, click count included.

    HTTP responses:
        200: Link record
        400: Missing shortcode in path parameters
        401: Anonymous caller
        403: Link belongs to another creator
        404: Unknown short link
        503: Link store unavailable
    """
    app_config = load_config('link_stats')
    redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}
    settings = link_settings(app_config)

    requester = get_creator(event)
    as_admin = is_admin(event)
    if requester.anonymous and not as_admin:
        logger.info('Anonymous caller. Responding with 401.', extra={'event': MISSING_CREDENTIALS})
        return response_401(message="Unauthorized: missing 'sub' in JWT claims", error_code=MISSING_CREDENTIALS)

    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        logger.info('Missing "shortcode" in path. Responding with 400.', extra={'event': MISSING_SHORTCODE})
        return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)

    try:
        with LinkRedisDAO(**redis_config, prefix=app_prefix()) as dao:
            link = LinkService(dao, settings).stats(shortcode, requester, as_admin=as_admin)
    except (LinkError, DataStoreError) as error:
        return error_response(error, shortcode=shortcode, requester=requester.key)

    logger.info('Responding with 200.', extra={'shortcode': shortcode})
    return response_json(200, link_body(link, event))
