import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.dao.redis import LinkRedisDAO
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import LinkError
from linkshortener.services import LinkService
from linkshortener.utils import load_config, link_settings, app_prefix, guarantee_500_response
from linkshortener.utils.runtime import get_creator, is_admin
from linkshortener.lambdas.responses import response_json, response_400, response_401, error_response, link_body
from linkshortener.lambdas.delete_link.constants import MISSING_SHORTCODE, MISSING_CREDENTIALS


logger = logging.getLogger(__name__)


def hard_delete_requested(event: LambdaEvent) -> bool:
    params = event.get('queryStringParameters') or {}
    return str(params.get('hard', '')).lower() in ('1', 'true', 'yes')


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle DELETE /links/{shortcode}

    By default the link is deactivated (soft delete): it stops resolving but
    keeps its record and click count. `?hard=true` removes the record for good.
    Only the link's creator or a member of the 'admin' Cognito group may do either.

    HTTP responses:
        200: Link deactivated or deleted
            message, deleted, link
        400: Missing shortcode in path parameters
        401: Anonymous caller
        403: Link belongs to another creator
        404: Unknown short link
        503: Link store unavailable
    """
    # 0- Get application's config
    app_config = load_config('delete_link')
    redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}
    settings = link_settings(app_config)

    # 1- Resolve the requester
    requester = get_creator(event)
    as_admin = is_admin(event)
    if requester.anonymous and not as_admin:
        logger.info('Anonymous caller. Responding with 401.', extra={'event': MISSING_CREDENTIALS})
        return response_401(message="Unauthorized: missing 'sub' in JWT claims", error_code=MISSING_CREDENTIALS)

    # 2- Extract shortcode from request's path
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        logger.info('Missing "shortcode" in path. Responding with 400.', extra={'event': MISSING_SHORTCODE})
        return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)

    # 3- Deactivate or delete the link
    hard = hard_delete_requested(event)
    try:
        with LinkRedisDAO(**redis_config, prefix=app_prefix()) as dao:
            service = LinkService(dao, settings)
            operation = service.delete if hard else service.deactivate
            link = operation(shortcode, requester, as_admin=as_admin)
    except (LinkError, DataStoreError) as error:
        return error_response(error, shortcode=shortcode, requester=requester.key)

    logger.info('Responding with 200.', extra={'shortcode': shortcode, 'hard': hard, 'admin': as_admin})
    return response_json(
        200,
        {
            'message': f"Short link '{shortcode}' {'deleted' if hard else 'deactivated'}",
            'deleted': hard,
            'link': link_body(link, event),
        },
    )
