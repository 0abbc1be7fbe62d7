import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.dao.redis import LinkRedisDAO
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import LinkError
from linkshortener.services import LinkService
from linkshortener.utils import load_config, link_settings, app_prefix, guarantee_500_response
from linkshortener.utils.runtime import get_creator
from linkshortener.lambdas.responses import response_json, response_400, response_401, error_response, link_body
from linkshortener.lambdas.list_links.constants import INVALID_PAGINATION, MISSING_CREDENTIALS


logger = logging.getLogger(__name__)


def parse_pagination(event: LambdaEvent) -> tuple[int, int | None]:
    """Read `page` and `limit` query parameters.

    Raises:
        ValueError: If either parameter isn't a positive integer.
    """
    params = event.get('queryStringParameters') or {}
    page = int(params.get('page') or 1)
    limit = params.get('limit')
    limit = int(limit) if limit else None
    if page < 1 or (limit is not None and limit < 1):
        raise ValueError('page and limit must be positive integers')
    return page, limit


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle GET /links: the caller's links, newest first.

    Query parameters:
        page: 1-based page number (default 1)
        limit: page size, capped at the configured maximum (default 10, max 50)

    HTTP responses:
        200: links, page, limit, total, pages
        400: Invalid pagination parameters
        401: Anonymous caller
        503: Link store unavailable
    """
    app_config = load_config('list_links')
    redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}
    settings = link_settings(app_config)

    creator = get_creator(event)
    if creator.anonymous:
        logger.info('Anonymous caller. Responding with 401.', extra={'event': MISSING_CREDENTIALS})
        return response_401(message="Unauthorized: missing 'sub' in JWT claims", error_code=MISSING_CREDENTIALS)

    try:
        page, limit = parse_pagination(event)
    except ValueError:
        logger.info('Invalid pagination. Responding with 400.', extra={'event': INVALID_PAGINATION})
        return response_400(message='page and limit must be positive integers', error_code=INVALID_PAGINATION)

    try:
        with LinkRedisDAO(**redis_config, prefix=app_prefix()) as dao:
            result = LinkService(dao, settings).list_links(creator, page=page, page_size=limit)
    except (LinkError, DataStoreError) as error:
        return error_response(error, creator=creator.key)

    logger.info('Responding with 200.', extra={'creator': creator.key, 'page': page, 'count': len(result.links)})
    return response_json(
        200,
        {
            'links': [link_body(link, event) for link in result.links],
            'page': result.page,
            'limit': result.page_size,
            'total': result.total,
            'pages': result.pages,
        },
    )
