import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.dao.redis import LinkRedisDAO
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import LinkError, LinkNotFoundError
from linkshortener.services import LinkService
from linkshortener.utils import load_config, link_settings, get_short_url, app_prefix, guarantee_500_response
from linkshortener.utils.shortener import SHORTCODE_RE
from linkshortener.lambdas.responses import response_302, response_400, error_response
from linkshortener.lambdas.redirect_url.constants import MISSING_SHORTCODE


logger = logging.getLogger(__name__)


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to redirect URLs

    This Lambda handler follows this procedure to redirect URLs:
    - Step 1: Extract shortcode from request path
    - Step 2: Resolve the shortcode (active + unexpired) and count the click
    - Step 3: Redirect client to target URL

    HTTP responses:
        302: Successful redirect
            headers:
                Location: target URL destination
        400: Missing shortcode in path parameters
        404: Unknown or deactivated short link
        410: Expired short link
        500: Internal server error
        503: Link store unavailable

    Example:
        >>> event = {'pathParameters': {'shortcode': 'Gh71TC'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
        >>> response['headers']['Location']
        'https://example.com/my-page'
    """
    # 0- Get application's config
    app_config = load_config('redirect_url')
    logger.debug('Assuming Redis as the backend database for short URLs')
    redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}
    settings = link_settings(app_config)

    # 1- Extract shortcode from request's path
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if shortcode is None:
        logger.info(
            'Missing "shortcode" in path. Responding with 400.',
            extra={'event': MISSING_SHORTCODE},
        )
        return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)
    logger.debug('Client requested short URL %s.', get_short_url(shortcode, event))

    # Codes outside the short code alphabet can't exist, skip the store
    if not SHORTCODE_RE.fullmatch(shortcode):
        return error_response(LinkNotFoundError(f"Short URL with code '{shortcode}' not found."), shortcode=shortcode)

    # 2- Resolve the link
    try:
        with LinkRedisDAO(**redis_config, prefix=app_prefix()) as dao:
            target_url = LinkService(dao, settings).resolve(shortcode)
    except (LinkError, DataStoreError) as error:
        return error_response(error, shortcode=shortcode)

    # 3- Redirect client to target URL
    logger.info('Redirecting client to target URL. Responding with 302.', extra={'shortcode': shortcode})
    return response_302(location=target_url)
