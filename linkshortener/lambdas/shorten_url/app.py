import json
import logging

from linkshortener.types import LambdaEvent, LambdaContext, LambdaResponse
from linkshortener.dao.redis import LinkRedisDAO
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import LinkError
from linkshortener.models import CreatedLink
from linkshortener.services import LinkService
from linkshortener.utils import load_config, link_settings, get_short_url, app_prefix, guarantee_500_response
from linkshortener.utils.runtime import get_creator
from linkshortener.lambdas.responses import response_json, response_400, error_response
from linkshortener.lambdas.shorten_url.constants import INVALID_JSON_BODY, MISSING_TARGET_URL, INVALID_FIELD_TYPE


logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = ('custom_alias', 'title', 'description')


def response_created(created: CreatedLink, event: LambdaEvent) -> LambdaResponse:
    link = created.link
    short_url = get_short_url(link.shortcode, event)
    if created.existing:
        message = 'Existing short link found for this URL'
    else:
        message = f'Successfully shortened {link.target} to {short_url}'

    return response_json(
        200 if created.existing else 201,
        {
            'message': message,
            'target_url': link.target,
            'short_url': short_url,
            'shortcode': link.shortcode,
            'clicks': link.clicks,
            'custom_alias': link.custom_alias,
            'title': link.title,
            'description': link.description,
            'created_at': link.created_at.isoformat(),
            'expires_at': link.expires_at.isoformat() if link.expires_at else None,
            'existing': created.existing,
        },
    )


@guarantee_500_response
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to shorten URLs

    This Lambda handler follows this procedure to shorten URLs:
    - Step 1: Resolve the creator from Cognito claims (anonymous if absent)
    - Step 2: Parse the JSON body (target_url, custom_alias, title, description)
    - Step 3: Create the link through LinkService (quota, alias, dedup, insert)
    - Step 4: Respond with 201 for a new link or 200 for an existing one

    HTTP responses:
        201: New short link created
        200: The creator already has an active link for this URL
            message, target_url, short_url, shortcode, clicks, expires_at, ...
        400: Invalid JSON, missing/invalid target_url, bad alias or metadata
        409: Custom alias already taken
        429: Creation quota reached (Retry-After header)
        500: No free short code found, or internal error
        503: Link store unavailable

    Example:
        >>> event = {'body': '{"target_url": "https://example.com"}'}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        201
    """
    # 0- Get application's config
    app_config = load_config('shorten_url')
    logger.debug('Assuming Redis as the backend database for short URLs')
    redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}
    settings = link_settings(app_config)

    # 1- Resolve the creator
    creator = get_creator(event)

    # 2- Parse the request body
    try:
        request_body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_JSON_BODY})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON_BODY)
    if not isinstance(request_body, dict):
        logger.info('JSON body is not an object. Responding with 400.', extra={'event': INVALID_JSON_BODY})
        return response_400(message='JSON body must be an object', error_code=INVALID_JSON_BODY)

    target_url = request_body.get('target_url')
    if not target_url:
        logger.info("Missing 'target_url'. Responding with 400.", extra={'event': MISSING_TARGET_URL})
        return response_400(message="missing 'target_url' in JSON body", error_code=MISSING_TARGET_URL)

    options = {name: request_body.get(name) for name in OPTIONAL_FIELDS}
    for name, value in options.items():
        if value is not None and not isinstance(value, str):
            logger.info('Invalid field type. Responding with 400.', extra={'event': INVALID_FIELD_TYPE, 'field': name})
            return response_400(message=f"'{name}' must be a string", error_code=INVALID_FIELD_TYPE)

    # 3- Create the short link
    try:
        with LinkRedisDAO(**redis_config, prefix=app_prefix()) as dao:
            created = LinkService(dao, settings).create(creator, target_url, **options)
    except (LinkError, DataStoreError) as error:
        return error_response(error, creator=creator.key)

    # 4- Respond to the client
    logger.info(
        'Responding with %s.',
        200 if created.existing else 201,
        extra={'shortcode': created.link.shortcode, 'creator': creator.key},
    )
    return response_created(created, event)
