"""API Gateway response builders shared by the HTTP Lambda handlers.

Every LinkError maps to exactly one HTTP status. Handlers catch LinkError
(plus DataStoreError raised while opening a DAO) and hand it to
`error_response`, which logs the outcome and builds the JSON body:

    {"message": "<reason>", "errorCode": "<error code>"}

Example:
    >>> error_response(LinkExpiredError("Short URL with code 'abc123' has expired."))['statusCode']
    410
"""

import json
import logging
from typing import Any

from linkshortener.types import LambdaEvent, LambdaResponse
from linkshortener.models import LinkModel
from linkshortener.utils.helpers import get_short_url
from linkshortener.dao.exceptions import DataStoreError
from linkshortener.exceptions import (
    AliasBadFormatError,
    AliasReservedError,
    AliasTakenError,
    CodeSpaceExhaustedError,
    InvalidLinkMetadataError,
    InvalidURLError,
    LinkError,
    LinkExpiredError,
    LinkNotFoundError,
    NotOwnerError,
    QuotaExceededError,
    StoreUnavailableError,
)


logger = logging.getLogger(__name__)


ERROR_STATUS: dict[type[LinkError], int] = {
    InvalidURLError: 400,
    InvalidLinkMetadataError: 400,
    AliasBadFormatError: 400,
    AliasReservedError: 400,
    AliasTakenError: 409,
    QuotaExceededError: 429,
    LinkNotFoundError: 404,
    LinkExpiredError: 410,
    NotOwnerError: 403,
    StoreUnavailableError: 503,
    CodeSpaceExhaustedError: 500,
}

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type,Authorization',
    'Access-Control-Allow-Methods': 'OPTIONS,POST,GET,DELETE',
}


def response_json(status: int, body: dict[str, Any], headers: dict[str, str] | None = None) -> LambdaResponse:
    return {
        'statusCode': status,
        'headers': {'Content-Type': 'application/json', **CORS_HEADERS, **(headers or {})},
        'body': json.dumps(body),
    }


def response_400(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    base = 'Bad Request'
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return response_json(400, body)


def response_401(message: str | None = None, error_code: str | None = None) -> LambdaResponse:
    body = {'message': message or 'Unauthorized'}
    if error_code:
        body['errorCode'] = error_code
    return response_json(401, body)


def response_302(*, location: str) -> LambdaResponse:
    return {
        'statusCode': 302,
        'headers': {'Location': location, 'Cache-Control': 'no-store', **CORS_HEADERS},
        'body': json.dumps({}),  # no body needed for redirects
    }


def status_for(error: LinkError | DataStoreError) -> int:
    if isinstance(error, DataStoreError):
        return 503
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def error_response(error: LinkError | DataStoreError, **log_extra: Any) -> LambdaResponse:
    """Translate a lifecycle error into an API Gateway response.

    Args:
        error (LinkError | DataStoreError):
            Error raised by LinkService or by the DAO constructor.

        **log_extra:
            Extra fields for the log record (e.g. shortcode).

    Returns:
        LambdaResponse: JSON response; 429 carries a Retry-After header.
    """
    status = status_for(error)
    error_code = StoreUnavailableError.error_code if isinstance(error, DataStoreError) else error.error_code
    message = 'Service temporarily unavailable' if status == 503 else str(error)

    log = logger.error if status >= 500 else logger.info
    log(
        'Responding with %s.',
        status,
        extra={'event': error_code, 'error': error.__class__.__name__, **log_extra},
    )

    headers = {}
    if isinstance(error, QuotaExceededError):
        headers['Retry-After'] = str(error.retry_after)
    return response_json(status, {'message': message, 'errorCode': error_code}, headers)


def link_body(link: LinkModel, event: LambdaEvent) -> dict[str, Any]:
    """JSON representation of a link record, clicks included."""
    return {
        'shortcode': link.shortcode,
        'short_url': get_short_url(link.shortcode, event),
        'target_url': link.target,
        'clicks': link.clicks,
        'active': link.active,
        'custom_alias': link.custom_alias,
        'title': link.title,
        'description': link.description,
        'created_at': link.created_at.isoformat(),
        'expires_at': link.expires_at.isoformat() if link.expires_at else None,
    }
