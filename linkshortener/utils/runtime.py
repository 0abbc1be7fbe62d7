"""Runtime utilities

Functions:
    running_locally() -> bool:
        True if lambda is running in local SAM, False otherwise.

    get_creator(event) -> Creator:
        Resolve the caller identity from the Cognito authorizer claims.

Example:
    >>> from linkshortener.utils.runtime import get_creator
    >>> get_creator({'requestContext': {'authorizer': {'claims': {'sub': 'user123'}}}})
    IdentifiedCreator(user_id='user123')
    >>> get_creator({})
    AnonymousCreator()
"""

import os

from linkshortener.types import LambdaEvent
from linkshortener.constants import ENV
from linkshortener.models import ANONYMOUS, Creator, IdentifiedCreator


def running_locally() -> bool:
    """Return True if running in SAM local invoke/api, False otherwise."""
    env = os.getenv(ENV.App.APP_ENV, '').lower()
    return env == 'local' or os.getenv(ENV.App.AWS_SAM_LOCAL) == 'true'


def get_user_id(event: LambdaEvent) -> str | None:
    claims = (event.get('requestContext') or {}).get('authorizer', {}).get('claims', {})
    return claims.get('sub') or None


def get_creator(event: LambdaEvent) -> Creator:
    """Resolve the creator once, at the HTTP boundary.

    Requests without a Cognito `sub` claim are anonymous.
    """
    user_id = get_user_id(event)
    return ANONYMOUS if user_id is None else IdentifiedCreator(user_id=user_id)


def is_admin(event: LambdaEvent) -> bool:
    """True if the caller belongs to the Cognito 'admin' group."""
    claims = (event.get('requestContext') or {}).get('authorizer', {}).get('claims', {})
    groups = claims.get('cognito:groups') or []
    if isinstance(groups, str):
        groups = [g.strip() for g in groups.strip('[]').replace(',', ' ').split()]
    return 'admin' in groups
