"""Unit tests for runtime utilities in runtime.py."""

import pytest

from linkshortener.constants import ENV
from linkshortener.models import ANONYMOUS, IdentifiedCreator
from linkshortener.utils.runtime import running_locally, get_user_id, get_creator, is_admin


@pytest.mark.parametrize(
    'app_env, sam_flag, expected',
    [
        ('local', None, True),
        ('dev', None, False),
        ('dev', 'true', True),
    ],
)
def test_running_locally(monkeypatch, app_env, sam_flag, expected):
    monkeypatch.setenv(ENV.App.APP_ENV, app_env)

    if sam_flag is None:
        monkeypatch.delenv(ENV.App.AWS_SAM_LOCAL, raising=False)
    else:
        monkeypatch.setenv(ENV.App.AWS_SAM_LOCAL, sam_flag)

    assert running_locally() is expected


@pytest.mark.parametrize(
    'event, expected',
    [
        ({'requestContext': {'authorizer': {'claims': {'sub': 'lambda123'}}}}, 'lambda123'),
        ({'requestContext': {'authorizer': {'claims': {'sub': None}}}}, None),
        ({'requestContext': {'authorizer': {'claims': {'sub': ''}}}}, None),
        ({'requestContext': None}, None),
        ({}, None),
    ],
)
def test_get_user_id(event, expected):
    """get_user_id() returns the user id from the event."""
    assert get_user_id(event) == expected


def test_get_creator_identified():
    event = {'requestContext': {'authorizer': {'claims': {'sub': 'user123'}}}}
    assert get_creator(event) == IdentifiedCreator('user123')


def test_get_creator_anonymous():
    assert get_creator({}) is ANONYMOUS


@pytest.mark.parametrize(
    'groups, expected',
    [
        (['admin'], True),
        (['users', 'admin'], True),
        ('admin', True),
        ('[users, admin]', True),
        (['users'], False),
        ('administrators', False),
        (None, False),
    ],
)
def test_is_admin(groups, expected):
    event = {'requestContext': {'authorizer': {'claims': {'sub': 'user123', 'cognito:groups': groups}}}}
    assert is_admin(event) is expected
