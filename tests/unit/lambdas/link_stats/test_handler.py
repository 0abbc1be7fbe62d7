import json
from typing import cast
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from linkshortener.types import LambdaEvent, LambdaContext, LambdaConfiguration
from linkshortener.lambdas.link_stats import app
from linkshortener.models import IdentifiedCreator, LinkModel


def make_event(shortcode: str | None = 'abc123', sub: str | None = 'owner', groups=None) -> LambdaEvent:
    request_context = {'domainName': 'sho.rt', 'stage': 'Prod'}
    if sub is not None:
        claims = {'sub': sub}
        if groups is not None:
            claims['cognito:groups'] = groups
        request_context['authorizer'] = {'claims': claims}
    return cast(LambdaEvent, {
        'resource': '/links/{shortcode}',
        'httpMethod': 'GET',
        'pathParameters': {'shortcode': shortcode} if shortcode else None,
        'requestContext': request_context,
    })


class TestLinkStatsHandler:

    @pytest.fixture
    def context(self) -> LambdaContext:
        return cast(LambdaContext, {'function_name': 'link_stats'})

    @pytest.fixture
    def config(self) -> LambdaConfiguration:
        return cast(LambdaConfiguration, {'redis': {'host': 'redis.test', 'port': 6379, 'db': 0}, 'links': {}})

    @pytest.fixture(autouse=True)
    def setup(self, monkeypatch: MonkeyPatch, context: LambdaContext, config: LambdaConfiguration, dao) -> None:
        monkeypatch.setattr(app, 'load_config', lambda *a, **kw: config)
        monkeypatch.setattr(app, 'LinkRedisDAO', MagicMock(return_value=dao))

        dao.insert(LinkModel(
            shortcode='abc123',
            target='https://example.com',
            creator=IdentifiedCreator('owner'),
            clicks=42,
            title='Example',
        ))
        self.context = context

    def test_stats_for_owner(self) -> None:
        response = app.lambda_handler(make_event(), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 200
        assert body['clicks'] == 42
        assert body['target_url'] == 'https://example.com'
        assert body['title'] == 'Example'
        assert body['expires_at'] is None

    def test_stats_for_admin(self) -> None:
        response = app.lambda_handler(make_event(sub='moderator', groups='admin'), self.context)
        assert response['statusCode'] == 200

    def test_stats_for_other_creator(self) -> None:
        response = app.lambda_handler(make_event(sub='intruder'), self.context)
        assert response['statusCode'] == 403

    def test_stats_for_anonymous_caller(self) -> None:
        response = app.lambda_handler(make_event(sub=None), self.context)
        assert response['statusCode'] == 401

    def test_stats_for_unknown_link(self) -> None:
        response = app.lambda_handler(make_event(shortcode='nope42'), self.context)
        assert response['statusCode'] == 404
