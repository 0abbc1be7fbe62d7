import json
from typing import cast
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from linkshortener.types import LambdaEvent, LambdaContext, LambdaConfiguration
from linkshortener.lambdas.delete_link import app
from linkshortener.models import IdentifiedCreator, LinkModel
from linkshortener.dao.exceptions import DataStoreError


def make_event(shortcode: str | None = 'abc123', sub: str | None = 'owner', groups=None, hard: str | None = None) -> LambdaEvent:
    request_context = {'domainName': 'sho.rt', 'stage': 'Prod'}
    if sub is not None:
        claims = {'sub': sub}
        if groups is not None:
            claims['cognito:groups'] = groups
        request_context['authorizer'] = {'claims': claims}
    return cast(LambdaEvent, {
        'resource': '/links/{shortcode}',
        'httpMethod': 'DELETE',
        'pathParameters': {'shortcode': shortcode} if shortcode else None,
        'queryStringParameters': {'hard': hard} if hard is not None else None,
        'requestContext': request_context,
    })


class TestDeleteLinkHandler:

    @pytest.fixture
    def context(self) -> LambdaContext:
        return cast(LambdaContext, {'function_name': 'delete_link'})

    @pytest.fixture
    def config(self) -> LambdaConfiguration:
        return cast(LambdaConfiguration, {'redis': {'host': 'redis.test', 'port': 6379, 'db': 0}, 'links': {}})

    @pytest.fixture(autouse=True)
    def setup(self, monkeypatch: MonkeyPatch, context: LambdaContext, config: LambdaConfiguration, dao) -> None:
        monkeypatch.setattr(app, 'load_config', lambda *a, **kw: config)
        self.dao_cls = MagicMock(return_value=dao)
        monkeypatch.setattr(app, 'LinkRedisDAO', self.dao_cls)

        dao.insert(LinkModel(shortcode='abc123', target='https://example.com', creator=IdentifiedCreator('owner')))

        self.context = context
        self.dao = dao

    def test_deactivate_by_owner(self) -> None:
        response = app.lambda_handler(make_event(), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 200
        assert body['deleted'] is False
        assert body['link']['active'] is False
        assert body['link']['short_url'] == 'https://sho.rt/abc123'
        assert self.dao.links['abc123'].active is False

    @pytest.mark.parametrize('hard', ['true', '1', 'TRUE'])
    def test_hard_delete_by_owner(self, hard: str) -> None:
        response = app.lambda_handler(make_event(hard=hard), self.context)

        assert response['statusCode'] == 200
        assert json.loads(response['body'])['deleted'] is True
        assert 'abc123' not in self.dao.links

    def test_delete_by_other_creator(self) -> None:
        response = app.lambda_handler(make_event(sub='intruder'), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 403
        assert body['errorCode'] == 'link:not_owner_error'
        assert self.dao.links['abc123'].active is True

    def test_delete_by_admin(self) -> None:
        response = app.lambda_handler(make_event(sub='moderator', groups=['admin'], hard='true'), self.context)

        assert response['statusCode'] == 200
        assert 'abc123' not in self.dao.links

    def test_delete_by_anonymous_caller(self) -> None:
        response = app.lambda_handler(make_event(sub=None), self.context)

        assert response['statusCode'] == 401
        assert json.loads(response['body'])['errorCode'] == 'MISSING_CREDENTIALS'
        self.dao_cls.assert_not_called()

    def test_delete_unknown_link(self) -> None:
        response = app.lambda_handler(make_event(shortcode='nope42'), self.context)
        assert response['statusCode'] == 404

    def test_delete_without_shortcode(self) -> None:
        response = app.lambda_handler(make_event(shortcode=None), self.context)

        assert response['statusCode'] == 400
        assert json.loads(response['body'])['errorCode'] == 'MISSING_SHORTCODE'

    def test_delete_with_store_down(self) -> None:
        self.dao_cls.side_effect = DataStoreError("Can't connect to Redis at redis.test:6379/0.")
        assert app.lambda_handler(make_event(), self.context)['statusCode'] == 503
