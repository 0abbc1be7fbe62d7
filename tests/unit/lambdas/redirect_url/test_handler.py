import json
from datetime import datetime, timedelta, UTC
from typing import cast
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from linkshortener.types import LambdaEvent, LambdaContext, LambdaConfiguration
from linkshortener.lambdas.redirect_url import app
from linkshortener.models import IdentifiedCreator, LinkModel
from linkshortener.dao.exceptions import DataStoreError


def make_event(path_parameters: dict | None) -> LambdaEvent:
    return cast(LambdaEvent, {
        'resource': '/{shortcode}',
        'pathParameters': path_parameters,
        'httpMethod': 'GET',
        'path': '/abc123',
        'requestContext': {'domainName': 'testhost:1000', 'stage': 'test'},
    })


class TestRedirectUrlHandler:

    @pytest.fixture
    def context(self) -> LambdaContext:
        return cast(LambdaContext, {'function_name': 'redirect_url'})

    @pytest.fixture
    def config(self) -> LambdaConfiguration:
        return cast(LambdaConfiguration, {'redis': {'host': 'redis.test', 'port': 6379, 'db': 0}, 'links': {}})

    @pytest.fixture(autouse=True)
    def setup(self, monkeypatch: MonkeyPatch, context: LambdaContext, config: LambdaConfiguration, dao) -> None:
        # Patch Lambda dependencies
        monkeypatch.setattr(app, 'load_config', lambda *a, **kw: config)
        self.dao_cls = MagicMock(return_value=dao)
        monkeypatch.setattr(app, 'LinkRedisDAO', self.dao_cls)

        now = datetime.now(UTC)
        dao.insert(LinkModel(
            shortcode='abc123',
            target='https://example.com/blog/chuck-norris-is-awesome',
            creator=IdentifiedCreator('user123'),
            expires_at=now + timedelta(days=5),
        ))
        dao.insert(LinkModel(shortcode='old123', target='https://example.com/old', expires_at=now - timedelta(seconds=1)))
        dao.insert(LinkModel(shortcode='off123', target='https://example.com/off', active=False))

        self.context = context
        self.dao = dao

    def test_lambda_handler(self) -> None:
        response = app.lambda_handler(make_event({'shortcode': 'abc123'}), self.context)
        headers = response['headers']
        body = json.loads(response['body'])

        # Assert Lambda successfully redirects user to target URL
        assert response['statusCode'] == 302
        assert body == {}
        assert headers['Location'] == 'https://example.com/blog/chuck-norris-is-awesome'

        # Assert the click was counted
        assert self.dao.links['abc123'].clicks == 1

    @pytest.mark.parametrize('path_parameters', [None, {}, {'invalid': 'path'}])
    def test_lambda_handler_with_invalid_path_parameters(self, path_parameters) -> None:
        response = app.lambda_handler(make_event(path_parameters), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 400
        assert body['message'] == "Bad Request (missing 'shortcode' in path)"
        assert body['errorCode'] == 'MISSING_SHORTCODE'

    @pytest.mark.parametrize('shortcode', ['nope42', 'off123'])
    def test_lambda_handler_with_unknown_or_deactivated_link(self, shortcode: str) -> None:
        response = app.lambda_handler(make_event({'shortcode': shortcode}), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 404
        assert body['errorCode'] == 'link:link_not_found_error'

    def test_lambda_handler_with_malformed_shortcode(self) -> None:
        response = app.lambda_handler(make_event({'shortcode': 'not a code!'}), self.context)

        assert response['statusCode'] == 404
        self.dao_cls.assert_not_called()

    def test_lambda_handler_with_expired_link(self) -> None:
        response = app.lambda_handler(make_event({'shortcode': 'old123'}), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 410
        assert body['errorCode'] == 'link:link_expired_error'
        assert self.dao.links['old123'].clicks == 0

    def test_lambda_handler_when_click_counting_fails(self, monkeypatch: MonkeyPatch) -> None:
        monkeypatch.setattr(self.dao, 'increment_clicks', MagicMock(side_effect=DataStoreError('Timed out talking to Redis.')))

        response = app.lambda_handler(make_event({'shortcode': 'abc123'}), self.context)

        assert response['statusCode'] == 302

    def test_lambda_handler_with_store_down(self) -> None:
        self.dao_cls.side_effect = DataStoreError("Can't connect to Redis at redis.test:6379/0.")

        response = app.lambda_handler(make_event({'shortcode': 'abc123'}), self.context)

        assert response['statusCode'] == 503
        assert json.loads(response['body'])['errorCode'] == 'link:store_unavailable_error'

    def test_lambda_handler_with_invalid_configuration_file(self, monkeypatch: MonkeyPatch) -> None:
        monkeypatch.setattr(app, 'load_config', MagicMock(side_effect=FileNotFoundError('Something goes wrong')))

        response = app.lambda_handler(make_event({'shortcode': 'abc123'}), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 500
        assert body['message'] == 'Internal Server Error'
