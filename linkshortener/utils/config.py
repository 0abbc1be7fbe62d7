"""Utility functions for application configuration management.

This module provides a standardized interface for Lambda functions to
access configuration data stored in **AWS AppConfig**. Each environment
(`APP_ENV`) has a dedicated AppConfig *Environment* within the shared
AppConfig *Application* identified by `APP_NAME`. Configuration data is
stored as a JSON document under a configuration profile (typically
`backend-config`) and deployed to the corresponding environment.

The configuration JSON follows this structure:

    {
        "build": 7,
        "active_backend": "redis",
        "links": {
            "ttl_days": 5,
            "quota_limit": 5,
            "quota_window_seconds": 3600,
            ...
        },
        "configs": {
            "shorten_url": {
                "redis": { ... }
            },
            "redirect_url": {
                "redis": { ... }
            }
        }
    }

Each Lambda loads its own backend section (e.g., `"shorten_url"`) plus the
shared `"links"` lifecycle settings.

Functions:
    app_env() -> str
        Return the current application environment (`APP_ENV`) value,
        defaulting to `'local'`.

    app_name() -> str | None
        Return the application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Return application prefix for DAOs, or None if `APP_NAME` is not set.

    load_config(lambda_name: str) -> dict
        Load configuration for a given Lambda from AWS AppConfig and
        return it as a Python dictionary. In SAM, load configuration
        from a local AppConfig agent.

    link_settings(config: dict) -> LinkSettings
        Build validated link lifecycle settings from a loaded configuration.

Example:
    Typical usage inside a Lambda handler:

        >>> from linkshortener.utils.config import load_config, link_settings
        >>> config = load_config('shorten_url')
        >>> config['redis']['host']
        'redis-15501.host.docker.internal'
        >>> link_settings(config).quota_limit
        5
"""

import os
import json
import functools
import urllib.parse
import urllib.request
import logging
from dataclasses import dataclass, fields
from datetime import timedelta
from collections.abc import Callable

import boto3

from linkshortener.constants import ENV, TTL, DefaultQuota, Limits, ShortCode
from linkshortener.exceptions import BadConfigurationError
from linkshortener.utils.helpers import require_environment
from linkshortener.utils.runtime import running_locally


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkSettings:
    """Link lifecycle settings.

    Attributes:
        ttl_days (int | None):
            Days from creation until a link expires. None disables expiry.
        code_length (int):
            Length of generated short codes.
        max_insert_attempts (int):
            Generated codes tried before giving up with CodeSpaceExhaustedError.
        store_retries (int):
            Retries of transient store errors inside the insert loop.
        quota_limit (int):
            Links an identified creator may create per quota window.
        anonymous_quota_limit (int):
            Links all anonymous creators together may create per quota window.
        quota_window_seconds (int):
            Length of the sliding quota window.
        page_size (int):
            Default page size when listing a creator's links.
        max_page_size (int):
            Upper bound for a requested page size.
    """

    ttl_days: int | None = TTL.FIVE_DAYS // 86_400
    code_length: int = ShortCode.DEFAULT_LENGTH
    max_insert_attempts: int = Limits.MAX_INSERT_ATTEMPTS
    store_retries: int = Limits.STORE_RETRIES
    quota_limit: int = DefaultQuota.LINK_CREATION
    anonymous_quota_limit: int = DefaultQuota.ANONYMOUS_LINK_CREATION
    quota_window_seconds: int = TTL.ONE_HOUR
    page_size: int = Limits.PAGE_SIZE
    max_page_size: int = Limits.MAX_PAGE_SIZE

    def __post_init__(self):
        # ruff: noqa: E701
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == 'ttl_days' and value is None: continue
            if not isinstance(value, int) or isinstance(value, bool):
                raise BadConfigurationError(f'{f.name} must be an integer (given value: {value!r}).')
        if self.ttl_days is not None and self.ttl_days <= 0:
            raise BadConfigurationError(f'ttl_days must be positive or null (given value: {self.ttl_days}).')
        if not ShortCode.MIN_LENGTH <= self.code_length <= ShortCode.MAX_LENGTH:
            raise BadConfigurationError(f'code_length must be in [3, 32] (given value: {self.code_length}).')
        if self.max_insert_attempts < 1 or self.store_retries < 0:
            raise BadConfigurationError('max_insert_attempts must be >= 1 and store_retries must be >= 0.')
        if self.quota_limit < 0 or self.anonymous_quota_limit < 0 or self.quota_window_seconds <= 0:
            raise BadConfigurationError('Quota limits must be >= 0 and quota_window_seconds must be positive.')
        if not 1 <= self.page_size <= self.max_page_size:
            raise BadConfigurationError('page_size must be in [1, max_page_size].')

    @property
    def ttl(self) -> timedelta | None:
        return None if self.ttl_days is None else timedelta(days=self.ttl_days)

    @property
    def quota_window(self) -> timedelta:
        return timedelta(seconds=self.quota_window_seconds)


def app_env() -> str:
    """Return the current application environment by reading 'APP_ENV'

    Returns:
        str:
            Value of `APP_ENV` environment variable, `'local'` by default.

    Example:
        >>> os.environ['APP_ENV'] = 'dev'
        >>> app_env()
        'dev'
    """
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    """Return the current application name by reading 'APP_NAME'"""
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    """Return application prefix for DAOs

    Returns:
        str: app prefix as <app name>:<app env>.
             None if APP_NAME is not set.

    Example:
        >>> os.environ['APP_NAME'] = 'linkshortener'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'linkshortener:local'
    """
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def _select_sections(config: dict, lambda_name: str) -> dict:
    """Pick the active backend section of a Lambda plus the shared link settings."""
    try:
        backend = config['active_backend']
        data = {backend: config['configs'][lambda_name][backend]}
    except KeyError as e:
        raise BadConfigurationError(f'AppConfig document has no {e} section for {lambda_name!r}.') from e
    data['links'] = config.get('links') or {}
    return data


def _sam_load_local_appconfig(func: Callable[[str], dict]) -> Callable[[str], dict]:  # pragma: no cover
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM

    Behavior:
        - If the application is running locally and `APPCONFIG_AGENT_URL` is set
          to a safe local URL, fetch the app configuration JSON from the local AppConfig agent.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).

    Environment variables used:
        APPCONFIG_AGENT_URL     – Base URL of the local AppConfig Agent (e.g., http://host.docker.internal:2772).
        APPCONFIG_PROFILE_NAME  – Optional profile name (default: "backend-config").
    """

    # ruff: noqa: E701
    def __validate_appconfig_url(url: str | None) -> str:
        if not url:
            return ''
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise ValueError(f'Bad scheme {url}')
        if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal'}:
            raise ValueError(f'Bad host {url}')
        if components.port not in {2772, None}:
            raise ValueError(f'Bad port {url}')
        return url

    # ruff: enable

    @functools.wraps(func)
    def wrapper(lambda_name: str, *args, **kwargs) -> dict:
        agent_url = __validate_appconfig_url(os.getenv(ENV.AppConfig.AGENT_URL))
        if not running_locally() or not agent_url:
            return func(lambda_name, *args, **kwargs)

        profile_name = os.getenv(ENV.AppConfig.PROFILE_NAME, 'backend-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url, 'lambdaName': lambda_name})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            config = json.load(r)

        data = _select_sections(config, lambda_name)
        logger.debug('Loaded AppConfig from local agent.', extra={'lambdaName': lambda_name, 'build': config.get('build')})
        return data

    return wrapper


@_sam_load_local_appconfig
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def load_config(lambda_name: str) -> dict:
    """Load configuration for a given Lambda from AWS AppConfig

    Fetches the AppConfig JSON once and returns the section relevant
    to the requested Lambda function (e.g., 'shorten_url', 'redirect_url').

    Environment variables required:
        APPCONFIG_APP_ID       – AppConfig Application ID
        APPCONFIG_ENV_ID       – AppConfig Environment ID
        APPCONFIG_PROFILE_ID   – AppConfig Configuration Profile ID

    Args:
        lambda_name (str):
            Name of the Lambda (e.g., "shorten_url" or "redirect_url").

    Returns:
        dict: The lambda's backend section and the shared `links` section.

    Raises:
        MissingEnvironmentVariableError:
            If an AppConfig identifier is not set.
        BadConfigurationError:
            If the document lacks the Lambda's backend section.
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name})

    appconfig = boto3.client('appconfigdata')

    # Start an AppConfig data session
    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    # Fetch the configuration
    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    config = json.loads(content.decode('utf-8'))

    data = _select_sections(config, lambda_name)
    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name, 'build': config.get('build')})
    return data


def link_settings(config: dict) -> LinkSettings:
    """Build LinkSettings from the `links` section of a loaded config.

    Unknown keys are rejected so typos don't silently fall back to defaults.
    """
    section = dict(config.get('links') or {})
    known = {f.name for f in fields(LinkSettings)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise BadConfigurationError(f'Unknown link settings: {", ".join(unknown)}')
    return LinkSettings(**section)
