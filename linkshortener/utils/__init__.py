from linkshortener.utils.config import app_env, app_name, app_prefix, load_config, link_settings, LinkSettings
from linkshortener.utils.helpers import base_url, get_short_url, require_environment, guarantee_500_response
from linkshortener.utils.normalizer import normalize_url
from linkshortener.utils.shortener import generate_shortcode, validate_alias, is_reserved
from linkshortener.utils.logging import initialize_logging


__all__ = [
    'generate_shortcode',
    'validate_alias',
    'is_reserved',
    'normalize_url',
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'link_settings',
    'LinkSettings',
    'base_url',
    'get_short_url',
    'require_environment',
    'guarantee_500_response',
    'initialize_logging',
]
