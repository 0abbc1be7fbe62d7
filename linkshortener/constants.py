from enum import StrEnum


class TTL:
    """TTL durations in seconds."""

    # Default short link lifetime (the link expires 5 days after creation)
    FIVE_DAYS = 432_000  # 60 * 60 * 24 * 5
    # Quota window for link creation (1 hour in seconds)
    ONE_HOUR = 3_600  # 60 * 60


class DefaultQuota:
    """Default quota values."""

    LINK_CREATION = 5  # Links a creator may create within one quota window
    ANONYMOUS_LINK_CREATION = 5  # Shared by every anonymous creator


class ShortCode:
    """Short code generation and validation rules."""

    DEFAULT_LENGTH = 6
    MIN_LENGTH = 3
    MAX_LENGTH = 32
    PATTERN = r'^[A-Za-z0-9_-]{3,32}$'
    # Matched case-insensitively against both custom aliases and generated codes
    RESERVED = frozenset({'api', 'r', 'redirect', 'admin', 'login', 'signup', 'health'})


class Limits:
    """Bounded retries, pagination and free-text limits."""

    MAX_INSERT_ATTEMPTS = 5  # Attempts at inserting a freshly generated code
    STORE_RETRIES = 2  # Retries of transient store errors inside the insert loop
    PAGE_SIZE = 10
    MAX_PAGE_SIZE = 50
    TITLE_LENGTH = 200
    DESCRIPTION_LENGTH = 500


class Timeouts:
    """Store call timeouts in seconds."""

    REDIS_SOCKET = 2.0
    REDIS_CONNECT = 2.0


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'
        AGENT_URL = 'APPCONFIG_AGENT_URL'
        PROFILE_NAME = 'APPCONFIG_PROFILE_NAME'


# Sentinel storage key shared by every anonymous creator
ANONYMOUS_CREATOR_KEY = 'anonymous'

# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'


class Event(StrEnum):
    """Event codes attached to log records and error responses."""

    LINK_CREATED = 'LINK_CREATED'
    LINK_EXISTS = 'LINK_EXISTS'
    LINK_DEACTIVATED = 'LINK_DEACTIVATED'
    LINK_DELETED = 'LINK_DELETED'
    LINK_NOT_FOUND = 'LINK_NOT_FOUND'
    LINK_EXPIRED = 'LINK_EXPIRED'
    LINKS_LISTED = 'LINKS_LISTED'
    LINKS_PURGED = 'LINKS_PURGED'
    REDIRECT_SUCCESS = 'REDIRECT_SUCCESS'
    CLICK_COUNT_FAILED = 'CLICK_COUNT_FAILED'
    CODE_COLLISION = 'CODE_COLLISION'
    CODE_SPACE_EXHAUSTED = 'CODE_SPACE_EXHAUSTED'
    QUOTA_EXCEEDED = 'QUOTA_EXCEEDED'
    NOT_OWNER = 'NOT_OWNER'
    STORE_UNAVAILABLE = 'STORE_UNAVAILABLE'
