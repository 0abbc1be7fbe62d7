class LinkShortenerError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:link_shortener_error'


class ConfigurationError(LinkShortenerError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'


class LinkError(LinkShortenerError):
    """Base exception for short link lifecycle errors."""

    error_code = 'link:link_error'


class InvalidURLError(LinkError):
    """Raised when a destination URL cannot be normalized."""

    error_code = 'link:invalid_url_error'


class InvalidLinkMetadataError(LinkError):
    """Raised when a link title or description is too long."""

    error_code = 'link:invalid_link_metadata_error'


class AliasBadFormatError(LinkError):
    """Raised when a custom alias doesn't match the short code format."""

    error_code = 'link:alias_bad_format_error'


class AliasReservedError(LinkError):
    """Raised when a custom alias is on the reserved deny-list."""

    error_code = 'link:alias_reserved_error'


class AliasTakenError(LinkError):
    """Raised when a custom alias is already assigned to another link."""

    error_code = 'link:alias_taken_error'


class QuotaExceededError(LinkError):
    """Raised when a creator has used up the link creation quota.

    Attributes:
        retry_after (int):
            Seconds the creator should wait before trying again.
    """

    error_code = 'link:quota_exceeded_error'

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after


class CodeSpaceExhaustedError(LinkError):
    """Raised when no free short code was found within the bounded attempts."""

    error_code = 'link:code_space_exhausted_error'


class LinkNotFoundError(LinkError):
    """Raised when a short code doesn't resolve to an active link."""

    error_code = 'link:link_not_found_error'


class LinkExpiredError(LinkError):
    """Raised when a short code belongs to a link past its expiry."""

    error_code = 'link:link_expired_error'


class NotOwnerError(LinkError):
    """Raised when a caller mutates a link created by someone else."""

    error_code = 'link:not_owner_error'


class StoreUnavailableError(LinkError):
    """Raised when the link store can't be reached (service degraded)."""

    error_code = 'link:store_unavailable_error'
