"""Custom exceptions for payload-mapper."""


class PayloadMapperError(Exception):
    """Base exception for payload-mapper."""

    pass


class ConfigurationError(PayloadMapperError):
    """Raised when a mapping rule bundle fails validation at load time."""

    pass


class AuthenticationError(PayloadMapperError):
    """Raised when the lookup API key is invalid or missing."""

    pass


class RateLimitError(PayloadMapperError):
    """Raised when the lookup API rate limit is exceeded."""

    pass


class LookupFailedError(PayloadMapperError):
    """Raised when an address lookup call fails."""

    pass


class ResponseParseError(PayloadMapperError):
    """Raised when an extraction response is not valid JSON."""

    pass
