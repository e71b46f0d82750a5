"""Errors raised by the address resolution engine.

Per-query failures (transport errors, malformed bodies, non-429 HTTP errors)
never raise; the client folds them into an empty ``ProviderResponse``. Only
the conditions below reach the caller.
"""

from typing import Optional

from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_CONTENT,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)


class GeocodingError(Exception):
    """Base class for resolution failures."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Geocoding failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class ConfigurationError(GeocodingError):
    """The provider credential is not configured."""

    message = "Server configuration error"


class RateLimitedError(GeocodingError):
    """The provider throttled a query; nothing further was attempted."""

    status_code = HTTP_429_TOO_MANY_REQUESTS
    message = "Too many requests"

    def __init__(self, retry_after: Optional[str] = None) -> None:
        super().__init__()
        self.retry_after = retry_after


class NoResultsError(GeocodingError):
    """Every strategy came back empty."""

    status_code = HTTP_404_NOT_FOUND
    message = "No results found"


class EmptyAddressError(GeocodingError, ValueError):
    """All address fragments were blank."""

    status_code = HTTP_422_UNPROCESSABLE_CONTENT
    message = "No address fragments supplied"
