"""Error types for the guarded fetch layer."""

from enum import Enum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from src.features.fetch.guard.models import RejectionReason


class FetchErrorClass(str, Enum):
    """Classification of fetch failures.

    - INVALID_ARGUMENT: Missing or empty URL
    - UNSAFE_URL: URL failed a guard rule
    - INVALID_CONFIGURATION: A limit was set out of range
    - TIMEOUT: Per-operation or total exchange time exceeded
    - TOO_MANY_REDIRECTS: Redirect chain longer than the configured cap
    - TRANSPORT_FAILURE: Connection-level failure with no usable response
    """

    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNSAFE_URL = "UNSAFE_URL"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    TIMEOUT = "TIMEOUT"
    TOO_MANY_REDIRECTS = "TOO_MANY_REDIRECTS"
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"


class FetchError(Exception):
    """Base exception for fetch failures.

    Provides structured error information for logging and for callers that
    need to react differently to each failure kind.
    """

    error_class: FetchErrorClass

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, str | int | float | bool | None] | None = None,
    ) -> None:
        """Initialize the fetch error.

        Args:
            message: Human-readable error message.
            url: Redacted URL the failure relates to, if any.
            details: Additional structured error details.
        """
        super().__init__(message)
        self.message = message
        self.url = url
        self.details = details or {}

    def to_dict(
        self,
    ) -> dict[str, str | None | dict[str, str | int | float | bool | None]]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "url": self.url,
            "details": self.details,
        }


class InvalidArgumentError(FetchError, ValueError):
    """Raised when the URL is missing or empty."""

    error_class = FetchErrorClass.INVALID_ARGUMENT


class UnsafeUrlError(FetchError):
    """Raised when a URL (or a redirect hop) fails a guard rule."""

    error_class = FetchErrorClass.UNSAFE_URL

    def __init__(
        self,
        message: str,
        reason: "RejectionReason",
        url: str | None = None,
    ) -> None:
        """Initialize the unsafe URL error.

        Args:
            message: Human-readable error message.
            reason: Guard rule category that rejected the URL.
            url: Redacted URL that was rejected.
        """
        super().__init__(message, url=url, details={"reason": reason.value})
        self.reason = reason


class InvalidConfigurationError(FetchError, ValueError):
    """Raised when a request limit is set to an out-of-range value."""

    error_class = FetchErrorClass.INVALID_CONFIGURATION


class FetchTimeoutError(FetchError):
    """Raised when a per-operation or total timeout is exceeded."""

    error_class = FetchErrorClass.TIMEOUT


class TooManyRedirectsError(FetchError):
    """Raised when a redirect chain exceeds the configured cap."""

    error_class = FetchErrorClass.TOO_MANY_REDIRECTS


class TransportFailureError(FetchError):
    """Raised on DNS, connection or protocol failures with no response."""

    error_class = FetchErrorClass.TRANSPORT_FAILURE
