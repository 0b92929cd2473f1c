"""Guarded HTTP fetch layer for URLs supplied by untrusted parties.

This module provides bounded HTTP fetch operations with:
- URL guard against loopback/private targets and internal host names
- Maximum response size enforcement
- Per-operation and total timeouts, redirect cap
- One-shot retry without Expect: 100-continue on 417
- Metrics collection for observability
"""

from src.features.fetch.client import BoundedFetcher
from src.features.fetch.config import RequestLimits
from src.features.fetch.constants import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RESPONSE_BYTES,
    FORM_CONTENT_TYPE,
    HTTP_STATUS_EXPECTATION_FAILED,
    MIN_MAX_RESPONSE_BYTES,
)
from src.features.fetch.deadline import ExchangeDeadline
from src.features.fetch.errors import (
    FetchError,
    FetchErrorClass,
    FetchTimeoutError,
    InvalidArgumentError,
    InvalidConfigurationError,
    TooManyRedirectsError,
    TransportFailureError,
    UnsafeUrlError,
)
from src.features.fetch.guard import GuardPolicy, RejectionReason, UriGuard
from src.features.fetch.metrics import FetchMetrics
from src.features.fetch.models import BoundedBody, ExpectContinueState, FetchResponse
from src.features.fetch.protocols import WebFetcher
from src.features.fetch.reader import read_bounded
from src.features.fetch.redact import redact_headers, redact_url_credentials


__all__ = [
    # Client
    "BoundedFetcher",
    "WebFetcher",
    # Guard
    "UriGuard",
    "GuardPolicy",
    "RejectionReason",
    # Config
    "RequestLimits",
    # Models
    "FetchResponse",
    "BoundedBody",
    "ExpectContinueState",
    # Errors
    "FetchError",
    "FetchErrorClass",
    "InvalidArgumentError",
    "UnsafeUrlError",
    "InvalidConfigurationError",
    "FetchTimeoutError",
    "TooManyRedirectsError",
    "TransportFailureError",
    # Reading
    "read_bounded",
    "ExchangeDeadline",
    # Constants
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_MAX_RESPONSE_BYTES",
    "FORM_CONTENT_TYPE",
    "HTTP_STATUS_EXPECTATION_FAILED",
    "MIN_MAX_RESPONSE_BYTES",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
