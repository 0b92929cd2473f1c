"""HTTP client for requests against untrusted endpoints."""

import time
from collections.abc import Sequence
from datetime import timedelta

import httpx
import structlog

from src.features.fetch.config import RequestLimits
from src.features.fetch.constants import (
    EXPECT_CONTINUE,
    FORM_CONTENT_TYPE,
    HTTP_STATUS_EXPECTATION_FAILED,
)
from src.features.fetch.deadline import ExchangeDeadline
from src.features.fetch.errors import (
    FetchError,
    FetchTimeoutError,
    InvalidArgumentError,
    TooManyRedirectsError,
    TransportFailureError,
    UnsafeUrlError,
)
from src.features.fetch.guard.uri_guard import UriGuard
from src.features.fetch.metrics import FetchMetrics
from src.features.fetch.models import ExpectContinueState, FetchResponse
from src.features.fetch.reader import read_bounded
from src.features.fetch.redact import redact_headers, redact_url_credentials


logger = structlog.get_logger()


class BoundedFetcher:
    """HTTP GET/POST engine for URLs supplied by untrusted parties.

    Protections include:
    - URLs (and every redirect hop) must pass the UriGuard
    - Response bodies are cut off at max_response_bytes
    - Per-operation and total timeouts, redirect cap
    - No connection reuse between requests

    A POST that fails with 417 Expectation Failed is re-issued once without
    the Expect: 100-continue preamble. The suppression applies to that one
    logical request only.
    """

    def __init__(
        self,
        limits: RequestLimits | None = None,
        guard: UriGuard | None = None,
        transport: httpx.BaseTransport | None = None,
        metrics: FetchMetrics | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            limits: Request limits; defaults to RequestLimits().
            guard: URL guard; defaults to UriGuard().
            transport: httpx transport override (tests, custom TLS).
            metrics: Metrics sink; defaults to the shared instance.
        """
        self._limits = limits or RequestLimits()
        self._guard = guard or UriGuard()
        self._transport = transport
        self._metrics = metrics or FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    @property
    def limits(self) -> RequestLimits:
        """Get the limits new requests will use."""
        return self._limits

    @property
    def guard(self) -> UriGuard:
        """Get the URL guard."""
        return self._guard

    def set_limits(self, limits: RequestLimits) -> None:
        """Replace all limits for subsequent requests."""
        self._limits = limits

    def set_max_response_bytes(self, value: int) -> None:
        """Set the body cap for subsequent requests.

        Raises:
            InvalidConfigurationError: If value is below 2048.
        """
        self._limits = self._limits.replace(max_response_bytes=value)

    def set_max_redirects(self, value: int) -> None:
        """Set the redirect cap for subsequent requests.

        Raises:
            InvalidConfigurationError: If value is negative.
        """
        self._limits = self._limits.replace(max_redirects=value)

    def set_read_write_timeout(self, value: float | timedelta) -> None:
        """Set the per-operation timeout (seconds or timedelta).

        Raises:
            InvalidConfigurationError: If value is not a positive duration.
        """
        self._limits = self._limits.replace(read_write_timeout_seconds=value)

    def set_total_timeout(self, value: float | timedelta) -> None:
        """Set the whole-exchange timeout (seconds or timedelta).

        Raises:
            InvalidConfigurationError: If value is not a positive duration.
        """
        self._limits = self._limits.replace(total_timeout_seconds=value)

    def fetch(
        self,
        url: str | httpx.URL | None,
        body: bytes | None = None,
        accept_types: Sequence[str] | None = None,
    ) -> FetchResponse:
        """Fetch a URL, as GET without a body or as a form POST with one.

        Non-2xx responses are returned, not raised.

        Args:
            url: URL to fetch.
            body: Form-encoded request body; its presence makes this a POST.
            accept_types: Media types for the Accept header.

        Returns:
            FetchResponse with a bounded body.

        Raises:
            InvalidArgumentError: If the URL is missing or empty.
            UnsafeUrlError: If the URL or a redirect hop fails the guard.
            FetchTimeoutError: If a timeout is exceeded.
            TooManyRedirectsError: If the redirect cap is exceeded.
            TransportFailureError: On DNS, connection or protocol failure.
        """
        if url is None or not str(url).strip():
            msg = "URL must not be empty"
            raise InvalidArgumentError(msg)

        # Limits are read once; later changes do not affect this request.
        limits = self._limits
        request_url = str(url).strip()
        method = "GET" if body is None else "POST"
        log = self._log.bind(url=redact_url_credentials(request_url), method=method)
        start_time_ns = time.perf_counter_ns()

        try:
            self._require_safe(request_url)
            response = self._execute_with_expect_continue_retry(
                url=request_url,
                method=method,
                body=body,
                accept_types=accept_types,
                limits=limits,
                log=log,
            )
        except FetchError as e:
            self._metrics.record_failure(e.error_class)
            log.info("fetch_failed", error_class=e.error_class.value, error=e.message)
            raise

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_duration(duration_ms)
        self._metrics.record_request(
            response.status_code, response.body_size, truncated=response.truncated
        )

        if response.truncated:
            log.warning(
                "body_truncated",
                bytes=response.body_size,
                max_response_bytes=limits.max_response_bytes,
            )
        log.info(
            "fetch_complete",
            status_code=response.status_code,
            final_url=redact_url_credentials(response.final_url),
            bytes=response.body_size,
            duration_ms=round(duration_ms, 2),
        )
        return response

    def _require_safe(self, url: str | httpx.URL) -> None:
        try:
            self._guard.require_safe(url)
        except UnsafeUrlError as e:
            self._metrics.record_rejection(e.reason.value)
            raise

    def _check_redirect_hop(self, request: httpx.Request) -> None:
        """Request hook: every hop, including redirects, must pass the guard."""
        self._require_safe(request.url)

    def _execute_with_expect_continue_retry(  # noqa: PLR0913
        self,
        url: str,
        method: str,
        body: bytes | None,
        accept_types: Sequence[str] | None,
        limits: RequestLimits,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResponse:
        """Execute the request, re-issuing once without Expect on a 417.

        Both attempts share one total-timeout deadline.
        """
        state = ExpectContinueState.INITIAL

        with ExchangeDeadline(
            limits.total_timeout_seconds, limits.read_write_timeout_seconds
        ) as deadline:
            while True:
                response = self._execute_single(
                    url=url,
                    method=method,
                    body=body,
                    accept_types=accept_types,
                    limits=limits,
                    state=state,
                    deadline=deadline,
                    log=log,
                )

                if (
                    response.status_code == HTTP_STATUS_EXPECTATION_FAILED
                    and body is not None
                    and state is ExpectContinueState.INITIAL
                ):
                    state = ExpectContinueState.RETRIED_WITHOUT_EXPECT_CONTINUE
                    self._metrics.record_expect_continue_retry()
                    log.info("expect_continue_retry", state=state.value)
                    continue

                return response

    def _build_headers(
        self,
        body: bytes | None,
        accept_types: Sequence[str] | None,
        limits: RequestLimits,
        state: ExpectContinueState,
    ) -> dict[str, str]:
        """Build request headers.

        Args:
            body: Request body, if any.
            accept_types: Media types for the Accept header.
            limits: Limits in force.
            state: Expect-Continue retry state.

        Returns:
            Complete headers dictionary.
        """
        headers: dict[str, str] = {
            "User-Agent": limits.user_agent,
            "Connection": "close",
            "Accept-Encoding": "identity",
        }
        if accept_types is not None:
            headers["Accept"] = ",".join(accept_types)
        if body is not None:
            headers["Content-Type"] = FORM_CONTENT_TYPE
            headers["Content-Length"] = str(len(body))
            if state.sends_expect_continue:
                headers["Expect"] = EXPECT_CONTINUE
        return headers

    def _execute_single(  # noqa: PLR0913
        self,
        url: str,
        method: str,
        body: bytes | None,
        accept_types: Sequence[str] | None,
        limits: RequestLimits,
        state: ExpectContinueState,
        deadline: ExchangeDeadline,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResponse:
        """Execute a single HTTP exchange on a fresh connection.

        Returns:
            FetchResponse for whatever status the server sent.
        """
        headers = self._build_headers(body, accept_types, limits, state)
        redacted = redact_url_credentials(url)
        log.debug("request_sent", headers=redact_headers(headers), state=state.value)

        try:
            with (
                httpx.Client(
                    timeout=deadline.timeout(),
                    follow_redirects=True,
                    max_redirects=limits.max_redirects,
                    limits=httpx.Limits(max_keepalive_connections=0),
                    transport=self._transport,
                    event_hooks={
                        "request": [self._check_redirect_hop, deadline.prepare_request]
                    },
                    trust_env=False,
                ) as client,
                client.stream(method, url, headers=headers, content=body) as response,
            ):
                bounded = read_bounded(
                    response, limits.max_response_bytes, deadline.expires_at
                )
                return FetchResponse(
                    request_url=url,
                    final_url=str(response.url),
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    body_bytes=bounded.data,
                    truncated=bounded.truncated,
                )

        except httpx.TooManyRedirects as e:
            msg = f"More than {limits.max_redirects} redirects"
            raise TooManyRedirectsError(msg, url=redacted) from e

        except httpx.TimeoutException as e:
            msg = f"Request timed out: {e}"
            raise FetchTimeoutError(msg, url=redacted) from e

        except httpx.HTTPError as e:
            # The watchdog closes sockets on expiry, which surfaces as a
            # protocol or read error.
            if deadline.expired:
                raise FetchTimeoutError(deadline.timeout_message(), url=redacted) from e
            msg = f"Transport failure: {e}"
            raise TransportFailureError(msg, url=redacted) from e
