"""Metrics collection for the guarded fetch layer."""

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock

from src.features.fetch.errors import FetchErrorClass


# Module-level singleton state
_metrics_instance: "FetchMetrics | None" = None
_metrics_lock: Lock = Lock()


@dataclass
class FetchMetrics:
    """Thread-safe metrics for guarded fetch operations.

    Tracks responses by status, bytes received, Expect-Continue retries,
    guard rejections and failures. Use get_instance() for singleton access.
    """

    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    http_requests_total: Counter[int] = field(default_factory=Counter)
    http_failures_total: Counter[str] = field(default_factory=Counter)
    url_rejections_total: Counter[str] = field(default_factory=Counter)
    expect_continue_retry_total: int = 0
    truncated_bodies_total: int = 0
    http_bytes_total: int = 0
    http_duration_ms_total: float = 0.0
    http_request_count: int = 0

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get the singleton instance (thread-safe).

        Returns:
            The shared FetchMetrics instance.
        """
        global _metrics_instance  # noqa: PLW0603
        if _metrics_instance is None:
            with _metrics_lock:
                if _metrics_instance is None:
                    _metrics_instance = cls()
        return _metrics_instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
        global _metrics_instance  # noqa: PLW0603
        with _metrics_lock:
            _metrics_instance = None

    def record_request(
        self, status_code: int, bytes_received: int, *, truncated: bool
    ) -> None:
        """Record a completed HTTP exchange.

        Args:
            status_code: HTTP status code.
            bytes_received: Number of body bytes kept.
            truncated: Whether the body may have been cut short.
        """
        with self._lock:
            self.http_requests_total[status_code] += 1
            self.http_bytes_total += bytes_received
            self.http_request_count += 1
            if truncated:
                self.truncated_bodies_total += 1

    def record_expect_continue_retry(self) -> None:
        """Record a re-issue without the Expect: 100-continue preamble."""
        with self._lock:
            self.expect_continue_retry_total += 1

    def record_rejection(self, reason: str) -> None:
        """Record a URL rejected by the guard.

        Args:
            reason: Rejection reason value.
        """
        with self._lock:
            self.url_rejections_total[reason] += 1

    def record_failure(self, error_class: FetchErrorClass) -> None:
        """Record a fetch failure.

        Args:
            error_class: Classification of the failure.
        """
        with self._lock:
            self.http_failures_total[error_class.value] += 1

    def record_duration(self, duration_ms: float) -> None:
        """Record request duration.

        Args:
            duration_ms: Duration in milliseconds.
        """
        with self._lock:
            self.http_duration_ms_total += duration_ms

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "http_requests_total": dict(self.http_requests_total),
                "http_failures_total": dict(self.http_failures_total),
                "url_rejections_total": dict(self.url_rejections_total),
                "expect_continue_retry_total": self.expect_continue_retry_total,
                "truncated_bodies_total": self.truncated_bodies_total,
                "http_bytes_total": self.http_bytes_total,
                "http_duration_ms_total": self.http_duration_ms_total,
                "http_request_count": self.http_request_count,
            }

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average request duration.

        Returns:
            Average duration in milliseconds.
        """
        if self.http_request_count == 0:
            return 0.0
        return self.http_duration_ms_total / self.http_request_count
