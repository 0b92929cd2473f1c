"""Unit tests for fetch metrics."""

from concurrent.futures import ThreadPoolExecutor

from src.features.fetch.errors import FetchErrorClass
from src.features.fetch.metrics import FetchMetrics


class TestFetchMetrics:
    """Tests for FetchMetrics."""

    def test_singleton(self) -> None:
        """get_instance returns the same object until reset."""
        FetchMetrics.reset()
        first = FetchMetrics.get_instance()

        assert FetchMetrics.get_instance() is first

        FetchMetrics.reset()
        assert FetchMetrics.get_instance() is not first

    def test_to_dict(self) -> None:
        """All counters appear in the dictionary form."""
        metrics = FetchMetrics()
        metrics.record_request(200, 512, truncated=False)
        metrics.record_request(417, 0, truncated=False)
        metrics.record_request(200, 2048, truncated=True)
        metrics.record_expect_continue_retry()
        metrics.record_rejection("BLOCKED_IPV4")
        metrics.record_failure(FetchErrorClass.TIMEOUT)
        metrics.record_duration(12.5)

        assert metrics.to_dict() == {
            "http_requests_total": {200: 2, 417: 1},
            "http_failures_total": {"TIMEOUT": 1},
            "url_rejections_total": {"BLOCKED_IPV4": 1},
            "expect_continue_retry_total": 1,
            "truncated_bodies_total": 1,
            "http_bytes_total": 2560,
            "http_duration_ms_total": 12.5,
            "http_request_count": 3,
        }

    def test_avg_duration(self) -> None:
        """Average duration divides by completed requests."""
        metrics = FetchMetrics()

        assert metrics.avg_duration_ms == 0.0

        metrics.record_request(200, 1, truncated=False)
        metrics.record_request(200, 1, truncated=False)
        metrics.record_duration(30.0)

        assert metrics.avg_duration_ms == 15.0

    def test_thread_safe_counting(self) -> None:
        """Concurrent recording loses no updates."""
        metrics = FetchMetrics()

        def record(_: int) -> None:
            for _ in range(100):
                metrics.record_request(200, 10, truncated=False)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(record, range(8)))

        assert metrics.http_request_count == 800
        assert metrics.http_bytes_total == 8000
