"""Unit tests for the fetch CLI."""

import json
from collections.abc import Generator
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner
from structlog.testing import capture_logs

from src.cli.fetch import cli
from src.features.fetch.client import BoundedFetcher
from src.features.fetch.config import RequestLimits
from src.features.fetch.metrics import FetchMetrics


@pytest.fixture(autouse=True)
def no_logging_setup() -> Generator[None]:
    """Keep log lines out of the output and structlog config untouched."""
    with patch("src.cli.fetch.configure_logging"), capture_logs():
        yield


def fake_fetcher(handler: object) -> BoundedFetcher:
    """Fetcher over an in-memory transport."""
    return BoundedFetcher(
        limits=RequestLimits(max_response_bytes=2048),
        transport=httpx.MockTransport(handler),  # type: ignore[arg-type]
        metrics=FetchMetrics(),
    )


class TestFetchCommand:
    """Tests for the fetch command."""

    def test_prints_status_and_body(self) -> None:
        """Status line, final URL and body are printed."""
        fetcher = fake_fetcher(lambda request: httpx.Response(200, content=b"hello"))

        with patch("src.cli.fetch._build_fetcher", return_value=fetcher):
            result = CliRunner().invoke(cli, ["fetch", "https://example.com/"])

        assert result.exit_code == 0
        assert "200 https://example.com/" in result.output
        assert "hello" in result.output

    def test_data_sends_post(self) -> None:
        """--data turns the request into a form POST."""
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            return httpx.Response(200, content=request.content)

        fetcher = fake_fetcher(handler)

        with patch("src.cli.fetch._build_fetcher", return_value=fetcher):
            result = CliRunner().invoke(
                cli, ["fetch", "https://example.com/", "--data", "a=1&b=2"]
            )

        assert result.exit_code == 0
        assert methods == ["POST"]
        assert "a=1&b=2" in result.output

    def test_unsafe_url_exits_non_zero(self) -> None:
        """Guard rejections are reported with their error class."""
        fetcher = fake_fetcher(lambda request: httpx.Response(200))

        with patch("src.cli.fetch._build_fetcher", return_value=fetcher):
            result = CliRunner().invoke(cli, ["fetch", "http://127.0.0.1/"])

        assert result.exit_code == 1
        assert "UNSAFE_URL" in result.output

    def test_invalid_max_bytes_exits_non_zero(self) -> None:
        """A body cap below the minimum is a configuration error."""
        result = CliRunner().invoke(
            cli, ["fetch", "https://example.com/", "--max-bytes", "100"]
        )

        assert result.exit_code == 1
        assert "INVALID_CONFIGURATION" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_reports_each_url(self) -> None:
        """Each URL is listed with its verdict."""
        result = CliRunner().invoke(
            cli, ["check", "https://example.com/", "http://intranet/"]
        )

        payload = json.loads(result.output)
        assert result.exit_code == 1
        assert payload == [
            {"url": "https://example.com/", "safe": True, "reason": None},
            {"url": "http://intranet/", "safe": False, "reason": "UNQUALIFIED_HOST"},
        ]

    def test_all_safe_exits_zero(self) -> None:
        """Exit code is zero when every URL passes."""
        result = CliRunner().invoke(cli, ["check", "https://example.org/"])

        assert result.exit_code == 0

    def test_out_of_range_block_list_is_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A blocked octet above 255 is reported, not a traceback."""
        monkeypatch.setenv("GUARDED_FETCH_BLOCKED_IPV4_FIRST_OCTETS", "[300]")

        result = CliRunner().invoke(cli, ["check", "https://example.org/"])

        assert result.exit_code == 1
        assert "INVALID_CONFIGURATION" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
