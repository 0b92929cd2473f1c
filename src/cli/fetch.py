"""CLI commands for the guarded fetcher."""

import json
import logging
import sys
import uuid

import click

from src.features.fetch.client import BoundedFetcher
from src.features.fetch.errors import FetchError
from src.features.fetch.guard.uri_guard import UriGuard
from src.features.observability.logging import bind_request_context, configure_logging
from src.settings.app import get_settings


def _build_fetcher(max_bytes: int | None) -> BoundedFetcher:
    settings = get_settings()
    fetcher = BoundedFetcher(
        limits=settings.to_limits(),
        guard=UriGuard(settings.to_guard_policy()),
    )
    if max_bytes is not None:
        fetcher.set_max_response_bytes(max_bytes)
    return fetcher


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON format for logs (default: true).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)
def cli(json_logs: bool, verbose: bool) -> None:
    """Guarded HTTP fetch CLI."""
    configure_logging(
        level=logging.DEBUG if verbose else logging.WARNING,
        json_format=json_logs,
    )
    bind_request_context(uuid.uuid4().hex[:12])


@cli.command()
@click.argument("url")
@click.option(
    "--data",
    "data",
    type=str,
    default=None,
    help="Form-encoded body; sends a POST instead of a GET.",
)
@click.option(
    "--accept",
    "accept_types",
    multiple=True,
    help="Acceptable media type (repeatable).",
)
@click.option(
    "--max-bytes",
    "max_bytes",
    type=int,
    default=None,
    help="Override the response body cap in bytes (minimum 2048).",
)
@click.option(
    "--headers/--no-headers",
    "show_headers",
    default=False,
    help="Print response headers before the body.",
)
def fetch(
    url: str,
    data: str | None,
    accept_types: tuple[str, ...],
    max_bytes: int | None,
    show_headers: bool,
) -> None:
    """Fetch URL and print the bounded response."""
    try:
        fetcher = _build_fetcher(max_bytes)
        response = fetcher.fetch(
            url,
            body=data.encode("utf-8") if data is not None else None,
            accept_types=list(accept_types) or None,
        )
    except FetchError as e:
        click.echo(f"Error [{e.error_class.value}]: {e.message}", err=True)
        sys.exit(1)

    click.echo(f"{response.status_code} {response.final_url}")
    if show_headers:
        for key, value in response.headers.items():
            click.echo(f"{key}: {value}")
    if response.truncated:
        click.echo(
            f"Warning: body truncated to {response.body_size} bytes", err=True
        )
    click.echo("")
    click.echo(response.text())


@cli.command()
@click.argument("urls", nargs=-1, required=True)
def check(urls: tuple[str, ...]) -> None:
    """Check URLS against the guard without fetching them."""
    try:
        guard = UriGuard(get_settings().to_guard_policy())
    except FetchError as e:
        click.echo(f"Error [{e.error_class.value}]: {e.message}", err=True)
        sys.exit(1)
    results = []
    for url in urls:
        verdict = guard.check(url)
        results.append(
            {
                "url": url,
                "safe": verdict.is_safe,
                "reason": verdict.reason.value if verdict.reason else None,
            }
        )
    click.echo(json.dumps(results, indent=2))
    if not all(result["safe"] for result in results):
        sys.exit(1)


if __name__ == "__main__":
    cli()
