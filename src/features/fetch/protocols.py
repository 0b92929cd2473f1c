"""Protocol interface for guarded fetchers."""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from src.features.fetch.models import FetchResponse


@runtime_checkable
class WebFetcher(Protocol):
    """Protocol for fetchers used by higher-level protocol clients.

    Discovery and authentication flows depend on this interface rather than
    on BoundedFetcher, so test doubles can stand in for the network.
    """

    def fetch(
        self,
        url: str,
        body: bytes | None = None,
        accept_types: Sequence[str] | None = None,
    ) -> FetchResponse:
        """Fetch a URL.

        Args:
            url: URL to fetch.
            body: Form-encoded body; its presence makes this a POST.
            accept_types: Media types for the Accept header.

        Returns:
            Bounded response for any HTTP status.

        Raises:
            FetchError: If the URL is unsafe or the exchange fails.
        """
        ...
