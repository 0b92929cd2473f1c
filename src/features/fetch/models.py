"""Data models for the guarded fetch layer."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from src.features.fetch.constants import HTTP_STATUS_OK_MAX, HTTP_STATUS_OK_MIN


class ExpectContinueState(str, Enum):
    """Retry state of one logical POST request.

    - INITIAL: First attempt, sent with the Expect: 100-continue preamble
    - RETRIED_WITHOUT_EXPECT_CONTINUE: Re-issued once after a 417 with the
      preamble suppressed; a further 417 is returned to the caller
    """

    INITIAL = "INITIAL"
    RETRIED_WITHOUT_EXPECT_CONTINUE = "RETRIED_WITHOUT_EXPECT_CONTINUE"

    @property
    def sends_expect_continue(self) -> bool:
        """Whether requests in this state carry the Expect header."""
        return self is ExpectContinueState.INITIAL


class BoundedBody(BaseModel):
    """Bytes read from a response stream under a hard cap."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    data: bytes = b""
    truncated: bool = False


class FetchResponse(BaseModel):
    """Result of a guarded fetch.

    The body is a prefix of the true response body, never longer than the
    limit in force when the request started. Non-2xx statuses are ordinary
    responses here; interpreting them is up to the caller.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    request_url: Annotated[
        str, Field(min_length=1, description="URL originally requested")
    ]
    final_url: Annotated[
        str, Field(min_length=1, description="Final URL after redirects")
    ]
    status_code: int = Field(ge=100, le=599, description="HTTP status code")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Response headers"
    )
    body_bytes: bytes = Field(default=b"", description="Bounded response body")
    truncated: bool = Field(
        default=False,
        description="True when the true body may extend beyond body_bytes",
    )

    @property
    def is_success(self) -> bool:
        """Check if the response has a 2xx status."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def body_size(self) -> int:
        """Get the size of the response body in bytes."""
        return len(self.body_bytes)

    @property
    def content_type(self) -> str | None:
        """Media type of the response without parameters, lowercased."""
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value.split(";", 1)[0].strip().lower() or None
        return None

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the body, replacing undecodable bytes.

        Args:
            encoding: Text encoding to use.

        Returns:
            Decoded body text.
        """
        return self.body_bytes.decode(encoding, errors="replace")
