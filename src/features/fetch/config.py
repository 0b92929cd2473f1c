"""Configuration models for the guarded fetch layer."""

from datetime import timedelta
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.features.fetch.constants import (
    DEBUG_TIMEOUT_SECONDS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RESPONSE_BYTES,
    DEFAULT_READ_WRITE_TIMEOUT_SECONDS,
    DEFAULT_TOTAL_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    MIN_MAX_RESPONSE_BYTES,
)
from src.features.fetch.errors import InvalidConfigurationError


class RequestLimits(BaseModel):
    """Limits applied to every request made against an untrusted endpoint.

    Instances are immutable. A fetcher reads its current limits once when a
    request starts, so replacing them never affects in-flight requests.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_response_bytes: Annotated[int, Field(ge=MIN_MAX_RESPONSE_BYTES)] = (
        DEFAULT_MAX_RESPONSE_BYTES
    )
    max_redirects: Annotated[int, Field(ge=0)] = DEFAULT_MAX_REDIRECTS
    read_write_timeout_seconds: Annotated[float, Field(gt=0.0)] = (
        DEFAULT_READ_WRITE_TIMEOUT_SECONDS
    )
    total_timeout_seconds: Annotated[float, Field(gt=0.0)] = (
        DEFAULT_TOTAL_TIMEOUT_SECONDS
    )
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )

    @field_validator(
        "read_write_timeout_seconds", "total_timeout_seconds", mode="before"
    )
    @classmethod
    def timedelta_to_seconds(cls, v: Any) -> Any:
        """Accept timedelta values for timeouts."""
        if isinstance(v, timedelta):
            return v.total_seconds()
        return v

    @classmethod
    def for_debugging(cls) -> "RequestLimits":
        """Limits with hour-long timeouts, for stepping through a debugger."""
        return cls(
            read_write_timeout_seconds=DEBUG_TIMEOUT_SECONDS,
            total_timeout_seconds=DEBUG_TIMEOUT_SECONDS,
        )

    def replace(self, **changes: Any) -> "RequestLimits":
        """Return a validated copy with some fields changed.

        Args:
            **changes: Field values to change.

        Returns:
            New RequestLimits instance.

        Raises:
            InvalidConfigurationError: If any changed value is out of range.
        """
        try:
            return type(self).model_validate({**self.model_dump(), **changes})
        except ValidationError as e:
            fields = ", ".join(sorted(changes))
            msg = f"Invalid request limit ({fields}): {e.errors()[0]['msg']}"
            raise InvalidConfigurationError(msg) from e
