"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.features.fetch.config import RequestLimits
from src.features.fetch.constants import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RESPONSE_BYTES,
    DEFAULT_READ_WRITE_TIMEOUT_SECONDS,
    DEFAULT_TOTAL_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
)
from src.features.fetch.errors import InvalidConfigurationError
from src.features.fetch.guard.policy import (
    DEFAULT_BLOCKED_IPV4_FIRST_OCTETS,
    GuardPolicy,
)


class AppSettings(BaseSettings):
    """Centralized environment configuration.

    Values are taken from GUARDED_FETCH_* environment variables or a .env
    file. Range checks happen when the limits are built.
    """

    model_config = SettingsConfigDict(
        env_prefix="GUARDED_FETCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    read_write_timeout_seconds: float = DEFAULT_READ_WRITE_TIMEOUT_SECONDS
    total_timeout_seconds: float = DEFAULT_TOTAL_TIMEOUT_SECONDS
    user_agent: str = DEFAULT_USER_AGENT
    blocked_ipv4_first_octets: frozenset[int] = Field(
        default=DEFAULT_BLOCKED_IPV4_FIRST_OCTETS
    )
    inspect_ipv4_mapped: bool = Field(
        default=False, description="Check ::ffff:a.b.c.d hosts against the IPv4 rule"
    )
    debug: bool = Field(
        default=False, description="Use hour-long timeouts for debugging"
    )

    def to_limits(self) -> RequestLimits:
        """Build request limits from these settings.

        Raises:
            InvalidConfigurationError: If a value is out of range.
        """
        base = RequestLimits.for_debugging() if self.debug else RequestLimits()
        changes: dict[str, int | float | str] = {
            "max_response_bytes": self.max_response_bytes,
            "max_redirects": self.max_redirects,
            "user_agent": self.user_agent,
        }
        if not self.debug:
            changes["read_write_timeout_seconds"] = self.read_write_timeout_seconds
            changes["total_timeout_seconds"] = self.total_timeout_seconds
        return base.replace(**changes)

    def to_guard_policy(self) -> GuardPolicy:
        """Build the URL guard policy from these settings.

        Raises:
            InvalidConfigurationError: If a blocked octet is out of range.
        """
        try:
            return GuardPolicy(
                blocked_ipv4_first_octets=self.blocked_ipv4_first_octets,
                inspect_ipv4_mapped=self.inspect_ipv4_mapped,
            )
        except ValidationError as e:
            msg = f"Invalid guard policy: {e.errors()[0]['msg']}"
            raise InvalidConfigurationError(msg) from e


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
