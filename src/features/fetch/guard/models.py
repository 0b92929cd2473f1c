"""Data models for URL guard decisions."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RejectionReason(str, Enum):
    """Why a URL was judged unsafe to dereference.

    - MALFORMED_URL: URL could not be parsed
    - DISALLOWED_SCHEME: Scheme outside the allow-list
    - MISSING_HOST: URL has no host component
    - BLOCKED_IPV4: Literal IPv4 address in a blocked block (loopback/private)
    - IPV6_LOOPBACK: Literal IPv6 loopback address
    - UNRECOGNIZED_ADDRESS: Numeric host that is neither valid IPv4 nor IPv6
    - UNQUALIFIED_HOST: Host name without a period
    """

    MALFORMED_URL = "MALFORMED_URL"
    DISALLOWED_SCHEME = "DISALLOWED_SCHEME"
    MISSING_HOST = "MISSING_HOST"
    BLOCKED_IPV4 = "BLOCKED_IPV4"
    IPV6_LOOPBACK = "IPV6_LOOPBACK"
    UNRECOGNIZED_ADDRESS = "UNRECOGNIZED_ADDRESS"
    UNQUALIFIED_HOST = "UNQUALIFIED_HOST"


class GuardVerdict(BaseModel):
    """Outcome of checking one URL against the guard rules."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    reason: RejectionReason | None = Field(
        default=None, description="First failing rule, None when safe"
    )
    host: str | None = Field(default=None, description="Host as parsed")

    @property
    def is_safe(self) -> bool:
        """Check if no rule rejected the URL."""
        return self.reason is None
