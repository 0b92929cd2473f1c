"""Policy model for the URL guard."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_ALLOWED_SCHEMES = frozenset({"http", "https"})

# Loopback (127/8) and the 10/8 private block. 172.16/12 and 192.168/16
# are not blocked by default.
DEFAULT_BLOCKED_IPV4_FIRST_OCTETS = frozenset({127, 10})


class GuardPolicy(BaseModel):
    """Rules the URL guard applies before any network I/O."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed_schemes: Annotated[frozenset[str], Field(min_length=1)] = (
        DEFAULT_ALLOWED_SCHEMES
    )
    blocked_ipv4_first_octets: frozenset[Annotated[int, Field(ge=0, le=255)]] = (
        DEFAULT_BLOCKED_IPV4_FIRST_OCTETS
    )
    inspect_ipv4_mapped: bool = Field(
        default=False,
        description="Also apply the IPv4 rule to IPv4-mapped IPv6 literals",
    )

    @field_validator("allowed_schemes")
    @classmethod
    def normalize_schemes(cls, v: frozenset[str]) -> frozenset[str]:
        """Lowercase schemes so comparisons are case-insensitive."""
        return frozenset(scheme.lower() for scheme in v)
