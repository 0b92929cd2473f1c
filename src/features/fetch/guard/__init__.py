"""URL guard protecting the host network from requests on untrusted input.

This module decides, before any network I/O, whether a URL is safe:
- Scheme allow-list
- Literal IPv4/IPv6 inspection in every textual form
- Dot-in-hostname heuristic for named hosts
"""

from src.features.fetch.guard.addresses import (
    UnrecognizedAddressError,
    is_ipv6_loopback,
    parse_ip_literal,
)
from src.features.fetch.guard.models import GuardVerdict, RejectionReason
from src.features.fetch.guard.policy import GuardPolicy
from src.features.fetch.guard.uri_guard import UriGuard


__all__ = [
    # Guard
    "UriGuard",
    # Policy
    "GuardPolicy",
    # Models
    "GuardVerdict",
    "RejectionReason",
    # Addresses
    "UnrecognizedAddressError",
    "is_ipv6_loopback",
    "parse_ip_literal",
]
