"""URL guard for requests made on behalf of untrusted input."""

import ipaddress

import httpx
import structlog

from src.features.fetch.errors import UnsafeUrlError
from src.features.fetch.guard.addresses import (
    UnrecognizedAddressError,
    is_ipv6_loopback,
    parse_ip_literal,
)
from src.features.fetch.guard.models import GuardVerdict, RejectionReason
from src.features.fetch.guard.policy import GuardPolicy
from src.features.fetch.redact import redact_url_credentials


logger = structlog.get_logger()

_REJECTION_MESSAGES: dict[RejectionReason, str] = {
    RejectionReason.MALFORMED_URL: "URL could not be parsed",
    RejectionReason.DISALLOWED_SCHEME: "URL uses a disallowed scheme",
    RejectionReason.MISSING_HOST: "URL has no host",
    RejectionReason.BLOCKED_IPV4: "URL points at a loopback or private IPv4 address",
    RejectionReason.IPV6_LOOPBACK: "URL points at the IPv6 loopback address",
    RejectionReason.UNRECOGNIZED_ADDRESS: "URL host is not an IPv4 or IPv6 address",
    RejectionReason.UNQUALIFIED_HOST: "URL host name does not contain a period",
}


class UriGuard:
    """Decides whether a URL is safe to dereference.

    Rules are applied in order and the first failing rule rejects:
    - Scheme must be in the allow-list (http, https by default)
    - Literal IPv4 hosts must not start with a blocked octet (127, 10)
    - Literal IPv6 hosts must not be the loopback address
    - Host names must contain at least one period

    The name rule is a heuristic. No DNS lookups are made, so names that
    resolve to internal addresses are not caught.
    """

    def __init__(self, policy: GuardPolicy | None = None) -> None:
        """Initialize the guard.

        Args:
            policy: Guard policy; defaults to GuardPolicy().
        """
        self._policy = policy or GuardPolicy()
        self._log = logger.bind(component="guard")

    @property
    def policy(self) -> GuardPolicy:
        """Get the policy in force."""
        return self._policy

    def check(self, url: str | httpx.URL) -> GuardVerdict:
        """Check a URL against the guard rules.

        Args:
            url: Candidate URL.

        Returns:
            Verdict naming the first failing rule, if any.
        """
        try:
            parsed = url if isinstance(url, httpx.URL) else httpx.URL(url)
        except httpx.InvalidURL:
            return self._reject(url, RejectionReason.MALFORMED_URL, host=None)

        if parsed.scheme.lower() not in self._policy.allowed_schemes:
            return self._reject(url, RejectionReason.DISALLOWED_SCHEME, parsed.host)

        host = parsed.host
        if not host:
            return self._reject(url, RejectionReason.MISSING_HOST, host=None)

        try:
            address = parse_ip_literal(host)
        except UnrecognizedAddressError:
            return self._reject(url, RejectionReason.UNRECOGNIZED_ADDRESS, host)

        if address is None:
            if "." not in host:
                return self._reject(url, RejectionReason.UNQUALIFIED_HOST, host)
            return GuardVerdict(host=host)

        reason = self._classify_address(address)
        if reason is not None:
            return self._reject(url, reason, host)
        return GuardVerdict(host=host)

    def validate(self, url: str | httpx.URL) -> bool:
        """Check if a URL is safe to dereference."""
        return self.check(url).is_safe

    def require_safe(self, url: str | httpx.URL) -> GuardVerdict:
        """Check a URL and raise if it is unsafe.

        Args:
            url: Candidate URL.

        Returns:
            The (safe) verdict.

        Raises:
            UnsafeUrlError: If any guard rule rejects the URL.
        """
        verdict = self.check(url)
        if verdict.reason is not None:
            redacted = redact_url_credentials(str(url))
            msg = f"{_REJECTION_MESSAGES[verdict.reason]}: {redacted}"
            raise UnsafeUrlError(msg, reason=verdict.reason, url=redacted)
        return verdict

    def _classify_address(
        self,
        address: ipaddress.IPv4Address | ipaddress.IPv6Address,
    ) -> RejectionReason | None:
        if isinstance(address, ipaddress.IPv6Address):
            if is_ipv6_loopback(address):
                return RejectionReason.IPV6_LOOPBACK
            mapped = address.ipv4_mapped
            if mapped is None or not self._policy.inspect_ipv4_mapped:
                return None
            address = mapped

        if isinstance(address, ipaddress.IPv4Address):
            if address.packed[0] in self._policy.blocked_ipv4_first_octets:
                return RejectionReason.BLOCKED_IPV4
            return None

        return RejectionReason.UNRECOGNIZED_ADDRESS

    def _reject(
        self,
        url: str | httpx.URL,
        reason: RejectionReason,
        host: str | None,
    ) -> GuardVerdict:
        self._log.warning(
            "url_rejected",
            url=redact_url_credentials(str(url)),
            reason=reason.value,
        )
        return GuardVerdict(reason=reason, host=host)
