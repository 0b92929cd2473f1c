"""Literal IP address recognition for URL hosts.

Resolvers accept IPv4 literals in more forms than dotted decimal: shortened
(``127.1``), a single integer (``2130706433``), hex (``0x7f000001``) and
octal parts (``0177.0.0.1``). A host is treated as an IPv4 literal when its
last label is numeric, and then has to parse completely.
"""

import ipaddress
import string


_HEX_DIGITS = frozenset(string.hexdigits)
_OCTAL_DIGITS = frozenset(string.octdigits)
_MAX_IPV4_PARTS = 4


class UnrecognizedAddressError(ValueError):
    """Raised when a host looks numeric but is not a valid IPv4 or IPv6 address."""


def _parse_ipv4_number(part: str) -> int | None:
    """Parse one IPv4 part in decimal, octal (leading 0) or hex (0x).

    Args:
        part: Label text.

    Returns:
        Parsed value, or None if the label is not a number.
    """
    if not part:
        return None
    if part[:2].lower() == "0x":
        digits = part[2:]
        if not digits:
            return 0
        if not set(digits) <= _HEX_DIGITS:
            return None
        return int(digits, 16)
    if len(part) > 1 and part[0] == "0":
        digits = part[1:]
        if not set(digits) <= _OCTAL_DIGITS:
            return None
        return int(digits, 8)
    if not part.isascii() or not part.isdigit():
        return None
    return int(part)


def _ends_in_number(parts: list[str]) -> bool:
    last = parts[-1]
    if last.isascii() and last.isdigit():
        return True
    return _parse_ipv4_number(last) is not None


def _parse_ipv4(parts: list[str], host: str) -> ipaddress.IPv4Address:
    if len(parts) > _MAX_IPV4_PARTS:
        msg = f"Too many parts for an IPv4 address: {host}"
        raise UnrecognizedAddressError(msg)

    numbers: list[int] = []
    for part in parts:
        number = _parse_ipv4_number(part)
        if number is None:
            msg = f"Invalid IPv4 part {part!r} in {host}"
            raise UnrecognizedAddressError(msg)
        numbers.append(number)

    if any(n > 255 for n in numbers[:-1]):  # noqa: PLR2004
        msg = f"IPv4 part out of range in {host}"
        raise UnrecognizedAddressError(msg)
    if numbers[-1] >= 256 ** (5 - len(numbers)):
        msg = f"IPv4 address out of range: {host}"
        raise UnrecognizedAddressError(msg)

    value = numbers[-1]
    for index, number in enumerate(numbers[:-1]):
        value += number * 256 ** (3 - index)
    return ipaddress.IPv4Address(value)


def parse_ip_literal(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    """Interpret a URL host as a literal IP address.

    Args:
        host: Host component without brackets.

    Returns:
        The address, or None when the host is a name.

    Raises:
        UnrecognizedAddressError: If the host looks like an address but is
            neither a valid IPv4 nor a valid IPv6 literal.
    """
    if ":" in host:
        try:
            address = ipaddress.ip_address(host)
        except ValueError as e:
            msg = f"Invalid IPv6 address: {host}"
            raise UnrecognizedAddressError(msg) from e
        return address

    parts = host.split(".")
    if len(parts) > 1 and parts[-1] == "":
        parts.pop()
    if not parts or not _ends_in_number(parts):
        return None
    return _parse_ipv4(parts, host)


def is_ipv6_loopback(address: ipaddress.IPv6Address) -> bool:
    """Check for ::1 by its bytes: fifteen zero bytes followed by 1."""
    packed = address.packed
    return packed[:-1] == bytes(len(packed) - 1) and packed[-1] == 1
