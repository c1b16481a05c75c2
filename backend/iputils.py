"""
Address utilities: literal checks and netmask arithmetic on address strings.

All address identity in the RIB goes through `equal()`, which compares the
canonical *strings* of two addresses. canonicalize() must therefore be
deterministic and total over every valid address.
"""

from __future__ import annotations

import ipaddress
import re
from typing import Optional

_IPV4_RE = re.compile(r'^([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})$')
_PREFIX_LEN_RE = re.compile(r'^/?([0-9]{1,3})$')

# Contiguous netmask octet → number of one-bits
_OCTET_BITS = {
    0x80: 1,
    0xC0: 2,
    0xE0: 3,
    0xF0: 4,
    0xF8: 5,
    0xFC: 6,
    0xFE: 7,
    0xFF: 8,
}


def _ipv4_octets(address: str) -> Optional[list[int]]:
    m = _IPV4_RE.match(address)
    if not m:
        return None
    octets = [int(g) for g in m.groups()]
    if any(o > 255 for o in octets):
        return None
    return octets


def _is_ipv6(address: str) -> bool:
    try:
        ipaddress.IPv6Address(address)
    except ValueError:
        return False
    return True


def validate(address: Optional[str]) -> tuple[bool, Optional[int]]:
    """
    Check that `address` is a numeric IPv4 or IPv6 literal.

    Returns (ok, version). No name resolution happens; hostnames fail.

    >>> validate("010.008.000.001")
        (True, 4)
    >>> validate("2001:db8::1")
        (True, 6)
    >>> validate("localhost")
        (False, None)
    """
    if not address or not isinstance(address, str):
        return False, None
    address = address.strip()
    if _ipv4_octets(address) is not None:
        return True, 4
    if _is_ipv6(address):
        return True, 6
    return False, None


def is_prefix_length(value: Optional[str]) -> bool:
    """True for an IPv6 prefix length written as `64` or `/64`."""
    if not value or not isinstance(value, str):
        return False
    m = _PREFIX_LEN_RE.match(value.strip())
    return bool(m) and int(m.group(1)) <= 128


def netmask_to_prefix_length(netmask: str) -> int:
    """
    Count the leading one-bits of a dotted netmask, octet by octet.

    Accumulation stops at the first octet that is not a contiguous mask
    value, and the partial sum is returned. `255.0.255.0` gives 8, and so
    does `255.3.0.0`. A zero octet ends the count the same way.
    """
    prefix_len = 0
    parts = netmask.strip().split(".")
    for part in parts[:4]:
        try:
            value = int(part)
        except ValueError:
            return prefix_len
        bits = _OCTET_BITS.get(value)
        if bits is None:
            return prefix_len
        prefix_len += bits
    return prefix_len


def network_address(address: str, netmask: str) -> str:
    """Octet-wise AND of an IPv4 address and a dotted netmask."""
    addr_octets = _ipv4_octets(address.strip())
    mask_octets = _ipv4_octets(netmask.strip())
    if addr_octets is None or mask_octets is None:
        raise ValueError(f"not an IPv4 address/netmask pair: {address!r} {netmask!r}")
    return ".".join(str(a & m) for a, m in zip(addr_octets, mask_octets))


def canonicalize(address: str) -> str:
    """
    Canonical text form of an address.

    IPv4 components are re-printed as plain decimal integers
    (`192.168.001.1` → `192.168.1.1`), IPv6 uses the lowercase compressed
    form. Anything that is not an address literal comes back stripped.
    """
    address = address.strip()
    octets = _ipv4_octets(address)
    if octets is not None:
        return ".".join(str(o) for o in octets)
    if _is_ipv6(address):
        return ipaddress.IPv6Address(address).compressed
    m = _PREFIX_LEN_RE.match(address)
    if m:
        return str(int(m.group(1)))
    return address


def equal(a: Optional[str], b: Optional[str]) -> bool:
    """String equality of the canonical forms. Not a numeric comparison."""
    if a is None or b is None:
        return False
    return canonicalize(a) == canonicalize(b)
