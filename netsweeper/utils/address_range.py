# address_range.py

"""
This module expands a base address and prefix length into the ordered list of
usable IPv4 host addresses. Addresses are handled as unsigned 32-bit integers
and only formatted as dotted quads at the edges.
"""

import ipaddress
from typing import Callable, Optional

from netsweeper.utils.errors import InvalidAddress, InvalidPrefix

LARGE_RANGE_THRESHOLD = 1024

# confirm(cidr, host_count) -> bool
ConfirmHook = Callable[[str, int], bool]


def ip_to_int(address: str) -> int:
    """Parse a dotted-quad IPv4 address into an unsigned integer."""
    if not isinstance(address, str):
        raise InvalidAddress(f"Invalid IPv4 address: {address!r}")
    try:
        return int(ipaddress.IPv4Address(address.strip()))
    except ValueError:
        raise InvalidAddress(f"Invalid IPv4 address: {address!r}") from None


def int_to_ip(value: int) -> str:
    """Format an unsigned integer as a dotted-quad IPv4 address."""
    return str(ipaddress.IPv4Address(value & 0xFFFFFFFF))


def _check_prefix(prefix_length: int) -> int:
    if isinstance(prefix_length, bool) or not isinstance(prefix_length, int):
        raise InvalidPrefix(f"Invalid prefix length: {prefix_length!r}")
    if prefix_length < 1 or prefix_length > 32:
        raise InvalidPrefix(f"Prefix length must be between 1 and 32, got {prefix_length}")
    return prefix_length


def prefix_to_mask(prefix_length: int) -> int:
    """Subnet mask for a prefix length, as a 32-bit integer."""
    _check_prefix(prefix_length)
    return (0xFFFFFFFF << (32 - prefix_length)) & 0xFFFFFFFF


def host_count(prefix_length: int) -> int:
    """Number of addresses expand() returns for a prefix length."""
    _check_prefix(prefix_length)
    if prefix_length == 32:
        return 1
    if prefix_length == 31:
        return 2
    return 2 ** (32 - prefix_length) - 2


def network_cidr(address: str, prefix_length: int) -> str:
    """Network of an address in CIDR notation, e.g. 192.168.1.0/24."""
    network = ip_to_int(address) & prefix_to_mask(prefix_length)
    return f"{int_to_ip(network)}/{prefix_length}"


def expand(base_address: str, prefix_length: int) -> range:
    """
    Expand a base address and prefix length into the usable host addresses.

    The result is a lazy range of integers, so its length is known before any
    address is built.

    /1 to /30 exclude the network and broadcast addresses. /32 is a
    point-to-point interface and yields the base address itself. /31 yields
    both addresses of the pair (RFC 3021).
    """
    _check_prefix(prefix_length)
    base = ip_to_int(base_address)

    if prefix_length == 32:
        return range(base, base + 1)

    network = base & prefix_to_mask(prefix_length)
    if prefix_length == 31:
        return range(network, network + 2)

    count = host_count(prefix_length)
    return range(network + 1, network + count + 1)


def expand_cidr(cidr: str) -> range:
    """Expand CIDR notation ("10.0.0.0/24"). A bare address is treated as /32."""
    if not isinstance(cidr, str):
        raise InvalidAddress(f"Invalid network: {cidr!r}")
    address, _, prefix_text = cidr.strip().partition("/")
    if not prefix_text:
        return expand(address, 32)
    try:
        prefix_length = int(prefix_text)
    except ValueError:
        raise InvalidPrefix(f"Invalid prefix length: {prefix_text!r}") from None
    return expand(address, prefix_length)


def requires_confirmation(count: int) -> bool:
    return count > LARGE_RANGE_THRESHOLD


def confirm_range(cidr: str, count: int, confirm: Optional[ConfirmHook] = None) -> bool:
    """
    Decide whether a range of `count` hosts may be scanned.

    Small ranges are always allowed. Large ranges are handed to the confirm
    hook; without a hook they are declined.
    """
    if not requires_confirmation(count):
        return True
    if confirm is None:
        return False
    return bool(confirm(cidr, count))
