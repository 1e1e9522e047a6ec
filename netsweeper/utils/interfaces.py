# interfaces.py

"""
This module lists the local network interfaces with psutil and applies the
selection policy: only interfaces that are up, with an IPv4 address that is
neither loopback nor link-local, and that are not virtual or Bluetooth
adapters.
"""

import ipaddress
import re
import socket
from typing import Callable, List, Optional, Sequence

import psutil

from netsweeper.utils.data_classes import NetworkInterface
from netsweeper.utils.errors import NoActiveInterface
from netsweeper.ui import logger

EXCLUDED_KEYWORDS = (
    "loopback",
    "virtual",
    "vmware",
    "virtualbox",
    "vbox",
    "vmnet",
    "hyper-v",
    "vethernet",
    "bluetooth",
    "docker",
    "wsl",
)

# TAP adapters (tap0, TAP-Windows Adapter V9) without catching words that merely contain "tap"
_TAP_RE = re.compile(r"(?<![a-z])tap(?![a-z])")

LOOPBACK_NETWORK = ipaddress.IPv4Network("127.0.0.0/8")
LINK_LOCAL_NETWORK = ipaddress.IPv4Network("169.254.0.0/16")

# choose(interfaces) -> index of the chosen interface
ChooseHook = Callable[[Sequence[NetworkInterface]], Optional[int]]


def list_interfaces() -> List[NetworkInterface]:
    """Return every interface that is up and has an IPv4 address."""
    addrs = psutil.net_if_addrs()
    stats = psutil.net_if_stats()

    interfaces = []
    for name, addresses in addrs.items():
        st = stats.get(name)
        if not st or not st.isup:
            continue

        for addr in addresses:
            if addr.family != socket.AF_INET or not addr.address or not addr.netmask:
                continue
            try:
                network = ipaddress.IPv4Network(f"{addr.address}/{addr.netmask}", strict=False)
            except ValueError:
                logger.debug(f"Skipping {name}: invalid netmask {addr.netmask}")
                continue

            interfaces.append(NetworkInterface(
                name=name,
                description=name,
                address=addr.address,
                prefix_length=network.prefixlen,
            ))
    return interfaces


def is_excluded(iface: NetworkInterface) -> bool:
    """True for loopback, link-local, virtual and Bluetooth interfaces."""
    label = f"{iface.name} {iface.description}".lower()
    if any(keyword in label for keyword in EXCLUDED_KEYWORDS) or _TAP_RE.search(label):
        return True

    try:
        address = ipaddress.IPv4Address(iface.address)
    except ValueError:
        return True
    return address in LOOPBACK_NETWORK or address in LINK_LOCAL_NETWORK


def qualifying_interfaces(interfaces: Optional[Sequence[NetworkInterface]] = None) -> List[NetworkInterface]:
    if interfaces is None:
        interfaces = list_interfaces()
    return [iface for iface in interfaces if not is_excluded(iface)]


def select_interface(interfaces: Optional[Sequence[NetworkInterface]] = None,
                     choose: Optional[ChooseHook] = None,
                     name: Optional[str] = None) -> NetworkInterface:
    """
    Pick the interface to scan.

    An explicit name must match one of the interfaces. Otherwise a single
    qualifying interface is selected automatically and several are handed to
    `choose`, the first one being the default.
    """
    if interfaces is None:
        interfaces = list_interfaces()

    if name:
        for iface in interfaces:
            if iface.name == name:
                return iface
        raise NoActiveInterface(f"Interface '{name}' not found or has no IPv4 address")

    candidates = qualifying_interfaces(interfaces)
    if not candidates:
        raise NoActiveInterface("No active network interface found")

    if len(candidates) == 1:
        logger.info(f"Using interface {candidates[0]}")
        return candidates[0]

    index = choose(candidates) if choose else None
    if index is None or not 0 <= index < len(candidates):
        index = 0
    return candidates[index]
