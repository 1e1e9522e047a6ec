# vendor_lookup.py

"""
MAC vendor identification. Vendors are resolved from a persistent cache, then
a bundled table of well-known OUI prefixes, then (when online) the
macvendors.com API. Every successful resolution is written back to the cache.
"""

import json
import os
import re
import threading
from pathlib import Path
from typing import Callable, Dict, Optional

import requests

from netsweeper.ui import logger

CACHE_ENV_VAR = "NETSWEEPER_VENDOR_CACHE"
MACVENDORS_URL = "https://api.macvendors.com"
MAX_API_TIMEOUT = 2.0

_HEX_RE = re.compile(r"^[0-9A-F]+$")

# resolver(oui) -> vendor name or None
VendorResolver = Callable[[str], Optional[str]]

STATIC_OUI_TABLE: Dict[str, str] = {
    # Virtualization
    "000C29": "VMware, Inc.",
    "005056": "VMware, Inc.",
    "000569": "VMware, Inc.",
    "001C14": "VMware, Inc.",
    "080027": "Oracle VirtualBox",
    "0A0027": "Oracle VirtualBox",
    "00155D": "Microsoft Hyper-V",
    "001C42": "Parallels, Inc.",
    "00163E": "Xensource, Inc.",
    "525400": "QEMU/KVM",
    # Single-board computers
    "B827EB": "Raspberry Pi Foundation",
    "DCA632": "Raspberry Pi Trading Ltd",
    "E45F01": "Raspberry Pi Trading Ltd",
    "2CCF67": "Raspberry Pi Trading Ltd",
    "D83ADD": "Raspberry Pi Trading Ltd",
    # Network equipment
    "00000C": "Cisco Systems, Inc",
    "00500F": "Cisco Systems, Inc",
    "44D9E7": "Ubiquiti Inc",
    "245A4C": "Ubiquiti Inc",
    "788A20": "Ubiquiti Inc",
    "50C7BF": "TP-Link Technologies Co.,Ltd.",
    "A42BB0": "TP-Link Technologies Co.,Ltd.",
    "A040A0": "NETGEAR",
    "001132": "Synology Incorporated",
    # Computers and peripherals
    "001422": "Dell Inc.",
    "F8BC12": "Dell Inc.",
    "D4BED9": "Dell Inc.",
    "3CD92B": "Hewlett Packard",
    "001B78": "Hewlett Packard",
    "0050F2": "Microsoft Corporation",
    "000D3A": "Microsoft Corporation",
    "001B21": "Intel Corporate",
    "0024D7": "Intel Corporate",
    "001EC2": "Apple, Inc.",
    "0050E4": "Apple, Inc.",
    "3C5A37": "Samsung Electronics Co.,Ltd",
    "F4F5D8": "Google, Inc.",
    "001A11": "Google, Inc.",
    "00E04C": "Realtek Semiconductor Corp.",
}


def normalize_mac(mac) -> str:
    """Strip separators and uppercase a hardware address."""
    if not isinstance(mac, str):
        return ""
    return re.sub(r"[\s:\-.]", "", mac).upper()


def oui_prefix(mac) -> str:
    """Return the 6 hex character OUI prefix of a MAC address, or "" if there is none."""
    prefix = normalize_mac(mac)[:6]
    if len(prefix) < 6 or not _HEX_RE.match(prefix):
        return ""
    return prefix


def format_mac(mac) -> Optional[str]:
    """Format a MAC address as AA:BB:CC:DD:EE:FF. Returns None if it is not a full MAC."""
    clean = normalize_mac(mac)
    if len(clean) != 12 or not _HEX_RE.match(clean):
        return None
    return ":".join(clean[i:i + 2] for i in range(0, 12, 2))


def default_cache_path() -> Path:
    """Per-user location of the vendor cache file."""
    override = os.environ.get(CACHE_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".netsweeper" / "vendor_cache.json"


class VendorCache:
    """Thread-safe OUI -> vendor name mapping, persisted as JSON between runs."""

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._entries: Dict[str, str] = {}
        for key, value in (entries or {}).items():
            self.set(key, value)

    def get(self, oui: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(oui)

    def set(self, oui: str, vendor: str) -> None:
        key = oui_prefix(oui)
        if not key or not vendor:
            return
        with self._lock:
            self._entries[key] = vendor

    def __contains__(self, oui) -> bool:
        with self._lock:
            return oui in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._entries)

    @classmethod
    def load(cls, path) -> "VendorCache":
        """Load the cache from disk. A missing or corrupt file gives an empty cache."""
        path = Path(path)
        if not path.exists():
            logger.debug(f"No vendor cache at {path}, starting empty")
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as cache_file:
                data = json.load(cache_file)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read vendor cache {path}: {e}")
            return cls()

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed vendor cache {path}")
            return cls()

        entries = {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}
        logger.debug(f"Loaded {len(entries)} vendor cache entries from {path}")
        return cls(entries)

    def save(self, path) -> bool:
        """Write the cache to disk. Failures are logged and reported as False."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as cache_file:
                json.dump(self.snapshot(), cache_file, indent=2, sort_keys=True)
        except (OSError, TypeError) as e:
            logger.warning(f"Could not save vendor cache to {path}: {e}")
            return False
        logger.debug(f"Saved {len(self)} vendor cache entries to {path}")
        return True


class MacVendorsResolver:
    """Looks up an OUI with the macvendors.com API. Any failure is a miss."""

    def __init__(self, timeout: float = MAX_API_TIMEOUT, base_url: str = MACVENDORS_URL):
        self.timeout = min(timeout, MAX_API_TIMEOUT)
        self.base_url = base_url.rstrip("/")

    def __call__(self, oui: str) -> Optional[str]:
        try:
            response = requests.get(f"{self.base_url}/{oui}", timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.debug(f"Vendor API lookup failed for {oui}: {e}")
            return None

        if response.status_code != 200:
            logger.debug(f"Vendor API returned {response.status_code} for {oui}")
            return None

        vendor = response.text.strip()
        # Errors come back as {"errors": {...}}
        if not vendor or vendor.startswith("{"):
            return None
        return vendor


class VendorLookup:
    """Resolves MAC vendors: cache, then static table, then the optional resolver."""

    def __init__(self, cache: Optional[VendorCache] = None, resolver: Optional[VendorResolver] = None):
        self.cache = cache if cache is not None else VendorCache()
        self.resolver = resolver

    def resolve(self, mac) -> str:
        """Return the vendor name for a MAC address, or "" when unknown. Never raises."""
        oui = oui_prefix(mac)
        if not oui:
            return ""

        cached = self.cache.get(oui)
        if cached:
            return cached

        vendor = STATIC_OUI_TABLE.get(oui)
        if vendor:
            self.cache.set(oui, vendor)
            return vendor

        if self.resolver is None:
            return ""

        try:
            vendor = self.resolver(oui)
        except Exception as e:
            logger.debug(f"Vendor resolver error for {oui}: {e}")
            return ""

        if not isinstance(vendor, str) or not vendor.strip():
            return ""
        vendor = vendor.strip()
        self.cache.set(oui, vendor)
        return vendor


def resolve(hardware_address, cache: VendorCache, resolver: Optional[VendorResolver] = None) -> str:
    """Resolve a hardware address against a cache without keeping a VendorLookup around."""
    return VendorLookup(cache, resolver).resolve(hardware_address)
