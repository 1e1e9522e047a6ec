# data_classes.py

"""
This module defines data classes for storing and managing network discovery
results: the selected interface, the per-host scan results, the final scan
report and the options that drive a scan.
"""

from dataclasses import dataclass, field
from typing import List, Tuple, Dict, Optional, Any
import datetime

from netsweeper.utils.address_range import ip_to_int, network_cidr

DEFAULT_CONCURRENCY = 30
MAX_CONCURRENCY = 1024


@dataclass(frozen=True)
class NetworkInterface:
    """Data class to store a local network interface selected for scanning."""
    name: str
    description: str
    address: str
    prefix_length: int

    @property
    def cidr(self) -> str:
        """Return the interface network in CIDR notation."""
        return network_cidr(self.address, self.prefix_length)

    def __str__(self) -> str:
        return f"{self.name} - {self.address}/{self.prefix_length} ({self.cidr})"


@dataclass(frozen=True)
class ScanResult:
    """Class to store scan results for a responsive host."""
    ip: str
    reachable: bool = True
    latency: Optional[float] = None
    mac_address: Optional[str] = None
    vendor: Optional[str] = None
    hostname: Optional[str] = None
    open_ports: Tuple[int, ...] = ()

    @property
    def sort_key(self) -> int:
        """Numeric address, used to order hosts in reports."""
        return ip_to_int(self.ip)

    @property
    def latency_ms(self) -> Optional[float]:
        if self.latency is None:
            return None
        return self.latency * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "reachable": self.reachable,
            "latency_ms": round(self.latency_ms, 1) if self.latency is not None else None,
            "mac_address": self.mac_address,
            "vendor": self.vendor,
            "hostname": self.hostname,
            "open_ports": list(self.open_ports),
        }


@dataclass
class ScanReport:
    """Data class to store the result of a network-wide scan."""
    network: str
    interface: Optional[NetworkInterface]
    total_probed: int
    hosts: List[ScanResult]
    start_time: datetime.datetime
    duration: float

    @property
    def responsive_count(self) -> int:
        return len(self.hosts)

    def to_dict(self) -> Dict[str, Any]:
        """Structured form of the report, suitable for JSON export."""
        return {
            "network": self.network,
            "interface": self.interface.name if self.interface else None,
            "scan_time": self.start_time.strftime("%Y-%m-%d %H:%M:%S"),
            "duration": round(self.duration, 2),
            "total_probed": self.total_probed,
            "responsive": self.responsive_count,
            "hosts": [host.to_dict() for host in self.hosts],
        }


@dataclass
class ScanOptions:
    """Settings for a single scan invocation."""
    ports: List[int] = field(default_factory=list)
    skip_ports: bool = False
    concurrency_limit: int = DEFAULT_CONCURRENCY
    clear_arp_cache: bool = True
    offline: bool = False
    cache_path: Optional[str] = None
    ping_timeout: float = 1.0
    ping_count: int = 1
    port_timeout: float = 0.1
    dns_timeout: float = 2.0
    netbios_timeout: float = 3.0
    vendor_timeout: float = 2.0
