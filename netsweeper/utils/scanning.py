# scanning.py

"""This module provides the per-host probing utilities used by the network sweep:
ICMP reachability through the system ping, ARP table reads, reverse DNS and
NetBIOS name lookups, and TCP connect port probes."""

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
import math
import re
import socket
import subprocess
import sys
import time
from typing import List, Dict, Optional, Iterable, Tuple

from netsweeper.utils.data_classes import ScanOptions, ScanResult
from netsweeper.utils.vendor_lookup import VendorLookup, format_mac
from netsweeper.utils import stop_event
from netsweeper.ui import logger, Colors

IS_WINDOWS = sys.platform.startswith("win")
IS_MACOS = sys.platform == "darwin"

COMMAND_TIMEOUT = 3.0
NETBIOS_TIMEOUT = 3.0
DNS_TIMEOUT = 2.0

# gethostbyaddr has no timeout of its own, lookups run here and are waited on
_dns_executor = ThreadPoolExecutor(max_workers=16, thread_name_prefix="netsweeper-dns")

_MAC_RE = re.compile(r"([0-9a-fA-F]{1,2}(?:[:-][0-9a-fA-F]{1,2}){5})")
_IP_RE = re.compile(r"\b(\d{1,3}(?:\.\d{1,3}){3})\b")
_LATENCY_RE = re.compile(r"time\s*[=<]\s*([\d.]+)\s*ms", re.IGNORECASE)
_NETBIOS_RE = re.compile(r"^\s*([A-Za-z0-9\-_.$]{1,32})\s+<(\w{2})>\s+(\S+)")

_IGNORED_MACS = {"FF:FF:FF:FF:FF:FF", "00:00:00:00:00:00"}


def run_command(cmd: List[str], timeout: float = COMMAND_TIMEOUT) -> Optional[Tuple[int, str]]:
    """
    Run an OS command and return (return code, stdout).
    Returns None when the command is missing or times out.
    """
    try:
        completed = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            errors="replace",
        )
        return completed.returncode, completed.stdout or ""
    except subprocess.TimeoutExpired:
        logger.debug(f"Command timed out: {' '.join(cmd)}")
        return None
    except OSError as e:
        logger.debug(f"Command failed: {' '.join(cmd)} - {e}")
        return None


def _ping_command(ip: str, timeout: float) -> List[str]:
    if IS_WINDOWS:
        return ["ping", "-n", "1", "-w", str(int(timeout * 1000)), ip]
    if IS_MACOS:
        return ["ping", "-c", "1", "-W", str(int(timeout * 1000)), ip]
    return ["ping", "-c", "1", "-W", str(max(1, math.ceil(timeout))), ip]


def parse_ping_latency(output: str) -> Optional[float]:
    """Extract the round trip time from ping output, in seconds."""
    match = _LATENCY_RE.search(output)
    if not match:
        return None
    try:
        return float(match.group(1)) / 1000
    except ValueError:
        return None


def ping_host(ip: str, timeout: float = 1.0, count: int = 1) -> Optional[float]:
    """
    Ping a host with the system ping command, returns latency if successful.
    Up to `count` echo requests are sent, each bounded by `timeout`.
    """
    for _ in range(max(1, count)):
        if stop_event.is_set():
            return None

        start_time = time.time()
        result = run_command(_ping_command(ip, timeout), timeout=timeout + 1.5)
        elapsed = time.time() - start_time
        if result is None:
            continue

        code, output = result
        # Windows answers "Destination host unreachable" with a zero exit code
        if code == 0 and re.search(r"ttl=", output, re.IGNORECASE):
            latency = parse_ping_latency(output)
            return latency if latency is not None else elapsed

    return None


def parse_arp_output(output: str) -> Dict[str, str]:
    """
    Parse `arp -a`, `arp -n` or `ip neigh` output into an ip -> MAC mapping.
    Incomplete, broadcast and all-zero entries are skipped.
    """
    table = {}
    for line in output.splitlines():
        ip_match = _IP_RE.search(line)
        mac_match = _MAC_RE.search(line)
        if not ip_match or not mac_match:
            continue

        octets = [part.zfill(2) for part in re.split(r"[:-]", mac_match.group(1))]
        mac = format_mac("".join(octets))
        if mac is None or mac in _IGNORED_MACS:
            continue
        table[ip_match.group(1)] = mac
    return table


def _arp_commands(ip: str) -> List[List[str]]:
    if IS_WINDOWS:
        return [["arp", "-a", ip]]
    return [["ip", "neigh", "show", ip], ["arp", "-n", ip]]


def lookup_mac_address(ip: str) -> Optional[str]:
    """Read the local ARP table entry for a host. The host should have been pinged first."""
    for cmd in _arp_commands(ip):
        result = run_command(cmd)
        if result is None:
            continue
        _, output = result
        mac = parse_arp_output(output).get(ip)
        if mac:
            return mac
    return None


def clear_arp_cache() -> bool:
    """Flush the ARP table so stale entries are not reported. Needs admin rights."""
    if IS_WINDOWS:
        cmd = ["arp", "-d", "*"]
    else:
        cmd = ["ip", "neigh", "flush", "all"]

    result = run_command(cmd)
    if result is None:
        return False
    code, _ = result
    return code == 0


def reverse_dns(ip: str, timeout: float = DNS_TIMEOUT) -> Optional[str]:
    """Resolve the hostname for a given IP address, giving up after `timeout` seconds."""
    future = _dns_executor.submit(socket.gethostbyaddr, ip)
    try:
        hostname = future.result(timeout=timeout)[0]
    except FutureTimeout:
        future.cancel()
        logger.debug(f"Reverse DNS for {ip} timed out after {timeout}s")
        return None
    except (socket.herror, socket.gaierror, OSError):
        return None
    if not hostname or hostname == ip:
        return None
    return hostname


def netbios_name(ip: str, timeout: float = NETBIOS_TIMEOUT) -> Optional[str]:
    """Query the NetBIOS name of a host with nbtstat (Windows) or nmblookup."""
    cmd = ["nbtstat", "-A", ip] if IS_WINDOWS else ["nmblookup", "-A", ip]
    result = run_command(cmd, timeout=timeout)
    if result is None:
        return None

    _, output = result
    for line in output.splitlines():
        match = _NETBIOS_RE.search(line)
        if not match:
            continue
        name, suffix, kind = match.groups()
        # Skip group registrations such as WORKGROUP<00> GROUP
        if kind.upper() == "GROUP" or "<GROUP>" in line.upper():
            continue
        if suffix in ("00", "20"):
            return name.strip()
    return None


def resolve_hostname(ip: str, dns_timeout: float = DNS_TIMEOUT,
                     netbios_timeout: float = NETBIOS_TIMEOUT) -> Optional[str]:
    """Reverse DNS first, NetBIOS as a fallback."""
    return reverse_dns(ip, dns_timeout) or netbios_name(ip, netbios_timeout)


def tcp_scan(ip: str, port: int, timeout: float = 0.1) -> bool:
    """
    Perform a TCP connect on a specified IP and port.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            return sock.connect_ex((ip, port)) == 0
    except (socket.error, OSError) as e:
        logger.debug(f"{Colors.RED}TCP scan error on {ip}:{port} - {e}{Colors.ENDC}")
        return False


def scan_ports(ip: str, ports: Iterable[int], timeout: float = 0.1) -> List[int]:
    """
    Probe ports one after the other. Each connect is bounded by `timeout`,
    so a host never takes longer than len(ports) * timeout.
    """
    open_ports = set()
    for port in ports:
        if stop_event.is_set():
            break
        if tcp_scan(ip, port, timeout):
            open_ports.add(port)
    return sorted(open_ports)


class ProbeWorker:
    """Probes a single address: ping, MAC address, name, ports and vendor."""

    def __init__(self, options: Optional[ScanOptions] = None, vendor_lookup: Optional[VendorLookup] = None):
        self.options = options or ScanOptions()
        self.vendor_lookup = vendor_lookup

    def _attempt(self, step: str, ip: str, func, *args):
        try:
            return func(*args)
        except Exception as e:
            logger.debug(f"{step} failed for {ip}: {e}")
            return None

    def probe(self, address: str, port_list: Optional[Iterable[int]] = None,
              skip_ports: bool = False) -> Optional[ScanResult]:
        """
        Probe a host. Returns None when it does not answer ping, so unreachable
        addresses never show up in a report.
        """
        if stop_event.is_set():
            return None

        latency = self._attempt("Ping", address, ping_host, address,
                                self.options.ping_timeout, self.options.ping_count)
        if latency is None:
            return None

        mac_address = self._attempt("ARP lookup", address, lookup_mac_address, address)
        hostname = self._attempt("Name resolution", address, resolve_hostname, address,
                                 self.options.dns_timeout, self.options.netbios_timeout)

        open_ports = []
        ports = list(port_list or [])
        if not skip_ports and ports:
            open_ports = self._attempt("Port scan", address, scan_ports, address,
                                       ports, self.options.port_timeout) or []

        vendor = None
        if mac_address and self.vendor_lookup is not None:
            vendor = self._attempt("Vendor lookup", address, self.vendor_lookup.resolve, mac_address) or None

        return ScanResult(
            ip=address,
            reachable=True,
            latency=latency,
            mac_address=mac_address,
            vendor=vendor,
            hostname=hostname,
            open_ports=tuple(open_ports),
        )
