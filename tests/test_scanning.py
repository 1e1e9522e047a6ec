import socket
import threading
import time

import pytest

from netsweeper import utils
from netsweeper.utils import scanning
from netsweeper.utils.data_classes import ScanOptions
from netsweeper.utils.scanning import (
    ProbeWorker, netbios_name, parse_arp_output, parse_ping_latency, ping_host,
    scan_ports, tcp_scan,
)
from netsweeper.utils.vendor_lookup import VendorCache, VendorLookup

WINDOWS_ARP = """
Interface: 192.168.1.10 --- 0xb
  Internet Address      Physical Address      Type
  192.168.1.1           3c-5a-37-aa-bb-cc     dynamic
  192.168.1.255         ff-ff-ff-ff-ff-ff     static
  224.0.0.22            01-00-5e-00-00-16     static
"""

LINUX_NEIGH = """
192.168.1.1 dev eth0 lladdr 00:0c:29:12:34:56 REACHABLE
192.168.1.7 dev eth0  FAILED
192.168.1.9 dev eth0 INCOMPLETE
"""

ARP_N = """
Address                  HWtype  HWaddress           Flags Mask            Iface
192.168.1.20             ether   b8:27:eb:01:02:03   C                     eth0
192.168.1.21                     (incomplete)                              eth0
"""

MACOS_ARP = "? (192.168.1.30) at 0:c:29:a:b:c on en0 ifscope [ethernet]"

WINDOWS_PING_OK = """
Pinging 192.168.1.1 with 32 bytes of data:
Reply from 192.168.1.1: bytes=32 time=4ms TTL=64
"""

WINDOWS_PING_UNREACHABLE = """
Pinging 192.168.1.50 with 32 bytes of data:
Reply from 192.168.1.10: Destination host unreachable.
"""

LINUX_PING_OK = "64 bytes from 192.168.1.1: icmp_seq=1 ttl=64 time=0.512 ms"

NBTSTAT = """
           NetBIOS Remote Machine Name Table

       Name               Type         Status
    ---------------------------------------------
    WORKGROUP      <00>  GROUP       Registered
    DESKTOP-42     <00>  UNIQUE      Registered
    DESKTOP-42     <20>  UNIQUE      Registered
"""

NMBLOOKUP = """
Looking up status of 192.168.1.40
	WORKGROUP       <00> - <GROUP> M <ACTIVE>
	FILESERVER      <00> -         M <ACTIVE>
"""


def test_parse_windows_arp():
    table = parse_arp_output(WINDOWS_ARP)
    assert table["192.168.1.1"] == "3C:5A:37:AA:BB:CC"
    assert "192.168.1.255" not in table
    assert "192.168.1.10" not in table


def test_parse_linux_neigh():
    table = parse_arp_output(LINUX_NEIGH)
    assert table == {"192.168.1.1": "00:0C:29:12:34:56"}


def test_parse_arp_n():
    assert parse_arp_output(ARP_N) == {"192.168.1.20": "B8:27:EB:01:02:03"}


def test_parse_macos_unpadded_mac():
    assert parse_arp_output(MACOS_ARP) == {"192.168.1.30": "00:0C:29:0A:0B:0C"}


def test_parse_ping_latency():
    assert parse_ping_latency(WINDOWS_PING_OK) == pytest.approx(0.004)
    assert parse_ping_latency(LINUX_PING_OK) == pytest.approx(0.000512)
    assert parse_ping_latency("Reply from 10.0.0.1: bytes=32 time<1ms TTL=128") == pytest.approx(0.001)
    assert parse_ping_latency("no timing here") is None


def test_ping_host_success(monkeypatch):
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: (0, WINDOWS_PING_OK))
    assert ping_host("192.168.1.1") == pytest.approx(0.004)


def test_ping_host_unreachable_with_zero_exit(monkeypatch):
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: (0, WINDOWS_PING_UNREACHABLE))
    assert ping_host("192.168.1.50") is None


def test_ping_host_failed_command(monkeypatch):
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: None)
    assert ping_host("192.168.1.50") is None


def test_ping_host_retries(monkeypatch):
    answers = [(1, "Request timed out."), (0, LINUX_PING_OK)]
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: answers.pop(0))
    assert ping_host("192.168.1.1", count=2) == pytest.approx(0.000512)


def test_ping_host_stops_when_interrupted(monkeypatch):
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: (0, LINUX_PING_OK))
    utils.stop_event.set()
    assert ping_host("192.168.1.1") is None


def test_lookup_mac_falls_back_to_arp(monkeypatch):
    outputs = {"ip": (0, ""), "arp": (0, ARP_N)}
    monkeypatch.setattr(scanning, "IS_WINDOWS", False)
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: outputs[cmd[0]])
    assert scanning.lookup_mac_address("192.168.1.20") == "B8:27:EB:01:02:03"
    assert scanning.lookup_mac_address("192.168.1.99") is None


def test_clear_arp_cache(monkeypatch):
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: (0, ""))
    assert scanning.clear_arp_cache() is True
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: (1, "Access denied"))
    assert scanning.clear_arp_cache() is False
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: None)
    assert scanning.clear_arp_cache() is False


@pytest.mark.parametrize("windows, output, expected", [
    (True, NBTSTAT, "DESKTOP-42"),
    (False, NMBLOOKUP, "FILESERVER"),
    (False, "name_query failed to find name", None),
])
def test_netbios_name(monkeypatch, windows, output, expected):
    monkeypatch.setattr(scanning, "IS_WINDOWS", windows)
    monkeypatch.setattr(scanning, "run_command", lambda cmd, timeout=None: (0, output))
    assert netbios_name("192.168.1.40") == expected


def test_resolve_hostname_prefers_dns(monkeypatch):
    monkeypatch.setattr(scanning, "reverse_dns", lambda ip, timeout: "printer.lan")
    monkeypatch.setattr(scanning, "netbios_name", lambda ip, timeout: pytest.fail("NetBIOS should not be queried"))
    assert scanning.resolve_hostname("192.168.1.5") == "printer.lan"


def test_resolve_hostname_netbios_fallback(monkeypatch):
    monkeypatch.setattr(scanning, "reverse_dns", lambda ip, timeout: None)
    monkeypatch.setattr(scanning, "netbios_name", lambda ip, timeout: "DESKTOP-42")
    assert scanning.resolve_hostname("192.168.1.5") == "DESKTOP-42"


def test_reverse_dns_failure(monkeypatch):
    def fail(ip):
        raise socket.herror("not found")

    monkeypatch.setattr(scanning.socket, "gethostbyaddr", fail)
    assert scanning.reverse_dns("192.168.1.5") is None


def test_reverse_dns_gives_up_on_stalled_resolver(monkeypatch):
    release = threading.Event()

    def stalled(ip):
        release.wait(5)
        return ("late.lan", [], [ip])

    monkeypatch.setattr(scanning.socket, "gethostbyaddr", stalled)
    monkeypatch.setattr(scanning, "netbios_name", lambda ip, timeout: None)
    try:
        started = time.monotonic()
        assert scanning.resolve_hostname("192.168.1.5", dns_timeout=0.2) is None
        assert time.monotonic() - started < 1.5
    finally:
        release.set()


def test_reverse_dns_success(monkeypatch):
    monkeypatch.setattr(scanning.socket, "gethostbyaddr", lambda ip: ("nas.lan", [], [ip]))
    assert scanning.reverse_dns("192.168.1.6") == "nas.lan"


def test_probe_passes_name_timeouts(stub_probes, monkeypatch):
    seen = []
    monkeypatch.setattr(scanning, "resolve_hostname", lambda ip, *timeouts: seen.append(timeouts))
    ProbeWorker(ScanOptions(dns_timeout=0.5, netbios_timeout=1.5)).probe("192.168.1.8", [])
    assert seen == [(0.5, 1.5)]


def test_tcp_scan_against_local_listener():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        port = server.getsockname()[1]
        assert tcp_scan("127.0.0.1", port, timeout=1.0) is True

    assert tcp_scan("127.0.0.1", port, timeout=1.0) is False


def test_scan_ports_sorted_and_unique(monkeypatch):
    monkeypatch.setattr(scanning, "tcp_scan", lambda ip, port, timeout: port in (443, 22))
    assert scan_ports("10.0.0.1", [443, 80, 22, 443]) == [22, 443]


@pytest.fixture
def stub_probes(monkeypatch):
    calls = []

    def record(name, value):
        def stub(*args):
            calls.append(name)
            return value
        return stub

    monkeypatch.setattr(scanning, "ping_host", record("ping", 0.002))
    monkeypatch.setattr(scanning, "lookup_mac_address", record("arp", "3C:5A:37:AA:BB:CC"))
    monkeypatch.setattr(scanning, "resolve_hostname", record("name", "phone.lan"))
    monkeypatch.setattr(scanning, "scan_ports", record("ports", [80, 443]))
    return calls


def test_probe_builds_result(stub_probes):
    lookup = VendorLookup(VendorCache({"3C5A37": "Samsung"}))
    worker = ProbeWorker(ScanOptions(), lookup)

    result = worker.probe("192.168.1.8", [80, 443, 8080])

    assert result.ip == "192.168.1.8"
    assert result.reachable is True
    assert result.latency == 0.002
    assert result.mac_address == "3C:5A:37:AA:BB:CC"
    assert result.vendor == "Samsung"
    assert result.hostname == "phone.lan"
    assert result.open_ports == (80, 443)


def test_probe_unreachable_returns_none(stub_probes, monkeypatch):
    monkeypatch.setattr(scanning, "ping_host", lambda *args: None)
    assert ProbeWorker().probe("192.168.1.9", [80]) is None
    assert stub_probes == []


@pytest.mark.parametrize("ports, skip", [([80], True), ([], False), (None, False)])
def test_probe_skips_ports(stub_probes, ports, skip):
    result = ProbeWorker().probe("192.168.1.8", ports, skip_ports=skip)
    assert result.open_ports == ()
    assert "ports" not in stub_probes


def test_probe_without_mac_skips_vendor(stub_probes, monkeypatch):
    monkeypatch.setattr(scanning, "lookup_mac_address", lambda ip: None)

    class ExplodingLookup:
        def resolve(self, mac):
            raise AssertionError("vendor lookup needs a MAC address")

    result = ProbeWorker(vendor_lookup=ExplodingLookup()).probe("192.168.1.8", [])
    assert result.mac_address is None
    assert result.vendor is None


def test_probe_step_failure_leaves_field_empty(stub_probes, monkeypatch):
    def broken(ip, *timeouts):
        raise RuntimeError("nbtstat crashed")

    monkeypatch.setattr(scanning, "resolve_hostname", broken)
    result = ProbeWorker().probe("192.168.1.8", [80])

    assert result is not None
    assert result.hostname is None
    assert result.mac_address == "3C:5A:37:AA:BB:CC"
    assert result.open_ports == (80, 443)
