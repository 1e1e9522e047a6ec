# coordinator.py

"""
This module runs a network sweep from start to finish: it selects the
interface, expands its subnet, fans the probes out over a bounded thread pool,
collects the responsive hosts into a ScanReport and persists the vendor cache.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence, Union
import datetime
import time

from netsweeper.utils.address_range import (
    ConfirmHook, confirm_range, expand, expand_cidr, int_to_ip, network_cidr,
)
from netsweeper.utils.data_classes import (
    MAX_CONCURRENCY, NetworkInterface, ScanOptions, ScanReport, ScanResult,
)
from netsweeper.utils.errors import InvalidConcurrency
from netsweeper.utils.interfaces import ChooseHook, select_interface
from netsweeper.utils.scanning import ProbeWorker, clear_arp_cache
from netsweeper.utils.vendor_lookup import (
    MacVendorsResolver, VendorCache, VendorLookup, VendorResolver, default_cache_path,
)
from netsweeper.utils import stop_event
from netsweeper.ui import logger, Colors

# progress(completed, total)
ProgressHook = Callable[[int, int], None]


def validate_concurrency(limit: int) -> int:
    """Check that the worker count is an integer between 1 and MAX_CONCURRENCY."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidConcurrency(f"Worker count must be an integer, got {limit!r}")
    if limit < 1 or limit > MAX_CONCURRENCY:
        raise InvalidConcurrency(f"Worker count must be between 1 and {MAX_CONCURRENCY}, got {limit}")
    return limit


def _manual_network(cidr: str) -> str:
    address, _, prefix_text = cidr.strip().partition("/")
    return network_cidr(address, int(prefix_text) if prefix_text else 32)


class ScanCoordinator:
    """Class to orchestrate a network discovery sweep."""

    def __init__(self, options: Optional[ScanOptions] = None, worker: Optional[ProbeWorker] = None,
                 cache: Optional[VendorCache] = None, resolver: Optional[VendorResolver] = None):
        self.options = options or ScanOptions()
        self.worker = worker
        self.cache = cache
        self.resolver = resolver

    @property
    def cache_path(self):
        return self.options.cache_path or default_cache_path()

    def _build_worker(self) -> ProbeWorker:
        if self.worker is not None:
            return self.worker

        resolver = self.resolver
        if resolver is None and not self.options.offline:
            resolver = MacVendorsResolver(timeout=self.options.vendor_timeout)
        return ProbeWorker(self.options, VendorLookup(self.cache, resolver))

    def _resolve_target(self, selection, network, choose):
        if network:
            host_ints = expand_cidr(network)
            return None, _manual_network(network), host_ints

        if isinstance(selection, NetworkInterface):
            interface = selection
        else:
            interface = select_interface(choose=choose, name=selection)
        return interface, interface.cidr, expand(interface.address, interface.prefix_length)

    def _prepare_address_table(self) -> None:
        if not self.options.clear_arp_cache:
            return
        if clear_arp_cache():
            logger.debug("ARP cache cleared")
        else:
            logger.warning("Could not clear the ARP cache (admin rights needed), MAC addresses may be stale")

    def _persist_cache(self) -> None:
        if self.cache is None:
            return
        self.cache.save(self.cache_path)

    def _dispatch(self, host_ints: Sequence[int], worker: ProbeWorker,
                  progress: Optional[ProgressHook]) -> List[ScanResult]:
        ports = [] if self.options.skip_ports else list(self.options.ports)
        total = len(host_ints)
        completed = 0
        results = []

        with ThreadPoolExecutor(max_workers=self.options.concurrency_limit) as executor:
            futures = {}
            for value in host_ints:
                if stop_event.is_set():
                    break
                ip = int_to_ip(value)
                futures[executor.submit(worker.probe, ip, ports, self.options.skip_ports)] = ip

            for future in as_completed(futures):
                if stop_event.is_set():
                    executor.shutdown(wait=False, cancel_futures=True)
                    break

                ip = futures[future]
                completed += 1

                try:
                    result = future.result()
                except Exception as e:
                    logger.debug(f"Error scanning {ip}: {e}")
                    result = None

                if result is not None:
                    results.append(result)

                if progress:
                    progress(completed, total)

        return sorted(results, key=lambda r: r.sort_key)

    def scan(self, selection: Union[NetworkInterface, str, None] = None, network: Optional[str] = None,
             confirm: Optional[ConfirmHook] = None, choose: Optional[ChooseHook] = None,
             progress: Optional[ProgressHook] = None) -> Optional[ScanReport]:
        """
        Scan the network of an interface (or an explicit CIDR range).

        Configuration errors are raised before any probe is sent. Returns None
        when a large range is not confirmed. The vendor cache is saved whether
        the scan succeeds or fails.
        """
        validate_concurrency(self.options.concurrency_limit)

        interface, cidr, host_ints = self._resolve_target(selection, network, choose)
        total = len(host_ints)

        if not confirm_range(cidr, total, confirm):
            logger.warning(f"Scan of {cidr} ({total} hosts) cancelled")
            return None

        if self.cache is None:
            self.cache = VendorCache.load(self.cache_path)

        try:
            self._prepare_address_table()
            worker = self._build_worker()

            logger.info(f"{Colors.CYAN}Starting network discovery on {cidr}{Colors.ENDC}")
            logger.info(f"{Colors.CYAN}Scanning {total} potential hosts with "
                        f"{self.options.concurrency_limit} workers...{Colors.ENDC}")

            start_time = datetime.datetime.now()
            started = time.monotonic()
            hosts = self._dispatch(host_ints, worker, progress)

            return ScanReport(
                network=cidr,
                interface=interface,
                total_probed=total,
                hosts=hosts,
                start_time=start_time,
                duration=time.monotonic() - started,
            )
        finally:
            self._persist_cache()
