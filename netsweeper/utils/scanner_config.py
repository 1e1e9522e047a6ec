# scanner_config.py

"""
This module contains the ScannerConfig class, which is responsible for handling
the configuration of the NetSweeper network scanner. It uses argparse to parse
command-line arguments and provides methods to validate and process these arguments.
"""

import argparse
import os
import sys
from typing import List

from netsweeper.ui import Colors, logger
from netsweeper.utils.data_classes import DEFAULT_CONCURRENCY, MAX_CONCURRENCY, ScanOptions

OFFLINE_ENV_VAR = "NETSWEEPER_OFFLINE"

PORT_PRESETS = {
    "common": [21, 22, 23, 25, 53, 80, 110, 135, 139, 143, 443, 445, 3389, 8080],
    "web": [80, 443, 8000, 8008, 8080, 8443, 8888],
    "windows": [135, 139, 445, 3389, 5985, 5986],
    "remote": [22, 23, 3389, 5900, 5938, 5985],
    "printer": [80, 443, 515, 631, 9100],
    "database": [1433, 1521, 3306, 5432, 6379, 27017],
}
DEFAULT_PRESET = "common"


class ScannerConfig:
    """Configuration class for scanner settings."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create and configure argument parser."""
        parser = argparse.ArgumentParser(
            description=f"{Colors.CYAN}NetSweeper: LAN discovery for desktop support{Colors.ENDC}",
            formatter_class=argparse.RawDescriptionHelpFormatter
        )

        target_group = parser.add_mutually_exclusive_group()
        target_group.add_argument("-i", "--interface", help="Interface to scan (auto-detected if omitted)")
        target_group.add_argument("-n", "--network", help="Network to scan instead of the interface subnet (CIDR format, e.g. 192.168.1.0/24)")

        port_group = parser.add_mutually_exclusive_group()
        port_group.add_argument(
            "-p", "--ports",
            type=str,
            help="Ports to probe (e.g., 22,80,8000-8010)"
        )
        port_group.add_argument(
            "--preset",
            choices=sorted(PORT_PRESETS),
            help=f"Named port list (default: {DEFAULT_PRESET})"
        )

        parser.add_argument(
            "-t", "--threads",
            type=int,
            help=f"Number of hosts probed in parallel (1-{MAX_CONCURRENCY})",
            default=DEFAULT_CONCURRENCY
        )

        parser.add_argument(
            "--csv",
            type=str,
            help="Export results as CSV file (provide filename)",
            metavar="FILENAME"
        )

        parser.add_argument(
            "--json",
            type=str,
            help="Export results as JSON file (provide filename)",
            metavar="FILENAME"
        )

        parser.add_argument(
            "--cache-file",
            type=str,
            help="Vendor cache location (default: ~/.netsweeper/vendor_cache.json)",
            metavar="PATH"
        )

        parser.add_argument("-q", "--quick", help="Quick scan, skip port probing", action="store_true")
        parser.add_argument("--no-arp-clear", help="Do not clear the ARP cache before scanning", action="store_true")
        parser.add_argument("--offline", help="Never query the online MAC vendor API", action="store_true")
        parser.add_argument("-y", "--yes", help="Scan large ranges without asking", action="store_true")
        parser.add_argument("--no-color", help="Disable colored output", action="store_true")
        parser.add_argument("-v", "--verbose", help="Enable debug output", action="store_true")

        return parser

    def parse_ports(self, ports_str: str) -> List[int]:
        """Parse and validate a port list such as "22,80,8000-8010"."""
        ports = set()
        try:
            for chunk in ports_str.split(","):
                chunk = chunk.strip()
                if not chunk:
                    continue

                if "-" in chunk:
                    start_port, end_port = map(int, chunk.split("-", 1))
                else:
                    start_port = end_port = int(chunk)

                if start_port > end_port:
                    raise ValueError("Start port must be less than or equal to end port")
                if start_port < 1 or end_port > 65535:
                    raise ValueError("Ports must be between 1 and 65535")

                ports.update(range(start_port, end_port + 1))

            if not ports:
                raise ValueError("No ports given")

            return sorted(ports)

        except ValueError as e:
            logger.error(f"Invalid port list: {e}")
            sys.exit(1)

    def resolve_ports(self, args: argparse.Namespace) -> List[int]:
        """Ports from --ports, else from --preset, else the default preset."""
        if args.ports:
            return self.parse_ports(args.ports)
        return list(PORT_PRESETS[args.preset or DEFAULT_PRESET])

    @staticmethod
    def check_thread_count(threads: int, max_threads: int = MAX_CONCURRENCY) -> int:
        """Check and validate the number of parallel workers."""
        if not isinstance(threads, int):
            logger.error("The threads argument must be an integer.")
            print(f"{Colors.RED}QUITTING!{Colors.ENDC}")
            sys.exit(1)

        if threads <= 0:
            logger.error("The threads argument must be positive and not null.")
            print(f"{Colors.RED}QUITTING!{Colors.ENDC}")
            sys.exit(1)

        if threads > max_threads:
            logger.error(f"The threads argument must not exceed {max_threads}.")
            print(f"{Colors.RED}QUITTING!{Colors.ENDC}")
            sys.exit(1)

        return threads

    def build_options(self, args: argparse.Namespace) -> ScanOptions:
        """Turn parsed arguments and environment overrides into ScanOptions."""
        offline = args.offline or os.environ.get(OFFLINE_ENV_VAR, "").lower() in ("1", "true", "yes")

        return ScanOptions(
            ports=self.resolve_ports(args),
            skip_ports=args.quick,
            concurrency_limit=self.check_thread_count(args.threads),
            clear_arp_cache=not args.no_arp_clear,
            offline=offline,
            cache_path=args.cache_file,
        )
