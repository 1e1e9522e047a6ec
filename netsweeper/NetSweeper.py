#!/usr/bin/env python3
# # -*- coding: utf-8 -*-

# NetSweeper.py

"""This script provides a command-line interface for sweeping a local network:
it discovers responsive hosts on the selected interface's subnet, reads their
MAC addresses and vendors, resolves their names and probes a list of TCP ports,
with options for exporting results in CSV or JSON formats."""

import signal
import sys
from typing import Optional, Sequence

from .ui.logging import Colors, logger, display_program_info, disable_colors, set_verbose, signal_handler
from .utils.coordinator import ScanCoordinator
from .utils.data_classes import NetworkInterface
from .utils.errors import ConfigurationError
from .utils.reporting import ReportFormatter
from .utils.scanner_config import ScannerConfig


def confirm_large_range(cidr: str, count: int) -> bool:
    """Ask the operator before sweeping a large range."""
    try:
        answer = input(f"{Colors.YELLOW}{cidr} contains {count} hosts. Scan anyway? [y/N] {Colors.ENDC}")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def choose_interface(interfaces: Sequence[NetworkInterface]) -> Optional[int]:
    """List the candidate interfaces and read the operator's choice. Enter keeps the first one."""
    print(f"\n{Colors.BOLD}Active network interfaces:{Colors.ENDC}")
    for index, iface in enumerate(interfaces, 1):
        default = " (default)" if index == 1 else ""
        print(f"  {Colors.CYAN}{index}{Colors.ENDC}. {iface}{default}")

    try:
        answer = input(f"Select interface [1-{len(interfaces)}]: ").strip()
    except EOFError:
        return None

    if not answer:
        return None
    if not answer.isdigit() or not 1 <= int(answer) <= len(interfaces):
        logger.warning(f"Invalid choice '{answer}', using {interfaces[0].name}")
        return None
    return int(answer) - 1


def show_progress(completed: int, total: int) -> None:
    progress = (completed / total) * 100 if total else 100
    print(f"{Colors.BLUE}Network scan progress: {progress:.1f}% ({completed}/{total} hosts){Colors.ENDC}", end='\r')
    if completed == total:
        # Clear the progress line
        print(" " * 80, end='\r')


def main():
    """
    Main function for the NetSweeper program.

    Steps:
    1. Display program information and install the SIGINT handler.
    2. Parse command-line arguments into scan options.
    3. Select the interface (or use the explicit network) and sweep it.
    4. Display the report and export it if requested.
    """

    # Display informations about the program
    display_program_info()

    # Install signal handler
    signal.signal(signal.SIGINT, signal_handler)

    # Parse arguments
    config = ScannerConfig()
    args = config.parser.parse_args()

    # Disable colors if requested
    if args.no_color:
        disable_colors()
    set_verbose(args.verbose)

    options = config.build_options(args)
    if options.skip_ports:
        logger.info("Quick scan: port probing disabled")
    else:
        logger.info(f"Probing {len(options.ports)} ports per host")

    coordinator = ScanCoordinator(options)

    try:
        report = coordinator.scan(
            selection=args.interface,
            network=args.network,
            confirm=(lambda cidr, count: True) if args.yes else confirm_large_range,
            choose=choose_interface,
            progress=show_progress,
        )
    except ConfigurationError as e:
        logger.error(f"{e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Scan error: {e}")
        sys.exit(1)

    if report is None:
        print(f"{Colors.YELLOW}Scan cancelled.{Colors.ENDC}")
        return

    formatter = ReportFormatter(report)
    formatter.display_network_report()

    if args.csv or args.json:
        formatter.export_network_file(args.csv, args.json)


if __name__ == "__main__":
    main()
