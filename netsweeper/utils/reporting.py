# reporting.py

"""Module for displaying and exporting NetSweeper scan reports."""

import csv
import json
from typing import Dict, Optional

from netsweeper.utils.data_classes import ScanReport, ScanResult
from netsweeper.ui import Colors, logger

CSV_FIELDS = ["ip", "hostname", "mac_address", "vendor", "latency_ms", "open_ports"]


def _latency_str(result: ScanResult) -> str:
    return f"{result.latency_ms:.1f}ms" if result.latency is not None else "Unknown"


def _truncate(text: str, width: int) -> str:
    return text[:width - 3] + "..." if len(text) > width else text


class ReportFormatter:
    """Class to handle scan report display and export."""

    def __init__(self, report: ScanReport):
        self.report = report

    def _format_header(self, width: int = 50) -> str:
        """Format a header line for the report."""
        return Colors.CYAN + "-" * width + Colors.ENDC

    def display_network_report(self) -> None:
        """Display the discovered hosts as a table, sorted by address."""
        report = self.report

        print(f"\nNetSweeper scan of {Colors.BOLD}{report.network}{Colors.ENDC} "
              f"started at {report.start_time.strftime('%Y-%m-%d %H:%M')}")
        if report.interface:
            print(f"Interface: {report.interface.name} ({report.interface.address})")

        if report.hosts:
            print(f"\n{self._format_header(110)}")
            print(f"{Colors.BOLD}{'IP ADDRESS':<17}{'HOSTNAME':<26}{'MAC ADDRESS':<19}"
                  f"{'VENDOR':<24}{'LATENCY':<10}{'OPEN PORTS'}{Colors.ENDC}")
            print(self._format_header(110))

            for result in report.hosts:
                hostname = _truncate(result.hostname or "", 24)
                mac = result.mac_address or "Unknown"
                vendor = _truncate(result.vendor or "", 22)
                ports_str = ", ".join(str(port) for port in result.open_ports) if result.open_ports else "None"

                print(f"{Colors.BLUE}{result.ip:<17}{Colors.ENDC}{hostname:<26}"
                      f"{Colors.MAGENTA}{mac:<19}{Colors.ENDC}{vendor:<24}"
                      f"{Colors.YELLOW}{_latency_str(result):<10}{Colors.ENDC}{Colors.GREEN}{ports_str}{Colors.ENDC}")

            print(self._format_header(110))
        else:
            logger.warning("No active hosts found.")

        print(f"\nNetSweeper done: {report.total_probed} IP addresses "
              f"({Colors.GREEN}{report.responsive_count} hosts up{Colors.ENDC}) "
              f"scanned in {Colors.YELLOW}{report.duration:.2f} seconds{Colors.ENDC}")

    def format_network_scan_data(self) -> Dict:
        """Format the report as structured data for export."""
        return self.report.to_dict()

    def write_csv(self, csv_filename: str) -> None:
        with open(csv_filename, "w", newline="", encoding="utf-8") as csv_file:
            writer = csv.DictWriter(csv_file, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for result in self.report.hosts:
                row = result.to_dict()
                writer.writerow({
                    "ip": row["ip"],
                    "hostname": row["hostname"] or "",
                    "mac_address": row["mac_address"] or "",
                    "vendor": row["vendor"] or "",
                    "latency_ms": "" if row["latency_ms"] is None else row["latency_ms"],
                    "open_ports": " ".join(str(port) for port in row["open_ports"]),
                })

    def write_json(self, json_filename: str) -> None:
        with open(json_filename, "w", encoding="utf-8") as json_file:
            json.dump(self.format_network_scan_data(), json_file, indent=4)

    def export_network_file(
        self,
        csv_filename: Optional[str] = None,
        json_filename: Optional[str] = None,
    ) -> None:
        """Save network scan results as CSV and/or JSON file."""
        if csv_filename:
            try:
                self.write_csv(csv_filename)
                print(f"{Colors.GREEN}Network scan results saved to {csv_filename}{Colors.ENDC}")
            except OSError as e:
                logger.error(f"Error saving CSV file: {e}")

        if json_filename:
            try:
                self.write_json(json_filename)
                print(f"{Colors.GREEN}Network scan results saved to {json_filename}{Colors.ENDC}")
            except OSError as e:
                logger.error(f"Error saving JSON file: {e}")
