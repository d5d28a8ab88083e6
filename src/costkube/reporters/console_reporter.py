# src/costkube/reporters/console_reporter.py
"""
A reporter that displays aggregated costs in a formatted table in the console.
"""

import logging
from typing import Dict

from rich.console import Console
from rich.table import Table

from ..models.aggregation import Aggregation
from .base_reporter import BaseReporter

logger = logging.getLogger(__name__)

SORT_KEYS = {
    "total": lambda agg: agg.total_cost,
    "cpu": lambda agg: agg.cpu_cost,
    "ram": lambda agg: agg.ram_cost,
    "name": lambda agg: agg.environment,
}


class ConsoleReporter(BaseReporter):
    """
    Renders aggregated costs to the console using the 'rich' library.
    """

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def report(self, data: Dict[str, Aggregation], sort_by: str = "total"):
        """
        Displays one row per aggregation group, most expensive first
        (alphabetical when sorting by name).
        """
        if not data:
            self.console.print("No data to report.", style="yellow")
            return

        first = next(iter(data.values()))
        group_title = first.aggregator_subfield or first.aggregator

        table = Table(
            title="costkube Cost Report",
            header_style="bold magenta",
            show_lines=True,
        )
        table.add_column(group_title.capitalize(), style="cyan")
        table.add_column("Cluster", style="cyan")
        table.add_column("CPU ($)", style="blue", justify="right")
        table.add_column("RAM ($)", style="blue", justify="right")
        table.add_column("GPU ($)", style="blue", justify="right")
        table.add_column("PV ($)", style="blue", justify="right")
        table.add_column("Shared ($)", style="dim", justify="right")
        table.add_column("Total ($)", style="green", justify="right")

        key = SORT_KEYS.get(sort_by, SORT_KEYS["total"])
        rows = sorted(data.values(), key=key, reverse=sort_by != "name")

        for agg in rows:
            table.add_row(
                agg.environment,
                agg.cluster,
                f"{agg.cpu_cost:.4f}",
                f"{agg.ram_cost:.4f}",
                f"{agg.gpu_cost:.4f}",
                f"{agg.pv_cost:.4f}",
                f"{agg.shared_cost:.4f}",
                f"{agg.total_cost:.4f}",
            )

        self.console.print(table)
        total = sum(agg.total_cost for agg in rows)
        self.console.print(f"[bold]Total across {len(rows)} group(s):[/bold] ${total:.4f}")
