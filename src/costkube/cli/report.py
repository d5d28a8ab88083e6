# src/costkube/cli/report.py
"""
Implements the `report` command: a one-off aggregation printed to the
console or exported to a file.
"""

import asyncio
import logging
import sys
import traceback
from pathlib import Path
from typing import Dict, Optional

import typer
from typing_extensions import Annotated

from ..core.exceptions import CostKubeError
from ..core.factory import get_cache, get_cost_model, get_provider
from ..core.service import aggregated_cost_model
from ..exporters import EXPORTERS
from ..models.aggregation import Aggregation
from ..reporters.console_reporter import ConsoleReporter

logger = logging.getLogger(__name__)

app = typer.Typer(help="Generate and export cost reports.", add_completion=False)


async def handle_export(data: Dict[str, Aggregation], output_format: str, output_path: Optional[Path]) -> str:
    """Writes the report rows to a file and returns its path."""
    exporter_cls = EXPORTERS.get(output_format.lower())
    if exporter_cls is None:
        logger.error(f"Invalid output format '{output_format}'. Use 'csv' or 'json'.")
        raise typer.Exit(code=1)
    exporter = exporter_cls()

    if not output_path:
        output_path = Path.cwd() / "data" / exporter.DEFAULT_FILENAME

    written_path = await exporter.export(data, str(output_path))
    logger.info(f"Successfully exported report to {written_path}")
    print(f"Report exported to: {written_path}", file=sys.stderr)
    return written_path


@app.callback(invoke_without_command=True)
def report(
    ctx: typer.Context,
    window: Annotated[str, typer.Option(help="Window to report on (e.g., '1h', '1d', '7d').")] = "1d",
    offset: Annotated[str, typer.Option(help="How far back the window ends (e.g., '1d').")] = "",
    aggregation: Annotated[
        str, typer.Option("--aggregation", "-a", help="cluster, namespace, service, deployment or label.")
    ] = "namespace",
    subfield: Annotated[str, typer.Option(help="Label name when aggregating by label.")] = "",
    namespace: Annotated[str, typer.Option(help="Filter by a specific namespace.")] = "",
    allocate_idle: Annotated[bool, typer.Option("--allocate-idle", help="Spread idle cluster cost.")] = False,
    shared_namespaces: Annotated[
        str, typer.Option(help="Comma-separated namespaces whose cost is shared across groups.")
    ] = "",
    sort_by: Annotated[str, typer.Option(help="Sort by total, cpu, ram or name.")] = "total",
    output_format: Annotated[
        Optional[str],
        typer.Option(
            "--output",
            help="Output format (csv/json). If set, writes to a file instead of the console.",
            case_sensitive=False,
        ),
    ] = None,
    output_path: Annotated[
        Optional[Path],
        typer.Option(
            "--output-path",
            help="Specify output file path. Default: './data/costkube-report.<format>'",
            exists=False,
            dir_okay=False,
            writable=True,
        ),
    ] = None,
):
    """
    Aggregate cluster costs and display them.

    Displays a table in the console by default.
    Use --output (csv/json) to export to a file.
    """
    if ctx.invoked_subcommand is not None:
        return

    async def _report_async():
        cost_model = get_cost_model()
        try:
            result, message = await aggregated_cost_model(
                cost_model,
                get_provider(),
                get_cache(),
                window=window,
                field=aggregation,
                subfield=subfield,
                offset=offset,
                namespace=namespace,
                allocate_idle=allocate_idle,
                shared_namespaces=shared_namespaces,
                disable_cache=True,
            )
        finally:
            await cost_model.close()
        logger.debug(message)

        if output_format:
            await handle_export(result, output_format, output_path)
        else:
            ConsoleReporter().report(result, sort_by=sort_by)

    try:
        asyncio.run(_report_async())
    except typer.Exit:
        raise
    except CostKubeError as e:
        logger.error(f"Report generation failed: {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}")
        logger.error(traceback.format_exc())
        raise typer.Exit(code=1)
