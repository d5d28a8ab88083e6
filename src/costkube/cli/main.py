# src/costkube/cli/main.py
"""
costkube command line: a cost report in the terminal or a file, and the
HTTP API with its price recorder.
"""

import logging

import typer

from .. import __version__
from ..core.config import config
from . import report, serve

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="costkube",
    help="Allocate and aggregate the cost of your Kubernetes workloads.",
    add_completion=False,
)


def _print_version(value: bool):
    if value:
        typer.echo(f"costkube version: {__version__}")
        raise typer.Exit()


@app.command()
def version():
    """Show the version of costkube."""
    _print_version(True)


@app.callback()
def main(
    show_version: bool = typer.Option(
        None,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """Kubernetes cost allocation from Prometheus metrics and cluster inventory."""


app.add_typer(report.app, name="report")
app.add_typer(serve.app, name="serve")


if __name__ == "__main__":
    app()
