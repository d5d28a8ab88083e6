# src/costkube/cli/serve.py
"""
Implements the `serve` command: runs the HTTP API together with the
price recorder.
"""

import logging
from typing import Optional

import typer
import uvicorn
from typing_extensions import Annotated

from ..api.app import create_app
from ..core.config import config

logger = logging.getLogger(__name__)

app = typer.Typer(name="serve", help="Serve the cost API and record price metrics.")


@app.callback(invoke_without_command=True)
def serve(
    ctx: typer.Context,
    host: Annotated[Optional[str], typer.Option(help="Interface to bind.")] = None,
    port: Annotated[Optional[int], typer.Option(help="Port to listen on.")] = None,
) -> None:
    """
    Start the API server. The price recorder runs for the server's lifetime.
    """
    if ctx.invoked_subcommand is not None:
        return

    host = host or config.API_HOST
    port = port or config.API_PORT
    logger.info(f"Serving costkube on {host}:{port} (recording every {config.RECORD_INTERVAL}).")
    uvicorn.run(create_app(use_lifespan=True), host=host, port=port)
