# src/costkube/api/app.py
"""
FastAPI application factory for the costkube API.

Uses the factory pattern so the app can be created with or without
lifespan management (tests skip starting the price recorder).
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from costkube import __version__
from costkube.api.routers import config as config_router
from costkube.api.routers import costs, metrics
from costkube.api.schemas import error
from costkube.core.config import config
from costkube.core.exceptions import CostKubeError, InvalidParameterError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the price recorder on startup and stop it on shutdown."""
    from costkube.core.factory import get_cost_model, get_recorder

    logger.info("Starting costkube API...")
    recorder = get_recorder()
    recorder.start()
    yield
    logger.info("Shutting down costkube API...")
    await recorder.stop()
    await get_cost_model().close()


async def invalid_parameter_handler(request: Request, exc: InvalidParameterError):
    logger.info(f"Rejected {request.url.path}: {exc}")
    return error(400, str(exc))


async def costkube_error_handler(request: Request, exc: CostKubeError):
    logger.error(f"Error serving {request.url.path}: {exc}")
    return error(500, str(exc))


def create_app(use_lifespan: bool = False) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: If True, attach the lifespan handler that runs the
                      price recorder. Set to False for testing.

    Returns:
        A configured FastAPI application instance.
    """
    app = FastAPI(
        title="costkube API",
        description="Kubernetes cost allocation and aggregation API.",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Handlers are matched on the most specific exception class.
    app.add_exception_handler(InvalidParameterError, invalid_parameter_handler)
    app.add_exception_handler(CostKubeError, costkube_error_handler)

    app.include_router(costs.router, tags=["Costs"])
    app.include_router(config_router.router, tags=["Config"])
    app.include_router(metrics.router, tags=["Metrics"])

    return app


def main():
    """Entry point for the costkube-api console script."""
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    app = create_app(use_lifespan=True)
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
