# src/costkube/api/routers/config.py
"""
API routes for the pricing configuration and health information.
"""

import logging

from fastapi import APIRouter, Depends

from costkube import __version__
from costkube.api.dependencies import get_provider
from costkube.api.schemas import HealthResponse, success
from costkube.pricing.base_provider import BasePricingProvider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/healthz")
async def health():
    """Health check endpoint."""
    return success(HealthResponse(status="ok", version=__version__))


@router.get("/getConfigs")
async def get_configs(provider: BasePricingProvider = Depends(get_provider)):
    """Return the active pricing configuration.

    Provider credentials are never part of it.
    """
    return success(provider.get_config().model_dump(by_alias=True))
