# src/costkube/api/routers/metrics.py
"""
Prometheus exposition of the price recorder's gauges.
"""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from costkube.api.dependencies import get_registry

router = APIRouter()


@router.get("/metrics")
async def metrics(registry: CollectorRegistry = Depends(get_registry)):
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
