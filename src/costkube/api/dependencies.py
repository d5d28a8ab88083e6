# src/costkube/api/dependencies.py
"""
FastAPI dependency injection functions.

These functions provide the shared core components to API route handlers
via FastAPI's Depends() mechanism, so tests can override them.
"""

from prometheus_client import CollectorRegistry

from costkube.core.cache import AggregationCache
from costkube.core.cost_model import CostModel
from costkube.pricing.base_provider import BasePricingProvider


async def get_cost_model() -> CostModel:
    """Provides the CostModel instance via the factory."""
    from costkube.core.factory import get_cost_model as factory_get_cost_model

    return factory_get_cost_model()


async def get_provider() -> BasePricingProvider:
    """Provides the pricing provider via the factory."""
    from costkube.core.factory import get_provider as factory_get_provider

    return factory_get_provider()


async def get_cache() -> AggregationCache:
    from costkube.core.factory import get_cache as factory_get_cache

    return factory_get_cache()


async def get_registry() -> CollectorRegistry:
    from costkube.core.factory import get_registry as factory_get_registry

    return factory_get_registry()
