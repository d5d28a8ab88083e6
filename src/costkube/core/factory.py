# src/costkube/core/factory.py
"""
Factory functions to instantiate the shared core components: the pricing
provider, the cost model, the aggregation cache and the price recorder.
"""

import logging
from functools import lru_cache

from prometheus_client import CollectorRegistry

from ..collectors.inventory_collector import InventoryCollector
from ..collectors.prometheus_collector import PrometheusCollector
from ..pricing.custom_provider import CustomPricingProvider
from ..utils.date_utils import parse_duration
from .cache import AggregationCache
from .config import config
from .cost_model import CostModel
from .recorder import CostMetricsRecorder

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_provider() -> CustomPricingProvider:
    """
    Factory function to get the pricing provider.
    Uses lru_cache to act as a singleton.
    """
    logger.info(f"Using custom pricing provider (config path: {config.PRICING_CONFIG_PATH or 'environment'}).")
    return CustomPricingProvider()


@lru_cache(maxsize=1)
def get_cost_model() -> CostModel:
    return CostModel(
        prometheus=PrometheusCollector(),
        inventory_collector=InventoryCollector(),
        provider=get_provider(),
    )


@lru_cache(maxsize=1)
def get_cache() -> AggregationCache:
    ttl = parse_duration(config.CACHE_TTL).total_seconds()
    return AggregationCache(ttl_seconds=ttl)


@lru_cache(maxsize=1)
def get_registry() -> CollectorRegistry:
    """Registry holding the recorder's gauges, served on /metrics."""
    return CollectorRegistry()


@lru_cache(maxsize=1)
def get_recorder() -> CostMetricsRecorder:
    return CostMetricsRecorder(
        cost_model=get_cost_model(),
        provider=get_provider(),
        registry=get_registry(),
        cache=get_cache(),
    )
