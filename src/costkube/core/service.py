# src/costkube/core/service.py
"""
Request-level orchestration shared by the API and the CLI: resolves time
ranges, discount, idle allocation and shared resources, and serves
aggregations through the cache.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from ..models.aggregation import Aggregation
from ..models.cost_data import CostData
from ..pricing.base_provider import BasePricingProvider, parse_discount
from ..utils.date_utils import normalize_time_param, parse_duration
from .aggregator import AGGREGATION_FIELDS, aggregate_cost_model, new_shared_resource_info
from .cache import AggregationCache, aggregation_cache_key
from .cost_model import CostModel
from .exceptions import InvalidParameterError
from .idle import compute_idle_coefficient

logger = logging.getLogger(__name__)

DEFAULT_STEP = "1h"


def split_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated query value, dropping empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def resolve_duration(value: str, name: str) -> timedelta:
    """
    Raises:
        InvalidParameterError: If ``value`` is not a duration such as '2h' or '7d'.
    """
    try:
        return parse_duration(normalize_time_param(value))
    except ValueError as e:
        raise InvalidParameterError(f"Invalid {name} '{value}': {e}") from e


def window_bounds(window: str, offset: str = "", now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """(start, end) of ``window`` ending ``offset`` before ``now``."""
    end = (now or datetime.now(timezone.utc)) - (resolve_duration(offset, "offset") if offset else timedelta())
    return end - resolve_duration(window, "window"), end


def validate_aggregation(field: str, subfield: str) -> None:
    """
    Raises:
        InvalidParameterError: If the field is missing, or is 'label' without a subfield.
    """
    if not field:
        raise InvalidParameterError("Missing aggregation field parameter")
    if field == "label" and not subfield:
        raise InvalidParameterError("Missing aggregation subfield parameter for aggregation by label")
    if field not in AGGREGATION_FIELDS:
        logger.warning(f"Aggregation field '{field}' is not one of {', '.join(AGGREGATION_FIELDS)}.")


def provider_discount(provider: BasePricingProvider) -> float:
    """
    Raises:
        PricingError: If the configuration cannot be loaded or the discount is malformed.
    """
    return parse_discount(provider.get_config().discount)


async def aggregated_cost_model(
    cost_model: CostModel,
    provider: BasePricingProvider,
    cache: AggregationCache,
    window: str,
    field: str,
    subfield: str = "",
    offset: str = "",
    namespace: str = "",
    cluster: str = "",
    allocate_idle: bool = False,
    shared_namespaces: str = "",
    shared_label_names: str = "",
    shared_label_values: str = "",
    time_series: bool = False,
    disable_cache: bool = False,
    clear_cache: bool = False,
) -> Tuple[Dict[str, Aggregation], str]:
    """
    Aggregate the cost of ``window`` by ``field``.

    Returns:
        The aggregations by group key, and a 'cache hit: <key>' or
        'cache miss: <key>' message.

    Raises:
        InvalidParameterError: For missing or inconsistent parameters.
        QueryError: If Prometheus cannot be queried.
        PricingError: If the pricing configuration is unusable.
    """
    validate_aggregation(field, subfield)

    label_names = split_list(shared_label_names)
    label_values = split_list(shared_label_values)
    namespaces = split_list(shared_namespaces)
    shared = None
    if namespaces or label_names:
        shared = new_shared_resource_info(True, namespaces, label_names, label_values)

    start, end = window_bounds(window, offset)

    if clear_cache:
        cache.flush()

    key = aggregation_cache_key(window, offset, namespace, cluster, field, subfield, time_series)
    if not disable_cache:
        cached, found = cache.get(key)
        if found:
            logger.debug(f"Serving aggregation from cache: {key}")
            return cached, f"cache hit: {key}"

    discount = provider_discount(provider)
    cost_data = await cost_model.compute_cost_data_range(start, end, DEFAULT_STEP, namespace, cluster)

    idle_coefficient = 1.0
    if allocate_idle:
        idle_coefficient = await compute_idle_coefficient(cost_data, cost_model, provider, discount, window, offset)
        if idle_coefficient <= 0:
            logger.info(f"Idle coefficient unavailable for window {window}; allocating without idle.")
            idle_coefficient = 1.0

    result = aggregate_cost_model(
        provider,
        cost_data,
        field,
        subfield,
        time_series=time_series,
        discount=discount,
        idle_coefficient=idle_coefficient,
        shared=shared,
    )

    if not disable_cache:
        cache.set(key, result)
    return result, f"cache miss: {key}"


def aggregate_raw(
    provider: BasePricingProvider,
    cost_data: Dict[str, CostData],
    field: str,
    subfield: str = "",
) -> Dict[str, Aggregation]:
    """Aggregate already-computed cost data at the provider's discount, without idle allocation."""
    validate_aggregation(field, subfield)
    return aggregate_cost_model(
        provider, cost_data, field, subfield, time_series=True, discount=provider_discount(provider)
    )
