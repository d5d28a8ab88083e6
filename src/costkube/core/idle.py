# src/costkube/core/idle.py
"""
Estimates the idle coefficient: the share of the cluster's cost that is
actually billed to containers over a window.
"""

import logging
from typing import Dict

from ..models.cost_data import CostData
from ..pricing.base_provider import BasePricingProvider, parse_float
from ..utils.date_utils import normalize_time_param, parse_duration
from .pricing import get_price_vectors, total_cost

logger = logging.getLogger(__name__)

# Cluster totals are reported as monthly rates.
HOURS_PER_MONTH = 730


async def compute_idle_coefficient(
    cost_data: Dict[str, CostData],
    cost_model,
    provider: BasePricingProvider,
    discount: float,
    window: str,
    offset: str = "",
) -> float:
    """
    Ratio of billed container cost to total cluster cost over ``window``.

    A result close to 1 means little idle capacity. Returns 0.0 when the
    cluster total is missing or zero; callers should then use 1.0.

    Raises:
        ValueError: If ``window`` is not a valid duration.
        QueryError: If the cluster totals cannot be fetched.
    """
    window_hours = parse_duration(normalize_time_param(window)).total_seconds() / 3600
    totals = await cost_model.cluster_costs(window, offset)

    if not totals.total_cost or len(totals.total_cost[0]) < 2:
        logger.warning(f"No cluster total cost available for window {window}; cannot estimate idle.")
        return 0.0
    cluster_total = parse_float(totals.total_cost[0][1])
    if cluster_total == 0.0:
        logger.warning(f"Cluster total cost is zero for window {window}; cannot estimate idle.")
        return 0.0

    cluster_over_window = (cluster_total / HOURS_PER_MONTH) * window_hours * (1 - discount)

    billed = 0.0
    for datum in cost_data.values():
        billed += total_cost(get_price_vectors(provider, datum, discount, 1.0))

    if cluster_over_window <= 0:
        logger.warning(f"Cluster cost over window {window} is not positive; cannot estimate idle.")
        return 0.0

    coefficient = billed / cluster_over_window
    logger.info(
        f"Idle coefficient for {window}: billed={billed:.4f} cluster={cluster_over_window:.4f} "
        f"coefficient={coefficient:.4f}"
    )
    return coefficient
