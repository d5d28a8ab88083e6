# src/costkube/core/pricing.py
"""
Converts a container's allocation series into cost series.

For every sample:

    cost = allocation * unit_conversion * unit_price * (1 - discount) / idle_coefficient

where unit_conversion is 1 for CPU cores and GPUs and 1/1024**3 for RAM and
storage bytes. An idle coefficient below 1 inflates attributed cost so that,
summed over all workloads, it approximates the full cluster cost.
"""

import logging
from typing import List, Tuple

from ..models.cost_data import CostData
from ..models.vector import Vector
from ..pricing.base_provider import BasePricingProvider, custom_prices_enabled, parse_float
from .exceptions import InvalidParameterError, PricingError
from .vectors import snap_timestamp

logger = logging.getLogger(__name__)

BYTES_PER_GIB = 1024**3

PriceVectors = Tuple[List[Vector], List[Vector], List[Vector], List[List[Vector]]]


def _cost_series(series: List[Vector], factor: float) -> List[Vector]:
    return [Vector(timestamp=snap_timestamp(v.timestamp), value=v.value * factor) for v in series]


def get_price_vectors(
    provider: BasePricingProvider,
    cost_datum: CostData,
    discount: float,
    idle_coefficient: float,
) -> PriceVectors:
    """
    Compute CPU, RAM, GPU and per-claim volume cost series for one record.

    Returns:
        (cpu, ram, gpu, pv_list). Claims with no bound volume are omitted
        from pv_list. A record without node pricing yields no cost.

    Raises:
        InvalidParameterError: If idle_coefficient is not positive.
    """
    if idle_coefficient <= 0:
        raise InvalidParameterError(f"Idle coefficient must be positive, got {idle_coefficient}")

    node = cost_datum.node_data
    if node is None:
        logger.debug(
            f"No node pricing for {cost_datum.namespace}/{cost_datum.pod_name}/{cost_datum.name}; skipping cost."
        )
        return [], [], [], []

    cpu_price_str = node.vcpu_cost
    ram_price_str = node.ram_cost
    gpu_price_str = node.gpu_cost
    pv_price_str = node.storage_cost

    try:
        custom = provider.get_config()
    except PricingError as e:
        logger.error(f"Failed to load custom pricing: {e}")
        custom = None
    custom_enabled = custom is not None and custom_prices_enabled(provider)
    if custom_enabled:
        if node.is_spot():
            cpu_price_str, ram_price_str, gpu_price_str = custom.spot_cpu, custom.spot_ram, custom.spot_gpu
        else:
            cpu_price_str, ram_price_str, gpu_price_str = custom.cpu, custom.ram, custom.gpu
        pv_price_str = custom.storage

    scale = (1 - discount) / idle_coefficient
    cpu = _cost_series(cost_datum.cpu_allocation, parse_float(cpu_price_str) * scale)
    ram = _cost_series(cost_datum.ram_allocation, parse_float(ram_price_str) * scale / BYTES_PER_GIB)
    gpu = _cost_series(cost_datum.gpu_request, parse_float(gpu_price_str) * scale)

    pv_list = []
    for pvc in cost_datum.pvc_data:
        if pvc.volume is None:
            continue
        pv_price = parse_float(pv_price_str) if custom_enabled else parse_float(pvc.volume.cost)
        pv_list.append(_cost_series(pvc.values, pv_price * scale / BYTES_PER_GIB))

    return cpu, ram, gpu, pv_list


def total_cost(price_vectors: PriceVectors) -> float:
    """Sum every sample of every cost series returned by get_price_vectors."""
    cpu, ram, gpu, pv_list = price_vectors
    total = sum(v.value for v in cpu) + sum(v.value for v in ram) + sum(v.value for v in gpu)
    for pv in pv_list:
        total += sum(v.value for v in pv)
    return total
