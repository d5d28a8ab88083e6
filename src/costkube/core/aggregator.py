# src/costkube/core/aggregator.py
"""
Aggregates per-container CostData into cost per group (cluster, namespace,
service, deployment or label value).

Records matching the shared-resource predicate are not reported in their own
group: their cost is pooled and split evenly across every resulting group.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from ..models.aggregation import Aggregation
from ..models.cost_data import CostData
from ..pricing.base_provider import BasePricingProvider
from .exceptions import InvalidParameterError
from .pricing import get_price_vectors, total_cost
from .vectors import add_vectors, total_vector

logger = logging.getLogger(__name__)

ALWAYS_SHARED_NAMESPACE = "kube-system"

AGGREGATION_FIELDS = ("cluster", "namespace", "service", "deployment", "label")


@dataclass
class SharedResourceInfo:
    """Predicate selecting records whose cost is shared across all groups."""

    share_resources: bool = True
    shared_namespaces: Set[str] = field(default_factory=set)
    label_selectors: Dict[str, str] = field(default_factory=dict)

    def is_shared_resource(self, cost_datum: CostData) -> bool:
        if cost_datum.namespace in self.shared_namespaces:
            return True
        labels = cost_datum.labels or {}
        for name, value in self.label_selectors.items():
            if name in labels and labels[name] == value:
                return True
        return False


def new_shared_resource_info(
    share_resources: bool,
    shared_namespaces: Iterable[str],
    label_names: List[str],
    label_values: List[str],
) -> SharedResourceInfo:
    """
    Build a SharedResourceInfo. kube-system is always shared.

    Raises:
        InvalidParameterError: If label names and values do not pair up.
    """
    if label_names and (len(label_names) != len(label_values) or not label_values[0]):
        raise InvalidParameterError("Supply exactly one label value per label name")

    namespaces = {ns for ns in shared_namespaces if ns}
    namespaces.add(ALWAYS_SHARED_NAMESPACE)
    return SharedResourceInfo(
        share_resources=share_resources,
        shared_namespaces=namespaces,
        label_selectors=dict(zip(label_names, label_values)),
    )


def _group_key(cost_datum: CostData, field_name: str, subfield: str) -> Optional[str]:
    if field_name == "cluster":
        return cost_datum.cluster_id
    if field_name == "namespace":
        return cost_datum.namespace
    if field_name == "service":
        return cost_datum.services[0] if cost_datum.services else None
    if field_name == "deployment":
        return cost_datum.deployments[0] if cost_datum.deployments else None
    if field_name == "label":
        labels = cost_datum.labels or {}
        return labels.get(subfield)
    return None


def _merge_into(
    provider: BasePricingProvider,
    cost_datum: CostData,
    agg: Aggregation,
    discount: float,
    idle_coefficient: float,
) -> None:
    agg.cpu_allocation = add_vectors(cost_datum.cpu_allocation, agg.cpu_allocation)
    agg.ram_allocation = add_vectors(cost_datum.ram_allocation, agg.ram_allocation)
    agg.gpu_allocation = add_vectors(cost_datum.gpu_request, agg.gpu_allocation)

    cpu, ram, gpu, pv_list = get_price_vectors(provider, cost_datum, discount, idle_coefficient)
    agg.cpu_cost_vector = add_vectors(cpu, agg.cpu_cost_vector)
    agg.ram_cost_vector = add_vectors(ram, agg.ram_cost_vector)
    agg.gpu_cost_vector = add_vectors(gpu, agg.gpu_cost_vector)
    for pv in pv_list:
        agg.pv_cost_vector = add_vectors(agg.pv_cost_vector, pv)


def aggregate_cost_model(
    provider: BasePricingProvider,
    cost_data: Dict[str, CostData],
    field_name: str,
    subfield: str = "",
    time_series: bool = False,
    discount: float = 0.0,
    idle_coefficient: float = 1.0,
    shared: Optional[SharedResourceInfo] = None,
) -> Dict[str, Aggregation]:
    """
    Reduce raw cost data by ``field_name`` (and ``subfield`` for labels).

    Records with no value for the grouping field are left out. Unknown
    fields produce an empty result. When ``time_series`` is False the cost
    series are dropped from the output and only the totals remain.
    """
    aggregations: Dict[str, Aggregation] = {}
    shared_cost = 0.0

    for cost_datum in cost_data.values():
        if shared is not None and shared.share_resources and shared.is_shared_resource(cost_datum):
            shared_cost += total_cost(get_price_vectors(provider, cost_datum, discount, idle_coefficient))
            continue

        key = _group_key(cost_datum, field_name, subfield)
        if key is None:
            continue

        agg = aggregations.get(key)
        if agg is None:
            agg = Aggregation(
                aggregator=field_name,
                aggregator_subfield=subfield,
                environment=key,
                cluster=cost_datum.cluster_id,
            )
            aggregations[key] = agg
        _merge_into(provider, cost_datum, agg, discount, idle_coefficient)

    if field_name not in AGGREGATION_FIELDS:
        logger.warning(f"Unknown aggregation field '{field_name}'; no groups produced.")

    for agg in aggregations.values():
        agg.cpu_cost = total_vector(agg.cpu_cost_vector)
        agg.ram_cost = total_vector(agg.ram_cost_vector)
        agg.gpu_cost = total_vector(agg.gpu_cost_vector)
        agg.pv_cost = total_vector(agg.pv_cost_vector)
        agg.shared_cost = shared_cost / len(aggregations)
        agg.total_cost = agg.cpu_cost + agg.ram_cost + agg.gpu_cost + agg.pv_cost + agg.shared_cost

        if not time_series:
            agg.cpu_cost_vector = None
            agg.ram_cost_vector = None
            agg.pv_cost_vector = None
            agg.gpu_cost_vector = None

    logger.debug(
        f"Aggregated {len(cost_data)} record(s) by {field_name} into {len(aggregations)} group(s); "
        f"shared pool {shared_cost:.6f}"
    )
    return aggregations
