# src/costkube/api/routers/costs.py
"""
API routes for raw and aggregated cost data.
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query

from costkube.api.dependencies import get_cache, get_cost_model, get_provider
from costkube.api.schemas import success
from costkube.core.cache import AggregationCache
from costkube.core.cost_model import CostModel
from costkube.core.exceptions import InvalidParameterError
from costkube.core.service import aggregate_raw, aggregated_cost_model, resolve_duration
from costkube.models.aggregation import Aggregation
from costkube.models.cost_data import CostData, filter_fields
from costkube.pricing.base_provider import BasePricingProvider
from costkube.utils.date_utils import ensure_utc

logger = logging.getLogger(__name__)

router = APIRouter()


def _wire(aggregations: Dict[str, Aggregation]) -> Dict[str, dict]:
    return {key: agg.to_wire() for key, agg in aggregations.items()}


def _raw_payload(
    provider: BasePricingProvider,
    cost_data: Dict[str, CostData],
    filter_field_names: Optional[str],
    aggregation: Optional[str],
    subfield: Optional[str],
):
    if aggregation:
        return _wire(aggregate_raw(provider, cost_data, aggregation, subfield or ""))
    if filter_field_names:
        return filter_fields(filter_field_names, cost_data)
    return {key: datum.model_dump(by_alias=True) for key, datum in cost_data.items()}


@router.get("/aggregatedCostModel")
async def aggregated_cost(
    window: str = Query("1d", description="Duration of the window, e.g. '1h', '7d'."),
    offset: str = Query("", description="How far back the window ends, e.g. '1d'."),
    namespace: str = Query("", description="Only include this namespace."),
    cluster: str = Query("", description="Only include this cluster."),
    aggregation: str = Query("", description="Grouping field: cluster, namespace, service, deployment or label."),
    aggregation_subfield: str = Query("", alias="aggregationSubfield", description="Label name for 'label'."),
    allocate_idle: bool = Query(False, alias="allocateIdle", description="Spread idle cluster cost."),
    shared_namespaces: str = Query("", alias="sharedNamespaces", description="Comma-separated shared namespaces."),
    shared_label_names: str = Query("", alias="sharedLabelNames", description="Comma-separated label names."),
    shared_label_values: str = Query("", alias="sharedLabelValues", description="Comma-separated label values."),
    time_series: bool = Query(False, alias="timeSeries", description="Include cost series."),
    disable_cache: bool = Query(False, alias="disableCache", description="Bypass the response cache."),
    clear_cache: bool = Query(False, alias="clearCache", description="Flush the response cache first."),
    cost_model: CostModel = Depends(get_cost_model),
    provider: BasePricingProvider = Depends(get_provider),
    cache: AggregationCache = Depends(get_cache),
):
    """Cost of the window grouped by the requested field."""
    result, message = await aggregated_cost_model(
        cost_model,
        provider,
        cache,
        window=window,
        field=aggregation,
        subfield=aggregation_subfield,
        offset=offset,
        namespace=namespace,
        cluster=cluster,
        allocate_idle=allocate_idle,
        shared_namespaces=shared_namespaces,
        shared_label_names=shared_label_names,
        shared_label_values=shared_label_values,
        time_series=time_series,
        disable_cache=disable_cache,
        clear_cache=clear_cache,
    )
    return success(_wire(result), message)


@router.get("/costDataModel")
async def cost_data_model(
    time_window: str = Query("1h", alias="timeWindow", description="Averaging window, e.g. '1h'."),
    offset: str = Query("", description="How far back the window ends."),
    namespace: str = Query("", description="Only include this namespace."),
    filter_field_names: Optional[str] = Query(None, alias="filterFields", description="Fields to omit."),
    aggregation: Optional[str] = Query(None, description="Optional grouping field."),
    aggregation_subfield: Optional[str] = Query(None, alias="aggregationSubfield"),
    cost_model: CostModel = Depends(get_cost_model),
    provider: BasePricingProvider = Depends(get_provider),
):
    """Per-container cost data averaged over a window."""
    resolve_duration(time_window, "timeWindow")
    cost_data = await cost_model.compute_cost_data(time_window, offset, namespace)
    return success(_raw_payload(provider, cost_data, filter_field_names, aggregation, aggregation_subfield))


@router.get("/costDataModelRange")
async def cost_data_model_range(
    start: str = Query(..., description="Range start (ISO 8601)."),
    end: str = Query(..., description="Range end (ISO 8601)."),
    window: str = Query("1h", description="Resolution of the series."),
    namespace: str = Query("", description="Only include this namespace."),
    cluster: str = Query("", description="Only include this cluster."),
    filter_field_names: Optional[str] = Query(None, alias="filterFields", description="Fields to omit."),
    aggregation: Optional[str] = Query(None, description="Optional grouping field."),
    aggregation_subfield: Optional[str] = Query(None, alias="aggregationSubfield"),
    cost_model: CostModel = Depends(get_cost_model),
    provider: BasePricingProvider = Depends(get_provider),
):
    """Per-container cost series between two instants."""
    try:
        start_dt, end_dt = ensure_utc(start), ensure_utc(end)
    except ValueError as e:
        raise InvalidParameterError(str(e)) from e
    if start_dt >= end_dt:
        raise InvalidParameterError("start must be before end")
    resolve_duration(window, "window")

    cost_data = await cost_model.compute_cost_data_range(start_dt, end_dt, window, namespace, cluster)
    return success(_raw_payload(provider, cost_data, filter_field_names, aggregation, aggregation_subfield))


@router.get("/clusterCosts")
async def cluster_costs(
    window: str = Query("1d", description="Averaging window."),
    offset: str = Query("", description="How far back the window ends."),
    cost_model: CostModel = Depends(get_cost_model),
):
    """Monthly-rate totals for the whole cluster."""
    resolve_duration(window, "window")
    totals = await cost_model.cluster_costs(window, offset)
    return success(totals.model_dump(by_alias=True))


@router.get("/containerUptimes")
async def container_uptimes(cost_model: CostModel = Depends(get_cost_model)):
    """Seconds since each running container started."""
    return success(await cost_model.compute_uptimes())
