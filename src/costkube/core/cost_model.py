# src/costkube/core/cost_model.py
"""
Builds per-container CostData records by joining Prometheus allocation
series with the cluster inventory and the pricing provider.

A container's allocation for a resource is the larger of its request and its
observed usage at each sample, so idle requested capacity is still billed.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..collectors.inventory_collector import ClusterInventory, InventoryCollector
from ..collectors.prometheus_collector import PrometheusCollector, vectors_from_result
from ..models.cost_data import ClusterCosts, CostData, PVCData
from ..models.vector import Vector
from ..pricing.base_provider import BasePricingProvider
from ..utils.date_utils import normalize_time_param
from .config import config
from .exceptions import QueryError
from .vectors import snap_timestamp

logger = logging.getLogger(__name__)

ContainerKey = Tuple[str, str, str]

CONTAINER_FILTER = 'container!="",container!="POD"'
CONTAINER_LABELS = "namespace, pod, container, node"

QUERY_CPU_REQUESTS = (
    'avg(avg_over_time(kube_pod_container_resource_requests{{resource="cpu",{filter}{ns}}}[{window}]{offset})) '
    "by ({labels})"
)
QUERY_CPU_USAGE = (
    "avg(rate(container_cpu_usage_seconds_total{{{filter}{ns}}}[{window}]{offset})) by ({labels})"
)
QUERY_RAM_REQUESTS = (
    'avg(avg_over_time(kube_pod_container_resource_requests{{resource="memory",{filter}{ns}}}[{window}]{offset})) '
    "by ({labels})"
)
QUERY_RAM_USAGE = (
    "avg(avg_over_time(container_memory_working_set_bytes{{{filter}{ns}}}[{window}]{offset})) by ({labels})"
)
QUERY_GPU_REQUESTS = (
    'avg(avg_over_time(kube_pod_container_resource_requests{{resource="nvidia_com_gpu",{filter}{ns}}}'
    "[{window}]{offset})) by ({labels})"
)
QUERY_PVC_REQUESTS = (
    "avg(avg_over_time(kube_persistentvolumeclaim_resource_requests_storage_bytes{{{ns_only}}}[{window}]{offset})) "
    "by (namespace, persistentvolumeclaim)"
)
QUERY_PVC_INFO = "avg(kube_persistentvolumeclaim_info{{{ns_only}}}) by (namespace, persistentvolumeclaim, volumename)"

QUERY_CLUSTER_CPU = (
    "sum(avg(avg_over_time(node_cpu_hourly_cost[{window}]{offset})) by (node) * on(node) "
    'avg(avg_over_time(kube_node_status_capacity{{resource="cpu"}}[{window}]{offset})) by (node)) * 730'
)
QUERY_CLUSTER_RAM = (
    "sum(avg(avg_over_time(node_ram_hourly_cost[{window}]{offset})) by (node) * on(node) "
    'avg(avg_over_time(kube_node_status_capacity{{resource="memory"}}[{window}]{offset})) by (node) '
    "/ 1024 / 1024 / 1024) * 730"
)
QUERY_CLUSTER_STORAGE = (
    "sum(avg(avg_over_time(pv_hourly_cost[{window}]{offset})) by (persistentvolume) * on(persistentvolume) "
    "avg(avg_over_time(kube_persistentvolume_capacity_bytes[{window}]{offset})) by (persistentvolume) "
    "/ 1024 / 1024 / 1024) * 730"
)
QUERY_UPTIMES = (
    "time() - max(container_start_time_seconds{{{filter}}}) by (namespace, pod, container)"
)


def offset_clause(offset: Optional[str]) -> str:
    """PromQL offset modifier for a duration such as '1h' (or 'offset 1h')."""
    if not offset:
        return ""
    offset = offset.strip()
    if offset.startswith("offset "):
        offset = offset[len("offset ") :].strip()
    return f" offset {normalize_time_param(offset)}"


def container_key_string(namespace: str, pod: str, container: str, node: str = "") -> str:
    return ",".join((namespace, pod, container, node)) if node else ",".join((namespace, pod, container))


def max_vectors(a: List[Vector], b: List[Vector]) -> List[Vector]:
    """Point-wise maximum of two series on the snapped time grid."""
    values: Dict[float, float] = {}
    for v in list(a) + list(b):
        if v.timestamp == 0:
            continue
        t = snap_timestamp(v.timestamp)
        values[t] = max(values.get(t, v.value), v.value)
    return [Vector(timestamp=t, value=values[t]) for t in sorted(values)]


def _series_by_container(
    results: List[Dict[str, Any]], nodes: Dict[ContainerKey, str]
) -> Dict[ContainerKey, List[Vector]]:
    """Group series by (namespace, pod, container).

    The `node` label is not part of the key: cAdvisor usage series often lack
    it while request series carry it. Any node label seen is kept in `nodes`.
    """
    series: Dict[ContainerKey, List[Vector]] = {}
    skipped = 0
    for item in results:
        metric = item.get("metric", {})
        namespace = metric.get("namespace")
        pod = metric.get("pod")
        container = metric.get("container")
        if not (namespace and pod and container):
            skipped += 1
            continue
        key = (namespace, pod, container)
        if metric.get("node"):
            nodes[key] = metric["node"]
        series[key] = series.get(key, []) + vectors_from_result(item)
    if skipped:
        logger.debug(f"Skipped {skipped} series without namespace/pod/container labels.")
    return series


class CostModel:
    """
    Computes CostData for every container seen in a window.
    """

    def __init__(
        self,
        prometheus: PrometheusCollector,
        inventory_collector: InventoryCollector,
        provider: BasePricingProvider,
        cluster_id: Optional[str] = None,
    ):
        self.prometheus = prometheus
        self.inventory_collector = inventory_collector
        self.provider = provider
        self.cluster_id = cluster_id or config.CLUSTER_ID

    async def compute_cost_data(
        self,
        window: str,
        offset: str = "",
        namespace: str = "",
        cluster: str = "",
    ) -> Dict[str, CostData]:
        """
        Cost data averaged over ``window`` ending now (minus ``offset``).
        Each record holds one sample per resource.

        Raises:
            QueryError: If Prometheus cannot be queried.
        """
        window = normalize_time_param(window)
        off = offset_clause(offset)

        async def run(template: str) -> List[Dict[str, Any]]:
            return await self.prometheus.query(self._render(template, window, off, namespace))

        return await self._build(run, namespace, cluster)

    async def compute_cost_data_range(
        self,
        start: datetime,
        end: datetime,
        step: str = "1h",
        namespace: str = "",
        cluster: str = "",
    ) -> Dict[str, CostData]:
        """
        Cost data between ``start`` and ``end``, one sample per ``step``.

        Raises:
            QueryError: If Prometheus cannot be queried.
        """
        step = normalize_time_param(step)

        async def run(template: str) -> List[Dict[str, Any]]:
            query = self._render(template, step, "", namespace)
            return await self.prometheus.query_range(query, start, end, step)

        return await self._build(run, namespace, cluster)

    @staticmethod
    def _render(template: str, window: str, offset: str, namespace: str) -> str:
        ns = f',namespace="{namespace}"' if namespace else ""
        ns_only = f'namespace="{namespace}"' if namespace else ""
        return template.format(
            filter=CONTAINER_FILTER,
            labels=CONTAINER_LABELS,
            ns=ns,
            ns_only=ns_only,
            window=window,
            offset=offset,
        )

    async def _build(self, run, namespace: str, cluster: str) -> Dict[str, CostData]:
        if cluster and cluster != self.cluster_id:
            logger.info(f"Cluster filter '{cluster}' does not match this cluster ({self.cluster_id}).")
            return {}

        nodes: Dict[ContainerKey, str] = {}
        cpu_requests = _series_by_container(await run(QUERY_CPU_REQUESTS), nodes)
        cpu_usage = _series_by_container(await run(QUERY_CPU_USAGE), nodes)
        ram_requests = _series_by_container(await run(QUERY_RAM_REQUESTS), nodes)
        ram_usage = _series_by_container(await run(QUERY_RAM_USAGE), nodes)
        gpu_requests = _series_by_container(await run(QUERY_GPU_REQUESTS), nodes)
        pvc_requests = await run(QUERY_PVC_REQUESTS)
        pvc_info = await run(QUERY_PVC_INFO)

        inventory = await self.inventory_collector.collect()
        return self._join(
            inventory,
            cpu_requests,
            cpu_usage,
            ram_requests,
            ram_usage,
            gpu_requests,
            pvc_requests,
            pvc_info,
            nodes,
            namespace,
        )

    def _join(
        self,
        inventory: ClusterInventory,
        cpu_requests,
        cpu_usage,
        ram_requests,
        ram_usage,
        gpu_requests,
        pvc_requests,
        pvc_info,
        container_nodes: Dict[ContainerKey, str],
        namespace: str,
    ) -> Dict[str, CostData]:
        nodes = inventory.node_map()
        node_prices = {}
        for name, node in nodes.items():
            node_prices[name] = self.provider.node_pricing(node)

        pods = {(p.metadata.namespace, p.metadata.name): p for p in inventory.pods}
        claims = self._claims(inventory, pvc_requests, pvc_info)

        keys = set(cpu_requests) | set(cpu_usage) | set(ram_requests) | set(ram_usage) | set(gpu_requests)
        cost_data: Dict[str, CostData] = {}
        for k in sorted(keys):
            ns, pod_name, container = k
            if namespace and ns != namespace:
                continue
            node_name = container_nodes.get(k, "")
            pod = pods.get((ns, pod_name))
            labels = dict(pod.metadata.labels or {}) if pod is not None else {}
            if not node_name and pod is not None and pod.spec is not None:
                node_name = pod.spec.node_name or ""

            pvc_data = []
            if pod is not None and pod.spec is not None:
                for volume in pod.spec.volumes or []:
                    pvc_ref = volume.persistent_volume_claim
                    if pvc_ref is not None and (ns, pvc_ref.claim_name) in claims:
                        pvc_data.append(claims[(ns, pvc_ref.claim_name)])

            cost_data[container_key_string(ns, pod_name, container, node_name)] = CostData(
                name=container,
                pod_name=pod_name,
                namespace=ns,
                node_name=node_name,
                cluster_id=self.cluster_id,
                labels=labels,
                services=inventory.pod_services(ns, labels),
                deployments=inventory.pod_deployments(ns, labels),
                node_data=node_prices.get(node_name),
                cpu_allocation=max_vectors(cpu_requests.get(k, []), cpu_usage.get(k, [])),
                ram_allocation=max_vectors(ram_requests.get(k, []), ram_usage.get(k, [])),
                gpu_request=gpu_requests.get(k, []),
                pvc_data=pvc_data,
            )

        logger.info(f"Computed cost data for {len(cost_data)} container(s).")
        return cost_data

    def _claims(self, inventory: ClusterInventory, pvc_requests, pvc_info) -> Dict[Tuple[str, str], PVCData]:
        volumes_by_claim: Dict[Tuple[str, str], str] = {}
        for item in pvc_info:
            metric = item.get("metric", {})
            if metric.get("namespace") and metric.get("persistentvolumeclaim"):
                volumes_by_claim[(metric["namespace"], metric["persistentvolumeclaim"])] = metric.get("volumename", "")

        pvs = {pv.metadata.name: pv for pv in inventory.persistent_volumes}
        class_params = inventory.storage_class_parameters()

        claims: Dict[Tuple[str, str], PVCData] = {}
        for item in pvc_requests:
            metric = item.get("metric", {})
            ns, claim = metric.get("namespace"), metric.get("persistentvolumeclaim")
            if not (ns and claim):
                continue
            volume_name = volumes_by_claim.get((ns, claim), "")
            pv = pvs.get(volume_name)
            volume = None
            if pv is not None:
                storage_class = (pv.spec.storage_class_name if pv.spec else None) or ""
                volume = self.provider.pv_pricing(pv, class_params.get(storage_class, {}))
            claims[(ns, claim)] = PVCData(
                claim=claim,
                volume_name=volume_name,
                namespace=ns,
                volume=volume,
                values=vectors_from_result(item),
            )
        return claims

    async def cluster_costs(self, window: str, offset: str = "") -> ClusterCosts:
        """
        Monthly-rate cluster cost totals averaged over ``window``.

        Raises:
            QueryError: If Prometheus cannot be queried.
        """
        window = normalize_time_param(window)
        off = offset_clause(offset)
        fmt = {"window": window, "offset": off}

        cpu = await self.prometheus.query(QUERY_CLUSTER_CPU.format(**fmt))
        ram = await self.prometheus.query(QUERY_CLUSTER_RAM.format(**fmt))
        storage = await self.prometheus.query(QUERY_CLUSTER_STORAGE.format(**fmt))

        def first_pair(results) -> List[List]:
            for item in results:
                vectors = vectors_from_result(item)
                if vectors:
                    return [[vectors[0].timestamp, str(vectors[0].value)]]
            return []

        cpu_pairs, ram_pairs, storage_pairs = first_pair(cpu), first_pair(ram), first_pair(storage)
        parts = [p for p in (cpu_pairs, ram_pairs, storage_pairs) if p]
        total_pairs = []
        if parts:
            ts = parts[0][0][0]
            total_pairs = [[ts, str(sum(float(p[0][1]) for p in parts))]]

        return ClusterCosts(
            total_cost=total_pairs,
            cpu_cost=cpu_pairs,
            ram_cost=ram_pairs,
            storage_cost=storage_pairs,
        )

    async def compute_uptimes(self) -> Dict[str, float]:
        """Seconds since each running container started, keyed 'namespace,pod,container'."""
        results = await self.prometheus.query(QUERY_UPTIMES.format(filter=CONTAINER_FILTER))
        uptimes = {}
        for item in results:
            metric = item.get("metric", {})
            if not (metric.get("namespace") and metric.get("pod") and metric.get("container")):
                continue
            vectors = vectors_from_result(item)
            if vectors:
                key = container_key_string(metric["namespace"], metric["pod"], metric["container"])
                uptimes[key] = vectors[0].value
        return uptimes

    async def close(self):
        await self.inventory_collector.close()


__all__ = ["CostModel", "QueryError", "container_key_string", "max_vectors", "offset_clause"]
