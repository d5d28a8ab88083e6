# src/costkube/core/recorder.py
"""
Periodically publishes node, volume, container and network prices as
Prometheus gauges, and removes the series of entities that disappeared.

Each cycle marks every label set it writes. At the end of the cycle, label
sets that were not written are removed from their gauges and the marks of the
others are reset for the next cycle.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from prometheus_client import CollectorRegistry, Gauge

from ..collectors.inventory_collector import ClusterInventory
from ..models.cost_data import CostData, NetworkPricing
from ..pricing.base_provider import BasePricingProvider, parse_float
from .cache import AggregationCache
from .config import Config
from .config import config as global_config
from .cost_model import CostModel
from .exceptions import CostKubeError
from .pricing import BYTES_PER_GIB
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

RUNNING_PHASE = "Running"

LabelSet = Tuple[str, ...]


@dataclass
class RecordSnapshot:
    """Everything one recording cycle needs, fetched before any gauge is touched."""

    network: Optional[NetworkPricing] = None
    inventory: ClusterInventory = field(default_factory=ClusterInventory)
    cost_data: Dict[str, CostData] = field(default_factory=dict)
    uptimes: Dict[str, float] = field(default_factory=dict)


class CostMetricsRecorder:
    """
    Owns the price gauges of one CollectorRegistry and keeps them in sync
    with the cluster.
    """

    def __init__(
        self,
        cost_model: CostModel,
        provider: BasePricingProvider,
        registry: Optional[CollectorRegistry] = None,
        cache: Optional[AggregationCache] = None,
        settings: Optional[Config] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.cost_model = cost_model
        self.provider = provider
        self.registry = registry if registry is not None else CollectorRegistry()
        self.cache = cache
        self.settings = settings or global_config
        self.window = self.settings.RECORD_WINDOW
        self.scheduler = scheduler or Scheduler()

        node_labels = ["instance", "node"]
        container_labels = ["namespace", "pod", "container", "instance", "node"]

        self.cpu_price = Gauge(
            "node_cpu_hourly_cost", "Hourly cost per vCPU on this node", node_labels, registry=self.registry
        )
        self.ram_price = Gauge(
            "node_ram_hourly_cost", "Hourly cost per GiB of RAM on this node", node_labels, registry=self.registry
        )
        self.gpu_price = Gauge(
            "node_gpu_hourly_cost", "Hourly cost per GPU on this node", node_labels, registry=self.registry
        )
        self.node_total_price = Gauge(
            "node_total_hourly_cost", "Total hourly cost of this node", node_labels, registry=self.registry
        )
        self.pv_price = Gauge(
            "pv_hourly_cost",
            "Hourly cost per GiB of a persistent volume",
            ["volumename", "persistentvolume"],
            registry=self.registry,
        )
        self.ram_allocation = Gauge(
            "container_memory_allocation_bytes",
            "Bytes of RAM allocated to a container",
            container_labels,
            registry=self.registry,
        )
        self.cpu_allocation = Gauge(
            "container_cpu_allocation", "vCPUs allocated to a container", container_labels, registry=self.registry
        )
        self.gpu_allocation = Gauge(
            "container_gpu_allocation", "GPUs allocated to a container", container_labels, registry=self.registry
        )
        self.pvc_allocation = Gauge(
            "pod_pvc_allocation",
            "Bytes of persistent volume claimed by a pod",
            ["namespace", "pod", "persistentvolumeclaim", "persistentvolume"],
            registry=self.registry,
        )
        self.container_uptime = Gauge(
            "container_uptime_seconds",
            "Seconds since the container started",
            ["namespace", "pod", "container"],
            registry=self.registry,
        )
        self.network_zone_egress = Gauge(
            "kubecost_network_zone_egress_cost", "Cost per GiB of egress across zones", registry=self.registry
        )
        self.network_region_egress = Gauge(
            "kubecost_network_region_egress_cost", "Cost per GiB of egress across regions", registry=self.registry
        )
        self.network_internet_egress = Gauge(
            "kubecost_network_internet_egress_cost", "Cost per GiB of egress to the internet", registry=self.registry
        )

        self._node_seen: Dict[LabelSet, bool] = {}
        self._container_seen: Dict[LabelSet, bool] = {}
        self._pv_seen: Dict[LabelSet, bool] = {}
        self._pvc_seen: Dict[LabelSet, bool] = {}

    async def fetch(self) -> RecordSnapshot:
        """
        Collect the data of one cycle. A source that fails yields an empty
        data set instead of aborting the cycle.
        """
        snapshot = RecordSnapshot()
        try:
            snapshot.network = self.provider.network_pricing()
        except CostKubeError as e:
            logger.warning(f"Could not load network pricing: {e}")

        # Listing failures already degrade to empty kinds.
        snapshot.inventory = await self.cost_model.inventory_collector.collect()

        try:
            snapshot.cost_data = await self.cost_model.compute_cost_data(self.window)
        except CostKubeError as e:
            logger.error(f"Could not compute cost data for window {self.window}: {e}")

        try:
            snapshot.uptimes = await self.cost_model.compute_uptimes()
        except CostKubeError as e:
            logger.error(f"Could not compute container uptimes: {e}")

        return snapshot

    def apply(self, snapshot: RecordSnapshot) -> None:
        """Write the gauges for ``snapshot``, then evict stale series. Never awaits."""
        if snapshot.network is not None:
            self.network_zone_egress.set(snapshot.network.zone_egress)
            self.network_region_egress.set(snapshot.network.region_egress)
            self.network_internet_egress.set(snapshot.network.internet_egress)

        phases = snapshot.inventory.pod_phases()
        for key, datum in snapshot.cost_data.items():
            if datum.node_data is None:
                logger.debug(f"Skipping {key}: no node pricing for node '{datum.node_name}'.")
                continue
            self._record_node(datum)
            self._record_container(datum, phases.get((datum.namespace, datum.pod_name)) == RUNNING_PHASE)
            self._record_claims(datum)

        self._record_volumes(snapshot.inventory)

        for key, seconds in snapshot.uptimes.items():
            parts = key.split(",")
            if len(parts) != 3:
                logger.debug(f"Ignoring malformed uptime key '{key}'.")
                continue
            self.container_uptime.labels(*parts).set(seconds)

        self._sweep()

    async def record_once(self) -> None:
        """Run one fetch-then-apply cycle."""
        snapshot = await self.fetch()
        self.apply(snapshot)
        logger.debug(
            f"Recorded prices for {len(self._node_seen)} node(s), {len(self._container_seen)} container(s), "
            f"{len(self._pv_seen)} volume(s)."
        )

    def _record_node(self, datum: CostData) -> None:
        node = datum.node_name
        data = datum.node_data
        vcpu = parse_float(data.vcpu)
        vcpu_cost = parse_float(data.vcpu_cost)
        ram_cost = parse_float(data.ram_cost)
        ram_gb = parse_float(data.ram_bytes) / BYTES_PER_GIB
        gpu = parse_float(data.gpu)
        gpu_cost = parse_float(data.gpu_cost)
        total = vcpu * vcpu_cost + ram_cost * ram_gb + gpu * gpu_cost

        self.cpu_price.labels(node, node).set(vcpu_cost)
        self.ram_price.labels(node, node).set(ram_cost)
        self.gpu_price.labels(node, node).set(gpu_cost)
        self.node_total_price.labels(node, node).set(total)
        self._node_seen[(node, node)] = True

    def _record_container(self, datum: CostData, running: bool) -> None:
        node = datum.node_name
        labels = (datum.namespace, datum.pod_name, datum.name, node, node)
        if datum.ram_allocation:
            self.ram_allocation.labels(*labels).set(datum.ram_allocation[0].value)
        if datum.cpu_allocation:
            self.cpu_allocation.labels(*labels).set(datum.cpu_allocation[0].value)
        if datum.gpu_request:
            self.gpu_allocation.labels(*labels).set(datum.gpu_request[0].value)
        # Non-running pods are written once and evicted by this cycle's sweep.
        self._container_seen[labels] = running

    def _record_claims(self, datum: CostData) -> None:
        for pvc in datum.pvc_data:
            if pvc.volume is None or not pvc.values:
                continue
            labels = (datum.namespace, datum.pod_name, pvc.claim, pvc.volume_name)
            self.pvc_allocation.labels(*labels).set(pvc.values[0].value)
            self._pvc_seen[labels] = True

    def _record_volumes(self, inventory: ClusterInventory) -> None:
        class_params = inventory.storage_class_parameters()
        for pv in inventory.persistent_volumes:
            name = pv.metadata.name
            storage_class = (pv.spec.storage_class_name if pv.spec else None) or ""
            params = class_params.get(storage_class)
            if params is None:
                logger.debug(f"Storage class '{storage_class}' of volume {name} not found.")
                params = {}
            try:
                pricing = self.provider.pv_pricing(pv, params)
            except CostKubeError as e:
                logger.warning(f"Could not price volume {name}: {e}")
                continue
            self.pv_price.labels(name, name).set(parse_float(pricing.cost))
            self._pv_seen[(name, name)] = True

    def _sweep(self) -> None:
        self._sweep_map(self._node_seen, [self.cpu_price, self.ram_price, self.gpu_price, self.node_total_price])
        evicted = self._sweep_map(
            self._container_seen, [self.ram_allocation, self.cpu_allocation, self.gpu_allocation]
        )
        for namespace, pod, container, _, _ in evicted:
            _remove(self.container_uptime, (namespace, pod, container))
        self._sweep_map(self._pv_seen, [self.pv_price])
        self._sweep_map(self._pvc_seen, [self.pvc_allocation])

    @staticmethod
    def _sweep_map(seen: Dict[LabelSet, bool], gauges: List[Gauge]) -> List[LabelSet]:
        evicted = []
        for labels, fresh in list(seen.items()):
            if fresh:
                seen[labels] = False
                continue
            for gauge in gauges:
                _remove(gauge, labels)
            del seen[labels]
            evicted.append(labels)
        if evicted:
            logger.debug(f"Evicted {len(evicted)} stale label set(s).")
        return evicted

    async def clean_cache(self) -> None:
        """Drop expired aggregation cache entries."""
        if self.cache is not None:
            self.cache.delete_expired()

    def start(self, interval: Optional[str] = None) -> None:
        """
        Schedule recording every ``interval`` (RECORD_INTERVAL by default) and,
        when a cache is attached, its expiry sweep every CACHE_CLEANUP_INTERVAL.
        """
        interval = interval or self.settings.RECORD_INTERVAL
        self.scheduler.add_job_from_string(self.record_once, interval)
        if self.cache is not None:
            self.scheduler.add_job_from_string(self.clean_cache, self.settings.CACHE_CLEANUP_INTERVAL)
        logger.info(f"Price recorder started (interval={interval}, window={self.window}).")

    async def stop(self) -> None:
        """Cancel the recording task. An in-flight fetch is abandoned; gauges are left as last applied."""
        await self.scheduler.stop()
        logger.info("Price recorder stopped.")


def _remove(gauge: Gauge, labels: LabelSet) -> None:
    try:
        gauge.remove(*labels)
    except KeyError:
        # Older prometheus_client releases raise for label sets never written.
        pass
