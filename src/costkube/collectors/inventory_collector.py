# src/costkube/collectors/inventory_collector.py
"""
Collects the live cluster inventory (nodes, pods, persistent volumes,
storage classes, services, deployments) from the Kubernetes API.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from kubernetes_asyncio import client
from kubernetes_asyncio.client.rest import ApiException

from ..core.k8s_client import get_api_client
from ..utils.k8s_utils import is_default_storage_class
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)


@dataclass
class ClusterInventory:
    """Snapshot of the Kubernetes objects the cost model needs."""

    nodes: List[Any] = field(default_factory=list)
    pods: List[Any] = field(default_factory=list)
    persistent_volumes: List[Any] = field(default_factory=list)
    storage_classes: List[Any] = field(default_factory=list)
    services: List[Any] = field(default_factory=list)
    deployments: List[Any] = field(default_factory=list)

    def node_map(self) -> Dict[str, Any]:
        return {n.metadata.name: n for n in self.nodes}

    def pod_phases(self) -> Dict[Tuple[str, str], Optional[str]]:
        """(namespace, pod name) -> status phase ('Running', 'Pending', ...)."""
        phases = {}
        for pod in self.pods:
            phases[(pod.metadata.namespace, pod.metadata.name)] = pod.status.phase if pod.status else None
        return phases

    def storage_class_parameters(self) -> Dict[str, Dict[str, str]]:
        """
        Storage class name -> parameters. The default class is also
        registered under 'default' and '' for volumes without a class name.
        """
        params_by_class: Dict[str, Dict[str, str]] = {}
        for sc in self.storage_classes:
            params = dict(sc.parameters or {})
            params_by_class[sc.metadata.name] = params
            if is_default_storage_class(sc.metadata.annotations):
                params_by_class["default"] = params
                params_by_class[""] = params
        return params_by_class

    def pod_services(self, namespace: str, pod_labels: Optional[Dict[str, str]]) -> List[str]:
        """Names of services in ``namespace`` whose selector matches ``pod_labels``."""
        names = []
        for svc in self.services:
            if svc.metadata.namespace != namespace or not svc.spec:
                continue
            if _selector_matches(svc.spec.selector, pod_labels):
                names.append(svc.metadata.name)
        return names

    def pod_deployments(self, namespace: str, pod_labels: Optional[Dict[str, str]]) -> List[str]:
        """Names of deployments in ``namespace`` whose match labels select ``pod_labels``."""
        names = []
        for dep in self.deployments:
            if dep.metadata.namespace != namespace or not dep.spec or not dep.spec.selector:
                continue
            if _selector_matches(dep.spec.selector.match_labels, pod_labels):
                names.append(dep.metadata.name)
        return names


def _selector_matches(selector: Optional[Dict[str, str]], labels: Optional[Dict[str, str]]) -> bool:
    # An empty selector selects nothing for cost attribution purposes.
    if not selector:
        return False
    labels = labels or {}
    return all(labels.get(k) == v for k, v in selector.items())


class InventoryCollector(BaseCollector):
    """
    Connects to the K8s API and lists the objects of a ClusterInventory.
    """

    def __init__(self):
        self._api_client = None

    async def _ensure_client(self):
        """Lazily initialize the Kubernetes client."""
        if self._api_client:
            return self._api_client

        self._api_client = await get_api_client()
        if not self._api_client:
            logger.warning("InventoryCollector could not initialize Kubernetes client.")
        return self._api_client

    async def _list(self, kind: str, call) -> List[Any]:
        try:
            result = await call(watch=False)
            return list(result.items or [])
        except ApiException as e:
            logger.error(f"Kubernetes API error while listing {kind}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error while listing {kind}: {e}", exc_info=True)
        return []

    async def collect(self) -> ClusterInventory:
        """
        Fetch the inventory. Any kind that cannot be listed is left empty.
        """
        api_client = await self._ensure_client()
        if not api_client:
            logger.debug("Kubernetes client not configured; returning empty inventory.")
            return ClusterInventory()

        core = client.CoreV1Api(api_client)
        apps = client.AppsV1Api(api_client)
        storage = client.StorageV1Api(api_client)

        inventory = ClusterInventory(
            nodes=await self._list("nodes", core.list_node),
            pods=await self._list("pods", core.list_pod_for_all_namespaces),
            persistent_volumes=await self._list("persistent volumes", core.list_persistent_volume),
            storage_classes=await self._list("storage classes", storage.list_storage_class),
            services=await self._list("services", core.list_service_for_all_namespaces),
            deployments=await self._list("deployments", apps.list_deployment_for_all_namespaces),
        )
        logger.debug(
            f"Collected inventory: {len(inventory.nodes)} node(s), {len(inventory.pods)} pod(s), "
            f"{len(inventory.persistent_volumes)} PV(s)"
        )
        return inventory

    async def close(self):
        """Close the Kubernetes API client if it exists."""
        if self._api_client:
            await self._api_client.close()
            logger.debug("InventoryCollector Kubernetes client closed.")
            self._api_client = None
