# tests/collectors/test_inventory_collector.py

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from kubernetes_asyncio.client.rest import ApiException

from costkube.collectors.inventory_collector import ClusterInventory, InventoryCollector


def _listing(*items):
    return AsyncMock(return_value=SimpleNamespace(items=list(items)))


def _named(name, namespace=None, **extra):
    return SimpleNamespace(metadata=SimpleNamespace(name=name, namespace=namespace, annotations=None), **extra)


@pytest.fixture
def mock_apis():
    core = MagicMock()
    core.list_node = _listing(_named("node-1"))
    core.list_pod_for_all_namespaces = _listing(_named("pod-1", "prod", status=SimpleNamespace(phase="Running")))
    core.list_persistent_volume = _listing()
    core.list_service_for_all_namespaces = AsyncMock(side_effect=ApiException(status=403, reason="Forbidden"))
    apps = MagicMock()
    apps.list_deployment_for_all_namespaces = _listing()
    storage = MagicMock()
    storage.list_storage_class = _listing()
    return core, apps, storage


@pytest.mark.asyncio
async def test_collect_lists_every_kind(mock_apis):
    core, apps, storage = mock_apis
    with (
        patch("costkube.collectors.inventory_collector.get_api_client", AsyncMock(return_value=MagicMock())),
        patch("costkube.collectors.inventory_collector.client.CoreV1Api", return_value=core),
        patch("costkube.collectors.inventory_collector.client.AppsV1Api", return_value=apps),
        patch("costkube.collectors.inventory_collector.client.StorageV1Api", return_value=storage),
    ):
        inventory = await InventoryCollector().collect()

    assert list(inventory.node_map()) == ["node-1"]
    assert inventory.pod_phases() == {("prod", "pod-1"): "Running"}
    # A forbidden listing degrades to an empty kind.
    assert inventory.services == []


@pytest.mark.asyncio
async def test_collect_without_cluster_config_is_empty():
    with patch("costkube.collectors.inventory_collector.get_api_client", AsyncMock(return_value=None)):
        inventory = await InventoryCollector().collect()

    assert inventory == ClusterInventory()


@pytest.mark.asyncio
async def test_close_closes_api_client():
    api_client = MagicMock()
    api_client.close = AsyncMock()
    collector = InventoryCollector()
    collector._api_client = api_client

    await collector.close()

    api_client.close.assert_awaited_once()
    assert collector._api_client is None


def test_default_storage_class_is_registered_under_aliases():
    standard = SimpleNamespace(
        metadata=SimpleNamespace(name="standard", annotations={"storageclass.kubernetes.io/is-default-class": "true"}),
        parameters={"type": "pd-standard"},
    )
    fast = SimpleNamespace(metadata=SimpleNamespace(name="fast", annotations={}), parameters={"type": "pd-ssd"})

    params = ClusterInventory(storage_classes=[standard, fast]).storage_class_parameters()

    assert params["default"] == params[""] == {"type": "pd-standard"}
    assert params["fast"] == {"type": "pd-ssd"}


def _service(name, namespace, selector):
    metadata = SimpleNamespace(name=name, namespace=namespace)
    return SimpleNamespace(metadata=metadata, spec=SimpleNamespace(selector=selector))


def test_services_and_deployments_match_pod_labels():
    svc = _service("web", "prod", {"app": "web"})
    catch_all = _service("headless", "prod", None)
    other_ns = _service("web", "dev", {"app": "web"})
    dep = SimpleNamespace(
        metadata=SimpleNamespace(name="web-deploy", namespace="prod"),
        spec=SimpleNamespace(selector=SimpleNamespace(match_labels={"app": "web"})),
    )
    inventory = ClusterInventory(services=[svc, catch_all, other_ns], deployments=[dep])

    assert inventory.pod_services("prod", {"app": "web", "tier": "front"}) == ["web"]
    assert inventory.pod_deployments("prod", {"app": "web"}) == ["web-deploy"]
    assert inventory.pod_services("prod", {}) == []
