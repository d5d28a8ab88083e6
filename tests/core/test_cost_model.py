# tests/core/test_cost_model.py

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from costkube.collectors.inventory_collector import ClusterInventory
from costkube.core.cost_model import CostModel, max_vectors, offset_clause
from costkube.core.exceptions import QueryError
from costkube.models.vector import Vector

CONTAINER = {"namespace": "prod", "pod": "api-1", "container": "api", "node": "node-1"}


def _result(metric, value, ts=1000):
    return {"metric": metric, "value": [ts, str(value)]}


def _prometheus(responses):
    """Fake collector answering each query by the first metric name it mentions."""

    async def query(q):
        for needle, result in responses.items():
            if needle in q:
                return result
        return []

    async def query_range(q, start, end, step):
        return await query(q)

    prometheus = MagicMock()
    prometheus.query = AsyncMock(side_effect=query)
    prometheus.query_range = AsyncMock(side_effect=query_range)
    return prometheus


def _inventory():
    node = SimpleNamespace(metadata=SimpleNamespace(name="node-1", labels={}))
    pod = SimpleNamespace(
        metadata=SimpleNamespace(namespace="prod", name="api-1", labels={"app": "api"}),
        spec=SimpleNamespace(
            node_name="node-1",
            volumes=[SimpleNamespace(persistent_volume_claim=SimpleNamespace(claim_name="data"))],
        ),
        status=SimpleNamespace(phase="Running"),
    )
    pv = SimpleNamespace(metadata=SimpleNamespace(name="pv-1", labels={}), spec=SimpleNamespace(storage_class_name=""))
    service = SimpleNamespace(
        metadata=SimpleNamespace(namespace="prod", name="api-svc"), spec=SimpleNamespace(selector={"app": "api"})
    )
    return ClusterInventory(nodes=[node], pods=[pod], persistent_volumes=[pv], services=[service])


@pytest.fixture
def model(provider):
    responses = {
        'resource="cpu"': [_result(CONTAINER, 0.5)],
        "container_cpu_usage_seconds_total": [_result(CONTAINER, 0.8)],
        'resource="memory"': [_result(CONTAINER, 2048)],
        "container_memory_working_set_bytes": [_result(CONTAINER, 1024)],
        "kube_persistentvolumeclaim_resource_requests_storage_bytes": [
            _result({"namespace": "prod", "persistentvolumeclaim": "data"}, 5e9)
        ],
        "kube_persistentvolumeclaim_info": [
            _result({"namespace": "prod", "persistentvolumeclaim": "data", "volumename": "pv-1"}, 1)
        ],
    }
    inventory_collector = MagicMock()
    inventory_collector.collect = AsyncMock(return_value=_inventory())
    inventory_collector.close = AsyncMock()
    return CostModel(_prometheus(responses), inventory_collector, provider, cluster_id="cluster-one")


@pytest.mark.asyncio
async def test_compute_cost_data_joins_allocations_and_inventory(model):
    cost_data = await model.compute_cost_data("2m")

    assert list(cost_data) == ["prod,api-1,api,node-1"]
    datum = cost_data["prod,api-1,api,node-1"]
    assert datum.cluster_id == "cluster-one"
    assert datum.labels == {"app": "api"}
    assert datum.services == ["api-svc"]
    assert datum.node_data is not None
    # Allocation is the larger of request and usage.
    assert [v.value for v in datum.cpu_allocation] == [0.8]
    assert [v.value for v in datum.ram_allocation] == [2048.0]
    assert datum.gpu_request == []
    assert len(datum.pvc_data) == 1
    assert datum.pvc_data[0].volume_name == "pv-1"
    assert datum.pvc_data[0].volume is not None


@pytest.mark.asyncio
async def test_usage_without_node_label_merges_with_requests(provider):
    cadvisor = {k: v for k, v in CONTAINER.items() if k != "node"}
    responses = {
        'resource="cpu"': [_result(CONTAINER, 0.5)],
        "container_cpu_usage_seconds_total": [_result(cadvisor, 2.0)],
    }
    inventory_collector = MagicMock()
    inventory_collector.collect = AsyncMock(return_value=_inventory())
    model = CostModel(_prometheus(responses), inventory_collector, provider, cluster_id="cluster-one")

    cost_data = await model.compute_cost_data("1h")

    assert list(cost_data) == ["prod,api-1,api,node-1"]
    assert [v.value for v in cost_data["prod,api-1,api,node-1"].cpu_allocation] == [2.0]


@pytest.mark.asyncio
async def test_compute_cost_data_renders_window_and_namespace(model):
    await model.compute_cost_data("2d", offset="1h", namespace="prod")

    queries = [c.args[0] for c in model.prometheus.query.await_args_list]
    cpu_query = next(q for q in queries if 'resource="cpu"' in q)
    assert "[48h] offset 1h" in cpu_query
    assert 'namespace="prod"' in cpu_query


@pytest.mark.asyncio
async def test_compute_cost_data_for_other_cluster_is_empty(model):
    assert await model.compute_cost_data("1h", cluster="elsewhere") == {}
    model.prometheus.query.assert_not_awaited()


@pytest.mark.asyncio
async def test_compute_cost_data_range_uses_range_queries(model):
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    end = datetime(2026, 1, 2, tzinfo=timezone.utc)

    cost_data = await model.compute_cost_data_range(start, end, "1h")

    assert cost_data
    first = model.prometheus.query_range.call_args_list[0]
    assert first.args[1:] == (start, end, "1h")


@pytest.mark.asyncio
async def test_query_errors_propagate(provider):
    prometheus = MagicMock()
    prometheus.query = AsyncMock(side_effect=QueryError("down"))
    model = CostModel(prometheus, MagicMock(), provider)

    with pytest.raises(QueryError):
        await model.compute_cost_data("1h")


@pytest.mark.asyncio
async def test_cluster_costs_totals(provider):
    prometheus = _prometheus(
        {
            "node_cpu_hourly_cost": [_result({}, 100)],
            "node_ram_hourly_cost": [_result({}, 50)],
            "pv_hourly_cost": [_result({}, 10)],
        }
    )
    model = CostModel(prometheus, MagicMock(), provider)

    totals = await model.cluster_costs("1d")

    assert totals.cpu_cost == [[1000.0, "100.0"]]
    assert totals.total_cost == [[1000.0, "160.0"]]


@pytest.mark.asyncio
async def test_cluster_costs_empty_without_data(provider):
    model = CostModel(_prometheus({}), MagicMock(), provider)

    totals = await model.cluster_costs("1h")

    assert totals.total_cost == []


@pytest.mark.asyncio
async def test_compute_uptimes(provider):
    prometheus = _prometheus(
        {"container_start_time_seconds": [_result({"namespace": "prod", "pod": "api-1", "container": "api"}, 360)]}
    )
    model = CostModel(prometheus, MagicMock(), provider)

    assert await model.compute_uptimes() == {"prod,api-1,api": 360.0}


def test_max_vectors_takes_pointwise_maximum():
    a = [Vector(timestamp=1000, value=1.0), Vector(timestamp=1010, value=5.0)]
    b = [Vector(timestamp=1001, value=2.0), Vector(timestamp=1020, value=3.0)]

    result = max_vectors(a, b)

    assert [(v.timestamp, v.value) for v in result] == [(1000.0, 2.0), (1010.0, 5.0), (1020.0, 3.0)]


@pytest.mark.parametrize(
    "offset, expected",
    [("", ""), ("1h", " offset 1h"), ("offset 2d", " offset 48h")],
)
def test_offset_clause(offset, expected):
    assert offset_clause(offset) == expected
