# tests/api/test_aggregated_cost_model.py

from costkube.core.exceptions import QueryError
from costkube.models.cost_data import ClusterCosts


def test_missing_aggregation_is_bad_request(client, mock_cost_model):
    response = client.get("/aggregatedCostModel", params={"window": "1d"})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == 400
    assert body["status"] == "error"
    mock_cost_model.compute_cost_data_range.assert_not_awaited()


def test_label_aggregation_requires_subfield(client):
    response = client.get("/aggregatedCostModel", params={"aggregation": "label"})

    assert response.status_code == 400


def test_unpaired_shared_labels_rejected_before_computation(client, mock_cost_model):
    response = client.get(
        "/aggregatedCostModel",
        params={"aggregation": "namespace", "sharedLabelNames": "team,tier", "sharedLabelValues": "infra"},
    )

    assert response.status_code == 400
    assert "label value" in response.json()["message"]
    mock_cost_model.compute_cost_data_range.assert_not_awaited()


def test_aggregation_by_namespace(client, mock_cost_model, make_cost_data):
    mock_cost_model.compute_cost_data_range.return_value = {
        "a": make_cost_data(name="a", namespace="prod", cpu=((1000.0, 2.0),)),
        "b": make_cost_data(name="b", namespace="dev", cpu=((1000.0, 1.0),)),
    }

    response = client.get("/aggregatedCostModel", params={"window": "1d", "aggregation": "namespace"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["message"] == "cache miss: aggregate:1d::::namespace::false"
    assert body["data"]["prod"]["totalCost"] == 2.0
    assert body["data"]["prod"]["aggregation"] == "namespace"
    assert "cpuCostVector" not in body["data"]["prod"]


def test_time_series_output_includes_vectors(client, mock_cost_model, make_cost_data):
    mock_cost_model.compute_cost_data_range.return_value = {"a": make_cost_data(cpu=((1000.0, 2.0),))}

    response = client.get("/aggregatedCostModel", params={"aggregation": "namespace", "timeSeries": "true"})

    assert response.json()["data"]["default"]["cpuCostVector"] == [{"timestamp": 1000.0, "value": 2.0}]


def test_second_request_is_served_from_cache(client, mock_cost_model, make_cost_data):
    mock_cost_model.compute_cost_data_range.return_value = {"a": make_cost_data()}
    params = {"window": "2h", "aggregation": "namespace"}

    client.get("/aggregatedCostModel", params=params)
    response = client.get("/aggregatedCostModel", params=params)

    assert response.json()["message"] == "cache hit: aggregate:2h::::namespace::false"
    assert mock_cost_model.compute_cost_data_range.await_count == 1


def test_disable_and_clear_cache(client, mock_cost_model, cache):
    params = {"window": "2h", "aggregation": "namespace"}
    client.get("/aggregatedCostModel", params=params)

    response = client.get("/aggregatedCostModel", params={**params, "disableCache": "true"})
    assert response.json()["message"].startswith("cache miss")

    response = client.get("/aggregatedCostModel", params={**params, "clearCache": "true"})
    assert response.json()["message"].startswith("cache miss")
    assert mock_cost_model.compute_cost_data_range.await_count == 3
    assert len(cache) == 1


def test_allocate_idle_scales_costs(client, mock_cost_model, make_cost_data):
    # Cluster costs 730 $/month: 1 $ over one hour. The container bills 0.5 $.
    mock_cost_model.compute_cost_data_range.return_value = {"a": make_cost_data(cpu=((1000.0, 0.5),))}
    mock_cost_model.cluster_costs.return_value = ClusterCosts(total_cost=[[1000, "730"]])

    response = client.get(
        "/aggregatedCostModel", params={"window": "1h", "aggregation": "namespace", "allocateIdle": "true"}
    )

    assert response.json()["data"]["default"]["totalCost"] == 1.0


def test_allocate_idle_without_cluster_total_falls_back(client, mock_cost_model, make_cost_data):
    mock_cost_model.compute_cost_data_range.return_value = {"a": make_cost_data(cpu=((1000.0, 0.5),))}

    response = client.get(
        "/aggregatedCostModel", params={"window": "1h", "aggregation": "namespace", "allocateIdle": "true"}
    )

    assert response.json()["data"]["default"]["totalCost"] == 0.5


def test_shared_namespace_cost_is_split(client, mock_cost_model, make_cost_data):
    mock_cost_model.compute_cost_data_range.return_value = {
        "m": make_cost_data(name="m", namespace="monitoring", cpu=((1000.0, 4.0),)),
        "a": make_cost_data(name="a", namespace="a"),
        "b": make_cost_data(name="b", namespace="b"),
    }

    response = client.get(
        "/aggregatedCostModel", params={"aggregation": "namespace", "sharedNamespaces": "monitoring"}
    )

    data = response.json()["data"]
    assert set(data) == {"a", "b"}
    assert data["a"]["sharedCost"] == 2.0


def test_query_error_is_server_error(client, mock_cost_model):
    mock_cost_model.compute_cost_data_range.side_effect = QueryError("prometheus down")

    response = client.get("/aggregatedCostModel", params={"aggregation": "namespace"})

    assert response.status_code == 500
    assert response.json()["message"] == "prometheus down"


def test_bad_window_is_bad_request(client):
    response = client.get("/aggregatedCostModel", params={"aggregation": "namespace", "window": "yesterday"})

    assert response.status_code == 400
