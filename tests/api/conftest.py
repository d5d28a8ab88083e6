# tests/api/conftest.py
"""
Shared fixtures for API tests.
Uses FastAPI's TestClient with dependency overrides to inject mock components.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from costkube.api.app import create_app
from costkube.api.dependencies import get_cache, get_cost_model, get_provider, get_registry
from costkube.core.cache import AggregationCache
from costkube.models.cost_data import ClusterCosts


@pytest.fixture
def mock_cost_model():
    """Returns a mock CostModel with empty results."""
    cost_model = MagicMock()
    cost_model.compute_cost_data = AsyncMock(return_value={})
    cost_model.compute_cost_data_range = AsyncMock(return_value={})
    cost_model.cluster_costs = AsyncMock(return_value=ClusterCosts())
    cost_model.compute_uptimes = AsyncMock(return_value={})
    return cost_model


@pytest.fixture
def cache():
    return AggregationCache(ttl_seconds=120)


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def client(mock_cost_model, provider, cache, registry):
    """Creates a TestClient with dependency overrides for all core components."""
    app = create_app()
    app.dependency_overrides[get_cost_model] = lambda: mock_cost_model
    app.dependency_overrides[get_provider] = lambda: provider
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
