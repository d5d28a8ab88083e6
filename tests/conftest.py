# tests/conftest.py

from typing import Any, Dict, List, Optional

import pytest

from costkube.core.exceptions import PricingError
from costkube.models.cost_data import (
    CostData,
    CustomPricing,
    NodePricing,
    PersistentVolumePricing,
    PVCData,
)
from costkube.models.vector import Vector
from costkube.pricing.base_provider import BasePricingProvider


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Pytest fixture to mock environment variables for the config module.

    This fixture runs automatically for every test (`autouse=True`), so
    secrets are never read from the real environment.
    """
    monkeypatch.setenv("PROMETHEUS_URL", "http://prometheus:9090")
    monkeypatch.delenv("PROMETHEUS_BEARER_TOKEN", raising=False)
    monkeypatch.delenv("PROMETHEUS_USERNAME", raising=False)
    monkeypatch.delenv("PROMETHEUS_PASSWORD", raising=False)


class StaticPricingProvider(BasePricingProvider):
    """Provider returning a fixed CustomPricing; raises when ``error`` is set."""

    def __init__(self, pricing: Optional[CustomPricing] = None, error: bool = False):
        self.pricing = pricing or CustomPricing()
        self.error = error

    def get_config(self) -> CustomPricing:
        if self.error:
            raise PricingError("pricing sheet unavailable")
        return self.pricing

    def node_pricing(self, node: Any) -> Optional[NodePricing]:
        return NodePricing(vcpu_cost=self.pricing.cpu, ram_cost=self.pricing.ram, gpu_cost=self.pricing.gpu)

    def pv_pricing(self, pv: Any, parameters: Optional[Dict[str, str]] = None) -> PersistentVolumePricing:
        return PersistentVolumePricing(cost=self.pricing.storage, parameters=parameters or {})


@pytest.fixture
def provider():
    """Provider with custom pricing disabled, so node prices apply."""
    return StaticPricingProvider()


@pytest.fixture
def make_provider():
    def _make(error: bool = False, **prices) -> StaticPricingProvider:
        return StaticPricingProvider(CustomPricing(**prices), error=error)

    return _make


def series(*points) -> List[Vector]:
    return [Vector(timestamp=t, value=v) for t, v in points]


@pytest.fixture
def make_cost_data():
    """
    Factory for CostData records. Node prices default to 1 $/core-hour,
    1 $/GiB-hour of RAM and 1 $/GPU-hour.
    """

    def _make(
        name: str = "app",
        pod: str = "pod-1",
        namespace: str = "default",
        cpu=((1000.0, 1.0),),
        ram=(),
        gpu=(),
        labels: Optional[Dict[str, str]] = None,
        services: Optional[List[str]] = None,
        deployments: Optional[List[str]] = None,
        node: Optional[NodePricing] = None,
        no_node: bool = False,
        pvcs: Optional[List[PVCData]] = None,
        cluster_id: str = "cluster-one",
        node_name: str = "node-1",
    ) -> CostData:
        if node is None and not no_node:
            node = NodePricing(vcpu_cost="1", ram_cost="1", gpu_cost="1", storage_cost="1")
        return CostData(
            name=name,
            pod_name=pod,
            namespace=namespace,
            node_name=node_name,
            cluster_id=cluster_id,
            labels=labels or {},
            services=services or [],
            deployments=deployments or [],
            node_data=node,
            cpu_allocation=series(*cpu),
            ram_allocation=series(*ram),
            gpu_request=series(*gpu),
            pvc_data=pvcs or [],
        )

    return _make
