from .inventory_collector import ClusterInventory, InventoryCollector
from .prometheus_collector import PrometheusCollector

__all__ = [
    "ClusterInventory",
    "InventoryCollector",
    "PrometheusCollector",
]
