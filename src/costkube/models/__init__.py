from .aggregation import Aggregation
from .cost_data import (
    ClusterCosts,
    CostData,
    CustomPricing,
    NetworkPricing,
    NodePricing,
    PersistentVolumePricing,
    PVCData,
)
from .vector import Vector

__all__ = [
    "Aggregation",
    "ClusterCosts",
    "CostData",
    "CustomPricing",
    "NetworkPricing",
    "NodePricing",
    "PersistentVolumePricing",
    "PVCData",
    "Vector",
]
