# src/costkube/models/cost_data.py
"""
This module defines the Pydantic data models for per-container cost records
and the pricing data attached to them. A CostData instance is the accounting
unit consumed by the aggregation engine and the price recorder.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .vector import Vector

SPOT_USAGE_TYPES = ("spot", "preemptible", "spotinstance")


class NodePricing(BaseModel):
    """
    Capacity and unit prices of the node a container runs on.

    Prices are kept as strings, as returned by pricing providers; consumers
    parse them and treat unparsable values as zero.
    """

    model_config = ConfigDict(populate_by_name=True)

    vcpu: str = Field("0", alias="vCPU", description="Number of vCPUs on the node.")
    vcpu_cost: str = Field("0", alias="vCPUCost", description="Hourly price of one vCPU.")
    ram_bytes: str = Field("0", alias="RAMBytes", description="Memory capacity in bytes.")
    ram_cost: str = Field("0", alias="RAMCost", description="Hourly price of one GiB of RAM.")
    gpu: str = Field("0", alias="GPU", description="Number of GPUs on the node.")
    gpu_cost: str = Field("0", alias="GPUCost", description="Hourly price of one GPU.")
    storage_cost: str = Field("0", alias="storageCost", description="Hourly price of one GiB of storage.")
    instance_type: Optional[str] = Field(None, alias="instanceType")
    region: Optional[str] = None
    usage_type: str = Field("ondemand", alias="usageType", description="'ondemand', 'spot' or 'preemptible'.")

    def is_spot(self) -> bool:
        return (self.usage_type or "").lower() in SPOT_USAGE_TYPES


class PersistentVolumePricing(BaseModel):
    """Per-GiB hourly price resolved for a persistent volume."""

    model_config = ConfigDict(populate_by_name=True)

    cost: str = Field("0", description="Hourly price of one GiB.")
    storage_class: str = Field("", alias="storageClass")
    region: str = ""
    parameters: Dict[str, str] = Field(default_factory=dict)


class PVCData(BaseModel):
    """Usage of one persistent volume claim attached to a pod."""

    model_config = ConfigDict(populate_by_name=True)

    claim: str = Field(..., alias="claimName")
    volume_name: str = Field("", alias="volumeName")
    namespace: str = ""
    volume: Optional[PersistentVolumePricing] = None
    values: List[Vector] = Field(default_factory=list, description="Requested bytes over time.")


class CostData(BaseModel):
    """
    One container's accounting unit for a reporting window.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Container name.")
    pod_name: str = Field(..., alias="podName")
    namespace: str
    node_name: str = Field("", alias="nodeName")
    cluster_id: str = Field("", alias="clusterId")
    labels: Dict[str, str] = Field(default_factory=dict)
    services: List[str] = Field(default_factory=list)
    deployments: List[str] = Field(default_factory=list)
    node_data: Optional[NodePricing] = Field(None, alias="node")
    cpu_allocation: List[Vector] = Field(default_factory=list, alias="cpuallocated")
    ram_allocation: List[Vector] = Field(default_factory=list, alias="ramallocated")
    gpu_request: List[Vector] = Field(default_factory=list, alias="gpureq")
    pvc_data: List[PVCData] = Field(default_factory=list, alias="pvcData")


# Fields that may be removed from a CostData payload with ``filterFields``.
# Keyed by lower-cased field name and wire alias.
COST_DATA_FIELDS: Dict[str, str] = {}
for _name, _field in CostData.model_fields.items():
    COST_DATA_FIELDS[_name.lower()] = _name
    if _field.alias:
        COST_DATA_FIELDS[_field.alias.lower()] = _name


def filter_fields(fields: str, data: Dict[str, CostData]) -> Dict[str, dict]:
    """Serialize ``data`` without the comma-separated ``fields``.

    Names are matched case-insensitively against COST_DATA_FIELDS; unknown
    names are ignored.
    """
    excluded = set()
    for raw in fields.split(","):
        name = COST_DATA_FIELDS.get(raw.strip().lower())
        if name:
            excluded.add(name)
    return {key: datum.model_dump(by_alias=True, exclude=excluded) for key, datum in data.items()}


class CustomPricing(BaseModel):
    """
    Pricing configuration of a provider, including custom overrides.
    """

    model_config = ConfigDict(populate_by_name=True)

    provider: str = "custom"
    description: str = "Default prices based on GCP us-central1"
    cpu: str = Field("0", alias="CPU")
    spot_cpu: str = Field("0", alias="spotCPU")
    ram: str = Field("0", alias="RAM")
    spot_ram: str = Field("0", alias="spotRAM")
    gpu: str = Field("0", alias="GPU")
    spot_gpu: str = Field("0", alias="spotGPU")
    storage: str = "0"
    zone_network_egress: str = Field("0", alias="zoneNetworkEgress")
    region_network_egress: str = Field("0", alias="regionNetworkEgress")
    internet_network_egress: str = Field("0", alias="internetNetworkEgress")
    custom_pricing_enabled: str = Field("false", alias="customPricesEnabled")
    discount: str = "0%"


class NetworkPricing(BaseModel):
    """Per-GiB egress prices."""

    zone_egress: float = 0.0
    region_egress: float = 0.0
    internet_egress: float = 0.0


class ClusterCosts(BaseModel):
    """
    Cluster-wide monthly-rate cost totals, as ``[timestamp, "value"]`` pairs.
    """

    model_config = ConfigDict(populate_by_name=True)

    total_cost: List[List] = Field(default_factory=list, alias="totalcost")
    cpu_cost: List[List] = Field(default_factory=list, alias="cpucost")
    ram_cost: List[List] = Field(default_factory=list, alias="ramcost")
    storage_cost: List[List] = Field(default_factory=list, alias="storageCost")
