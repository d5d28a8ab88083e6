# src/costkube/models/aggregation.py

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .vector import Vector


class Aggregation(BaseModel):
    """
    Cost of one aggregation group (a namespace, a label value, a service...).

    Allocation series are internal and never serialized. Cost series are only
    present when the caller asked for time-series output.
    """

    model_config = ConfigDict(populate_by_name=True)

    aggregator: str = Field(..., alias="aggregation", description="Grouping field.")
    aggregator_subfield: str = Field("", alias="aggregationSubfield", description="Grouping subfield, e.g. a label.")
    environment: str = Field(..., description="Resolved group key.")
    cluster: str = ""

    cpu_allocation: List[Vector] = Field(default_factory=list, exclude=True)
    ram_allocation: List[Vector] = Field(default_factory=list, exclude=True)
    gpu_allocation: List[Vector] = Field(default_factory=list, exclude=True)

    cpu_cost_vector: Optional[List[Vector]] = Field(None, alias="cpuCostVector")
    ram_cost_vector: Optional[List[Vector]] = Field(None, alias="ramCostVector")
    pv_cost_vector: Optional[List[Vector]] = Field(None, alias="pvCostVector")
    gpu_cost_vector: Optional[List[Vector]] = Field(None, alias="gpuCostVector")

    cpu_cost: float = Field(0.0, alias="cpuCost")
    ram_cost: float = Field(0.0, alias="ramCost")
    gpu_cost: float = Field(0.0, alias="gpuCost")
    pv_cost: float = Field(0.0, alias="pvCost")
    network_cost: float = Field(0.0, alias="networkCost")
    shared_cost: float = Field(0.0, alias="sharedCost")
    total_cost: float = Field(0.0, alias="totalCost")

    def to_wire(self) -> dict:
        """JSON-ready dict using the camelCase wire names, omitting absent series."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
