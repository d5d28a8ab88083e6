# src/costkube/models/vector.py
"""
Pydantic model for a single time-series sample.
"""

from pydantic import BaseModel, Field


class Vector(BaseModel):
    """
    One observation of a metric at one instant.
    """

    timestamp: float = Field(..., description="Unix timestamp in seconds.")
    value: float = Field(..., description="Observed value.")
