# src/costkube/core/vectors.py
"""
Alignment and merge primitives for cost and allocation time series.

Series scraped by separate Prometheus queries rarely share exact sample
instants. Every timestamp is snapped to a 10 second grid before two series
are compared or combined so they can be added point-wise.
"""

from typing import Dict, List, Optional

from ..models.vector import Vector

GRID_SECONDS = 10


def snap_timestamp(timestamp: float) -> float:
    """Round a timestamp to the nearest multiple of GRID_SECONDS."""
    # Half-away-from-zero, not Python's banker's rounding.
    q = timestamp / GRID_SECONDS
    return float(int(q + 0.5) if q >= 0 else -int(-q + 0.5)) * GRID_SECONDS


def normalize(series: Optional[List[Vector]]) -> List[Vector]:
    """Snap every timestamp of ``series`` in place and drop zero timestamps."""
    if not series:
        return []
    kept = []
    for v in series:
        if v.timestamp == 0:
            continue
        v.timestamp = snap_timestamp(v.timestamp)
        kept.append(v)
    return kept


def _by_timestamp(series: List[Vector]) -> Dict[float, float]:
    values: Dict[float, float] = {}
    for v in series:
        values[v.timestamp] = v.value
    return values


def add_vectors(req: Optional[List[Vector]], used: Optional[List[Vector]]) -> List[Vector]:
    """Merge two series into one, summing values that share a grid point.

    The result holds one point per distinct snapped timestamp found in
    either input, in ascending order. When one input is empty the other is
    returned after normalization.
    """
    req = normalize(req)
    used = normalize(used)
    if not req:
        return used
    if not used:
        return req

    req_map = _by_timestamp(req)
    used_map = _by_timestamp(used)

    merged = []
    for t in sorted(set(req_map) | set(used_map)):
        merged.append(Vector(timestamp=t, value=req_map.get(t, 0.0) + used_map.get(t, 0.0)))
    return merged


def total_vector(series: Optional[List[Vector]]) -> float:
    """Sum of all values in ``series``."""
    if not series:
        return 0.0
    return sum(v.value for v in series)
