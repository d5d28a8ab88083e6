from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

# Binary suffixes must be checked before their decimal single-letter prefixes.
_QUANTITY_SUFFIXES = (
    ("Ki", Decimal(1024)),
    ("Mi", Decimal(1024**2)),
    ("Gi", Decimal(1024**3)),
    ("Ti", Decimal(1024**4)),
    ("Pi", Decimal(1024**5)),
    ("Ei", Decimal(1024**6)),
    ("n", Decimal("0.000000001")),
    ("u", Decimal("0.000001")),
    ("m", Decimal("0.001")),
    ("k", Decimal(1000)),
    ("M", Decimal(1000**2)),
    ("G", Decimal(1000**3)),
    ("T", Decimal(1000**4)),
    ("P", Decimal(1000**5)),
    ("E", Decimal(1000**6)),
)

DEFAULT_CLASS_ANNOTATIONS = (
    "storageclass.kubernetes.io/is-default-class",
    "storageclass.beta.kubernetes.io/is-default-class",
)

REGION_LABELS = ("topology.kubernetes.io/region", "failure-domain.beta.kubernetes.io/region")

GPU_RESOURCE = "nvidia.com/gpu"


def parse_quantity(quantity: Any) -> Decimal:
    """
    Parse a Kubernetes quantity ('500m', '1Gi', '2') to Decimal.
    Unparsable quantities yield 0.
    """
    if quantity is None:
        return Decimal(0)
    if isinstance(quantity, (int, float, Decimal)):
        return Decimal(quantity)

    text = str(quantity)
    multiplier = Decimal(1)
    for suffix, factor in _QUANTITY_SUFFIXES:
        if text.endswith(suffix):
            text = text[: -len(suffix)]
            multiplier = factor
            break

    try:
        return Decimal(text) * multiplier
    except InvalidOperation:
        return Decimal(0)


def node_usage_type(labels: Optional[Dict[str, str]]) -> str:
    """Infer 'spot', 'preemptible' or 'ondemand' from cloud-specific node labels."""
    labels = labels or {}
    if labels.get("cloud.google.com/gke-preemptible") == "true":
        return "preemptible"
    if labels.get("cloud.google.com/gke-spot") == "true":
        return "spot"
    if (labels.get("eks.amazonaws.com/capacityType") or "").upper() == "SPOT":
        return "spot"
    if (labels.get("karpenter.sh/capacity-type") or "").lower() == "spot":
        return "spot"
    if (labels.get("kubernetes.azure.com/scalesetpriority") or "").lower() == "spot":
        return "spot"
    return "ondemand"


def node_region(labels: Optional[Dict[str, str]]) -> str:
    labels = labels or {}
    for key in REGION_LABELS:
        if labels.get(key):
            return labels[key]
    return ""


def is_default_storage_class(annotations: Optional[Dict[str, str]]) -> bool:
    annotations = annotations or {}
    return any(annotations.get(key) == "true" for key in DEFAULT_CLASS_ANNOTATIONS)
