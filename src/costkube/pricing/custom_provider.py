# src/costkube/pricing/custom_provider.py
"""
Pricing provider backed by a static price sheet.

Prices come from a JSON file (PRICING_CONFIG_PATH) when one is configured,
otherwise from the CUSTOM_* environment variables. This is the provider used
for on-premise clusters and as the fallback for clouds without a billing
integration.
"""

import json
import logging
import threading
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..core.config import Config
from ..core.config import config as global_config
from ..core.exceptions import PricingError
from ..models.cost_data import CustomPricing, NodePricing, PersistentVolumePricing
from ..utils.k8s_utils import GPU_RESOURCE, node_region, node_usage_type, parse_quantity
from .base_provider import BasePricingProvider

logger = logging.getLogger(__name__)


class CustomPricingProvider(BasePricingProvider):
    """
    Serves node, volume and network prices from a single CustomPricing sheet.
    """

    def __init__(self, settings: Optional[Config] = None, path: Optional[str] = None):
        self.settings = settings or global_config
        self.path = path if path is not None else self.settings.PRICING_CONFIG_PATH
        self._config: Optional[CustomPricing] = None
        self._lock = threading.Lock()

    def _defaults(self) -> CustomPricing:
        s = self.settings
        return CustomPricing(
            cpu=s.CUSTOM_CPU,
            spot_cpu=s.CUSTOM_SPOT_CPU,
            ram=s.CUSTOM_RAM,
            spot_ram=s.CUSTOM_SPOT_RAM,
            gpu=s.CUSTOM_GPU,
            spot_gpu=s.CUSTOM_SPOT_GPU,
            storage=s.CUSTOM_STORAGE,
            zone_network_egress=s.CUSTOM_ZONE_EGRESS,
            region_network_egress=s.CUSTOM_REGION_EGRESS,
            internet_network_egress=s.CUSTOM_INTERNET_EGRESS,
            custom_pricing_enabled="true" if s.CUSTOM_PRICING_ENABLED else "false",
            discount=s.DISCOUNT,
        )

    def _load(self) -> CustomPricing:
        if not self.path:
            return self._defaults()

        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (IOError, OSError, json.JSONDecodeError) as e:
            raise PricingError(f"Failed to read pricing configuration '{self.path}': {e}") from e

        try:
            # Values in the sheet override the environment defaults key by key.
            merged = self._defaults().model_dump(by_alias=True)
            merged.update({k: str(v) for k, v in raw.items()})
            return CustomPricing.model_validate(merged)
        except ValidationError as e:
            raise PricingError(f"Invalid pricing configuration '{self.path}': {e}") from e

    def get_config(self) -> CustomPricing:
        with self._lock:
            if self._config is None:
                self._config = self._load()
                logger.info(f"Loaded pricing configuration (provider={self._config.provider})")
            return self._config

    def node_pricing(self, node: Any) -> Optional[NodePricing]:
        if node is None or node.metadata is None:
            return None
        cfg = self.get_config()
        labels = node.metadata.labels or {}
        capacity = (node.status.capacity if node.status else None) or {}
        usage_type = node_usage_type(labels)
        spot = usage_type != "ondemand"

        return NodePricing(
            vcpu=str(parse_quantity(capacity.get("cpu"))),
            vcpu_cost=cfg.spot_cpu if spot else cfg.cpu,
            ram_bytes=str(int(parse_quantity(capacity.get("memory")))),
            ram_cost=cfg.spot_ram if spot else cfg.ram,
            gpu=str(int(parse_quantity(capacity.get(GPU_RESOURCE)))),
            gpu_cost=cfg.spot_gpu if spot else cfg.gpu,
            storage_cost=cfg.storage,
            instance_type=(
                labels.get("node.kubernetes.io/instance-type") or labels.get("beta.kubernetes.io/instance-type")
            ),
            region=node_region(labels),
            usage_type=usage_type,
        )

    def pv_pricing(self, pv: Any, parameters: Optional[Dict[str, str]] = None) -> PersistentVolumePricing:
        cfg = self.get_config()
        labels = (pv.metadata.labels if pv is not None and pv.metadata else None) or {}
        storage_class = (pv.spec.storage_class_name if pv is not None and pv.spec else None) or ""
        return PersistentVolumePricing(
            cost=cfg.storage,
            storage_class=storage_class,
            region=node_region(labels),
            parameters=parameters or {},
        )
