# src/costkube/pricing/base_provider.py
"""
This module defines the abstract base class for pricing providers.
A provider supplies per-unit prices for nodes, persistent volumes and
network egress, plus the pricing configuration (custom overrides, discount).
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..core.exceptions import PricingError
from ..models.cost_data import CustomPricing, NetworkPricing, NodePricing, PersistentVolumePricing

logger = logging.getLogger(__name__)


class BasePricingProvider(ABC):
    """
    Abstract Base Class for all pricing providers.
    """

    @abstractmethod
    def get_config(self) -> CustomPricing:
        """
        Return the provider's pricing configuration.

        Raises:
            PricingError: If the configuration cannot be loaded.
        """
        pass

    @abstractmethod
    def node_pricing(self, node: Any) -> Optional[NodePricing]:
        """Return the unit prices for a Kubernetes node object."""
        pass

    @abstractmethod
    def pv_pricing(self, pv: Any, parameters: Optional[Dict[str, str]] = None) -> PersistentVolumePricing:
        """Return the per-GiB price for a Kubernetes persistent volume object."""
        pass

    def network_pricing(self) -> NetworkPricing:
        """Return network egress prices derived from the pricing configuration."""
        cfg = self.get_config()
        return NetworkPricing(
            zone_egress=parse_float(cfg.zone_network_egress),
            region_egress=parse_float(cfg.region_network_egress),
            internet_egress=parse_float(cfg.internet_network_egress),
        )


def parse_float(value: Any) -> float:
    """Parse a price or quantity string, returning 0.0 when it is not a number."""
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_discount(discount: str) -> float:
    """
    Convert a percentage string such as '30%' into a fraction (0.3).

    Raises:
        PricingError: If the string is not a percentage.
    """
    text = (discount or "").strip()
    if not text.endswith("%"):
        raise PricingError(f"Invalid discount '{discount}': expected a percentage such as '30%'.")
    try:
        return float(text[:-1]) * 0.01
    except ValueError as e:
        raise PricingError(f"Invalid discount '{discount}': {e}") from e


def custom_prices_enabled(provider: BasePricingProvider) -> bool:
    """True when the provider's configuration enables custom price overrides."""
    try:
        cfg = provider.get_config()
    except PricingError as e:
        logger.debug(f"Custom pricing unavailable: {e}")
        return False
    return cfg.custom_pricing_enabled.lower() == "true"
