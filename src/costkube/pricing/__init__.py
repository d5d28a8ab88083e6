from .base_provider import BasePricingProvider, custom_prices_enabled, parse_discount, parse_float
from .custom_provider import CustomPricingProvider

__all__ = [
    "BasePricingProvider",
    "CustomPricingProvider",
    "custom_prices_enabled",
    "parse_discount",
    "parse_float",
]
