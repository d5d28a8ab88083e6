class CostKubeError(Exception):
    """Base exception for costkube."""

    pass


class QueryError(CostKubeError):
    """Raised when a metrics backend query fails."""

    pass


class PricingError(CostKubeError):
    """Raised when pricing data cannot be loaded."""

    pass


class InvalidParameterError(CostKubeError):
    """Raised when caller-supplied parameters are inconsistent."""

    pass
