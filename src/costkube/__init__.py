"""costkube: Kubernetes workload cost allocation from Prometheus metrics."""

__version__ = "0.3.0"
