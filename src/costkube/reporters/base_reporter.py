# src/costkube/reporters/base_reporter.py
"""
Defines the abstract base class for all reporters.
"""

from abc import ABC, abstractmethod
from typing import Dict

from ..models.aggregation import Aggregation


class BaseReporter(ABC):
    """
    Abstract Base Class for all reporters.
    """

    @abstractmethod
    def report(self, data: Dict[str, Aggregation], sort_by: str = "total"):
        """
        Takes the aggregated cost data and presents it in a specific format.
        """
        pass
