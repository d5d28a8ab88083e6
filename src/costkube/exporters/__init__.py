"""File outputs of an aggregated cost report (``costkube report --output``)."""

from .base_exporter import BaseExporter
from .csv_exporter import CSVExporter
from .json_exporter import JSONExporter

EXPORTERS = {"csv": CSVExporter, "json": JSONExporter}

__all__ = ["BaseExporter", "CSVExporter", "EXPORTERS", "JSONExporter"]
