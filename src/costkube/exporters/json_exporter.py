import json
from typing import Any, Dict, List, Tuple

from .base_exporter import BaseExporter


class JSONExporter(BaseExporter):
    """Same shape as the ``data`` of /aggregatedCostModel: an object keyed by group."""

    DEFAULT_FILENAME = "costkube-report.json"

    def render(self, groups: List[Tuple[str, Dict[str, Any]]]) -> str:
        return json.dumps(dict(groups), ensure_ascii=False, indent=2)
