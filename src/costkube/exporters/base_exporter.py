from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

import aiofiles

from ..models.aggregation import Aggregation

logger = logging.getLogger(__name__)


class BaseExporter(ABC):
    """Writes aggregation groups to a report file.

    Groups are written in group-key order so two reports of the same window
    diff cleanly. Subclasses only turn the ordered groups into file content.
    """

    DEFAULT_FILENAME: str = "costkube-report"

    @staticmethod
    def ordered(aggregations: Dict[str, Aggregation]) -> List[Tuple[str, Dict[str, Any]]]:
        """(group key, wire dict) pairs sorted by group key."""
        return [(key, aggregations[key].to_wire()) for key in sorted(aggregations or {})]

    @abstractmethod
    def render(self, groups: List[Tuple[str, Dict[str, Any]]]) -> str:
        raise NotImplementedError()

    async def export(self, aggregations: Dict[str, Aggregation], path: str | None = None) -> str:
        """Write the report and return the path written."""
        out_path = path or self.DEFAULT_FILENAME
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)

        content = self.render(self.ordered(aggregations))
        async with aiofiles.open(out_path, "w", encoding="utf-8", newline="") as fh:
            await fh.write(content)
        logger.debug(f"Wrote {len(aggregations or {})} group(s) to {out_path}")
        return out_path
