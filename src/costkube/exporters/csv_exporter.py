import csv
import io
from typing import Any, Dict, List, Tuple

from .base_exporter import BaseExporter

GROUP_COLUMN = "group"


class CSVExporter(BaseExporter):
    """One row per aggregation group, led by the group key.

    Cost series do not fit in a cell and are left out. No groups produce an
    empty file.
    """

    DEFAULT_FILENAME = "costkube-report.csv"

    def render(self, groups: List[Tuple[str, Dict[str, Any]]]) -> str:
        if not groups:
            return ""

        rows = []
        headers = [GROUP_COLUMN]
        for key, wire in groups:
            row = {GROUP_COLUMN: key}
            row.update({k: v for k, v in wire.items() if not isinstance(v, (list, dict))})
            for k in row:
                if k not in headers:
                    headers.append(k)
            rows.append(row)

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=headers)
        writer.writeheader()
        for row in rows:
            writer.writerow({k: self._sanitize_cell(v) for k, v in row.items()})
        return output.getvalue()

    @staticmethod
    def _sanitize_cell(value: Any) -> Any:
        # Spreadsheets evaluate cells starting with =, +, - or @ as formulas.
        if isinstance(value, str) and value.startswith(("=", "+", "-", "@")):
            return f"'{value}"
        return value
