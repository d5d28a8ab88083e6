# tests/exporters/test_exporters.py

import json

import pytest

from costkube.exporters.csv_exporter import CSVExporter
from costkube.exporters.json_exporter import JSONExporter
from costkube.models.aggregation import Aggregation
from costkube.models.vector import Vector


@pytest.fixture
def aggregations():
    return {
        "prod": Aggregation(
            aggregator="namespace",
            environment="prod",
            total_cost=3.0,
            cpu_cost_vector=[Vector(timestamp=1, value=3.0)],
        ),
        "=cmd()": Aggregation(aggregator="namespace", environment="=cmd()", total_cost=1.0),
    }


@pytest.mark.asyncio
async def test_json_exporter_writes_groups_by_key(tmp_path, aggregations):
    path = tmp_path / "nested" / "report.json"

    written = await JSONExporter().export(aggregations, str(path))

    assert written == str(path)
    report = json.loads(path.read_text())
    assert list(report) == ["=cmd()", "prod"]
    assert report["prod"]["totalCost"] == 3.0
    assert report["prod"]["cpuCostVector"] == [{"timestamp": 1.0, "value": 3.0}]
    assert "cpuCostVector" not in report["=cmd()"]


@pytest.mark.asyncio
async def test_csv_exporter_drops_series_and_sanitizes(tmp_path, aggregations):
    path = tmp_path / "report.csv"

    await CSVExporter().export(aggregations, str(path))

    lines = path.read_text().splitlines()
    header = lines[0].split(",")
    assert header[0] == "group"
    assert "totalCost" in header
    assert "cpuCostVector" not in header
    assert lines[1].startswith("'=cmd()")
    assert lines[2].startswith("prod,")


@pytest.mark.asyncio
async def test_csv_exporter_empty_input_creates_empty_file(tmp_path):
    path = tmp_path / "empty.csv"

    await CSVExporter().export({}, str(path))

    assert path.read_text() == ""
