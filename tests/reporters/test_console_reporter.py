# tests/reporters/test_console_reporter.py

from rich.console import Console

from costkube.models.aggregation import Aggregation
from costkube.reporters.console_reporter import ConsoleReporter


def _reporter():
    return ConsoleReporter(console=Console(record=True, width=200))


def test_report_renders_groups_sorted_by_total():
    reporter = _reporter()
    data = {
        "dev": Aggregation(aggregator="namespace", environment="dev", total_cost=1.0),
        "prod": Aggregation(aggregator="namespace", environment="prod", total_cost=5.25),
    }

    reporter.report(data)

    text = reporter.console.export_text()
    assert "Namespace" in text
    assert text.index("prod") < text.index("dev")
    assert "5.2500" in text
    assert "Total across 2 group(s)" in text


def test_report_uses_label_name_as_column():
    reporter = _reporter()
    data = {"payments": Aggregation(aggregator="label", aggregator_subfield="team", environment="payments")}

    reporter.report(data, sort_by="name")

    assert "Team" in reporter.console.export_text()


def test_report_without_data():
    reporter = _reporter()

    reporter.report({})

    assert "No data to report." in reporter.console.export_text()
