"""Tests for core.output_manager."""

import json
import os

import pytest

from core.models import EnrichedRecord, QueryConfig, ReportFailure, RunSummary
from core.output_manager import OutputManager, sanitize_filename


def _record(name="Open Pipeline", **kwargs):
    return EnrichedRecord(id="00O1", name=name, folder_name="Sales", report_type="Opportunities", **kwargs)


def test_sanitize_filename():
    assert sanitize_filename("Q1/Q2 Report") == "Q1_Q2_Report.json"
    assert sanitize_filename("Pipeline (EMEA) - 2024") == "Pipeline__EMEA____2024.json"
    assert sanitize_filename("Café") == "Caf_.json"
    # Letters that case-fold to ASCII are still replaced
    assert sanitize_filename("Kelvin\u212a \u017f") == "Kelvin___.json"
    assert sanitize_filename("\u0130stanbul \u0131") == "_stanbul__.json"


def test_reset_creates_directory(tmp_path):
    output_dir = tmp_path / "report_metadata"
    manager = OutputManager(str(output_dir))
    summary_path = manager.reset()
    assert output_dir.is_dir()
    assert summary_path == str(output_dir / "reports_summary.json")


def test_reset_removes_previous_run(tmp_path):
    output_dir = tmp_path / "report_metadata"
    output_dir.mkdir()
    (output_dir / "Old_Report.json").write_text("{}")
    (output_dir / "reports_summary.json").write_text("{}")

    OutputManager(str(output_dir)).reset()

    assert output_dir.is_dir()
    assert os.listdir(output_dir) == []


def test_write_report(tmp_path):
    manager = OutputManager(str(tmp_path / "out"))
    manager.reset()
    path = manager.write_report(_record(name="Q1/Q2 Report", detail_columns=["AMOUNT"]))

    assert os.path.basename(path) == "Q1_Q2_Report.json"
    with open(path) as f:
        data = json.load(f)
    assert data["basicInfo"]["name"] == "Q1/Q2 Report"
    assert data["fields"]["detailColumns"] == ["AMOUNT"]
    assert data["filters"]["crossFilters"] == []


def test_colliding_names_overwrite(tmp_path):
    manager = OutputManager(str(tmp_path / "out"))
    manager.reset()
    manager.write_report(_record(name="A/B", currency="USD"))
    manager.write_report(_record(name="A B", currency="EUR"))

    files = os.listdir(tmp_path / "out")
    assert files == ["A_B.json"]
    with open(tmp_path / "out" / "A_B.json") as f:
        assert json.load(f)["additionalInfo"]["currency"] == "EUR"


def test_write_summary(tmp_path):
    manager = OutputManager(str(tmp_path / "out"))
    manager.reset()
    summary = RunSummary(
        total_reports=2,
        processed_at="2024-03-01T10:00:00.000Z",
        query_config=QueryConfig(last_run_date="2024-01-01T00:00:00Z"),
        reports=[_record(), ReportFailure(report_name="Broken", error_message="boom")],
    )

    path = manager.write_summary(summary)

    with open(path) as f:
        data = json.load(f)
    assert data["totalReports"] == 2
    assert data["processedAt"] == "2024-03-01T10:00:00.000Z"
    assert data["queryConfig"] == {"lastRunDate": "2024-01-01T00:00:00Z"}
    assert data["reports"][0]["basicInfo"]["name"] == "Open Pipeline"
    assert data["reports"][1] == {"error": True, "reportName": "Broken", "errorMessage": "boom"}
    assert summary.failed_reports == 1


def test_get_output_path(tmp_path):
    manager = OutputManager(str(tmp_path))
    assert manager.get_output_path("x.json") == os.path.join(str(tmp_path), "x.json")
