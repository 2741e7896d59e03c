"""Tests for core.metadata_enricher.

Describe payloads come from tests/fixtures/report_describe.json. The
SalesforceClient is mocked; OutputManager writes into tmp_path.
"""

import json
import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from core.metadata_enricher import MetadataEnricher, format_duration, format_report_metadata
from core.models import EnrichedRecord, ReportDescriptor, ReportFailure
from core.output_manager import OutputManager
from core.salesforce_client import SalesforceSession

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
SESSION = SalesforceSession(session_id="00Dxx!token", instance_url="https://acme.my.salesforce.com")


def load_describe_fixture():
    with open(os.path.join(FIXTURES_DIR, "report_describe.json")) as f:
        return json.load(f)


@pytest.fixture
def describe():
    return load_describe_fixture()


@pytest.fixture
def report():
    return ReportDescriptor(
        id="00O5g000004XyZaEAK",
        name="Open Pipeline",
        folder_name="Sales Reports",
        last_run_date="2024-03-01T10:00:00.000+0000",
    )


# ---------------------------------------------------------------------------
# format_report_metadata
# ---------------------------------------------------------------------------

def test_basic_info(report, describe):
    record = format_report_metadata(report, describe)
    assert record.to_dict()["basicInfo"] == {
        "id": "00O5g000004XyZaEAK",
        "name": "Open Pipeline",
        "folderName": "Sales Reports",
        "reportType": "Opportunities",
    }


def test_fields_and_filters(report, describe):
    data = format_report_metadata(report, describe).to_dict()
    assert data["fields"]["detailColumns"] == ["OPPORTUNITY_NAME", "ACCOUNT_NAME", "AMOUNT", "CLOSE_DATE"]
    assert data["fields"]["groupingsDown"][0]["name"] == "STAGE_NAME"
    assert data["filters"]["standardFilters"][0]["column"] == "AMOUNT"


def test_null_and_missing_lists_default_to_empty(report, describe):
    metadata = describe["reportMetadata"]
    for key in ("detailColumns", "groupingsAcross", "crossFilters", "historicalSnapshotDates"):
        metadata.pop(key)
    metadata["groupingsDown"] = None

    data = format_report_metadata(report, describe).to_dict()

    assert data["fields"] == {"detailColumns": [], "groupingsDown": [], "groupingsAcross": []}
    assert data["filters"]["crossFilters"] == []
    assert data["filters"]["scopeFilters"] == []  # null in the fixture
    assert data["filters"]["historicalFilters"] == []


def test_additional_info_uses_listing_last_run_date(report, describe):
    describe["reportMetadata"]["lastRunDate"] = "ignored"
    info = format_report_metadata(report, describe).to_dict()["additionalInfo"]
    assert info == {
        "currency": "USD",
        "showGrandTotal": True,
        "showSubtotals": False,
        "lastRunDate": "2024-03-01T10:00:00.000+0000",
    }


def test_missing_report_type_raises(report, describe):
    del describe["reportMetadata"]["reportType"]
    with pytest.raises(KeyError):
        format_report_metadata(report, describe)


def test_missing_report_metadata_raises(report):
    with pytest.raises(KeyError):
        format_report_metadata(report, {"reportExtendedMetadata": {}})


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------

def test_format_duration_milliseconds():
    assert format_duration(0.25) == "250ms"
    assert format_duration(0) == "0ms"


def test_format_duration_seconds():
    assert format_duration(1.5) == "1.50s"
    assert format_duration(12.3) == "12.30s"


# ---------------------------------------------------------------------------
# MetadataEnricher.enrich
# ---------------------------------------------------------------------------

def test_enrich_success_writes_file(tmp_path, report, describe, capsys):
    client = MagicMock()
    client.describe_report.return_value = describe
    output = OutputManager(str(tmp_path / "out"))
    output.reset()

    outcome = MetadataEnricher(client, output).enrich(SESSION, report, 0, 3)

    assert isinstance(outcome, EnrichedRecord)
    assert outcome.is_success
    client.describe_report.assert_called_once_with(SESSION, "00O5g000004XyZaEAK")
    assert (tmp_path / "out" / "Open_Pipeline.json").exists()
    assert "✓ Processed: Open Pipeline (1/3) - Time:" in capsys.readouterr().out


def test_enrich_http_error_returns_failure(report, capsys):
    client = MagicMock()
    client.describe_report.side_effect = requests.HTTPError("404 Client Error: Not Found")

    outcome = MetadataEnricher(client).enrich(SESSION, report, 1, 2)

    assert isinstance(outcome, ReportFailure)
    assert outcome.is_success is False
    assert outcome.report_name == "Open Pipeline"
    assert outcome.error_message == "404 Client Error: Not Found"
    assert outcome.to_dict() == {
        "error": True,
        "reportName": "Open Pipeline",
        "errorMessage": "404 Client Error: Not Found",
    }
    assert "Error processing report Open Pipeline (2/2)" in capsys.readouterr().out


def test_enrich_malformed_payload_returns_failure(tmp_path, report, describe):
    del describe["reportMetadata"]["reportType"]
    client = MagicMock()
    client.describe_report.return_value = describe
    output = OutputManager(str(tmp_path / "out"))
    output.reset()

    outcome = MetadataEnricher(client, output).enrich(SESSION, report, 0, 1)

    assert isinstance(outcome, ReportFailure)
    assert "reportType" in outcome.error_message
    assert os.listdir(tmp_path / "out") == []


def test_enrich_null_report_type_returns_failure(report, describe):
    describe["reportMetadata"]["reportType"] = None
    client = MagicMock()
    client.describe_report.return_value = describe

    outcome = MetadataEnricher(client).enrich(SESSION, report, 0, 1)
    assert isinstance(outcome, ReportFailure)


def test_enrich_write_error_returns_failure(report, describe):
    client = MagicMock()
    client.describe_report.return_value = describe
    output = MagicMock()
    output.write_report.side_effect = OSError("No space left on device")

    outcome = MetadataEnricher(client, output).enrich(SESSION, report, 0, 1)

    assert isinstance(outcome, ReportFailure)
    assert outcome.error_message == "No space left on device"


def test_enrich_reports_elapsed_time(report, describe, capsys):
    client = MagicMock()
    client.describe_report.return_value = describe
    with patch("core.metadata_enricher.time") as mock_time:
        mock_time.monotonic.side_effect = [10.0, 12.5]
        MetadataEnricher(client).enrich(SESSION, report, 0, 1)
    assert "Time: 2.50s" in capsys.readouterr().out


def test_record_lists_are_immutable(report, describe):
    record = format_report_metadata(report, describe)
    assert isinstance(record.detail_columns, tuple)
    assert isinstance(record.scope_filters, tuple)
    assert record.scope_filters == ()
    assert isinstance(record.to_dict()["fields"]["detailColumns"], list)


def test_enrich_row_without_id_returns_failure():
    client = MagicMock()
    report = ReportDescriptor.from_record({"Name": "Orphan Report"})

    outcome = MetadataEnricher(client).enrich(SESSION, report, 0, 1)

    assert isinstance(outcome, ReportFailure)
    assert outcome.report_name == "Orphan Report"
    client.describe_report.assert_not_called()
