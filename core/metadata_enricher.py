"""
Metadata Enricher — Describes each report and reshapes it into an EnrichedRecord.

The Analytics describe response has this structure (trimmed):
    {
      "reportMetadata": {
        "id": "00O5g000004XyZaEAK",
        "name": "Open Pipeline",
        "reportType": {"type": "Opportunity", "label": "Opportunities"},
        "detailColumns": ["OPPORTUNITY_NAME", "AMOUNT"],
        "groupingsDown": [{"name": "STAGE_NAME", "sortOrder": "Asc", ...}],
        "groupingsAcross": [],
        "reportFilters": [{"column": "AMOUNT", "operator": "greaterThan", "value": "1000"}],
        "crossFilters": [],
        "scopeFilters": null,
        "historicalSnapshotDates": [],
        "currency": "USD",
        "showGrandTotal": true,
        "showSubtotals": true
      },
      "reportExtendedMetadata": {...},
      "reportTypeMetadata": {...}
    }

Key behaviors:
  - reportMetadata and reportType.label are required. A payload without them
    fails that report only.
  - Column, grouping and filter lists default to empty when missing or null,
    and are stored as tuples.
  - lastRunDate comes from the listing row, not the describe payload.
  - Every failure for one report (HTTP error, malformed payload, write error)
    is converted into a ReportFailure. enrich() never raises.

Pipeline context:
    Used in Step 5 of the orchestrator pipeline, once per ReportDescriptor
    from ReportFetcher (Step 4). Successful records are written through the
    OutputManager; all outcomes are collected into the RunSummary (Step 6).
"""

import time
from typing import Any, Dict, Optional

from .models import EnrichedRecord, ItemOutcome, ReportDescriptor, ReportFailure
from .output_manager import OutputManager
from .salesforce_client import SalesforceClient, SalesforceSession


def format_duration(seconds: float) -> str:
    """Format an elapsed time: "850ms" below one second, "2.35s" above."""
    millis = int(seconds * 1000)
    if millis < 1000:
        return f"{millis}ms"
    return f"{seconds:.2f}s"


def _list_or_empty(metadata: Dict[str, Any], key: str) -> tuple:
    return tuple(metadata.get(key) or ())


def format_report_metadata(report: ReportDescriptor, describe: Dict[str, Any]) -> EnrichedRecord:
    """Reshape a describe payload into an EnrichedRecord.

    Args:
        report: The listing row the describe call was made for.
        describe: The raw describe response.

    Returns:
        The normalized record.

    Raises:
        KeyError: If reportMetadata or reportType.label is missing.
        TypeError: If reportMetadata or reportType is null.
    """
    metadata = describe["reportMetadata"]

    return EnrichedRecord(
        id=report.id,
        name=report.name,
        folder_name=report.folder_name,
        report_type=metadata["reportType"]["label"],
        detail_columns=_list_or_empty(metadata, "detailColumns"),
        groupings_down=_list_or_empty(metadata, "groupingsDown"),
        groupings_across=_list_or_empty(metadata, "groupingsAcross"),
        standard_filters=_list_or_empty(metadata, "reportFilters"),
        cross_filters=_list_or_empty(metadata, "crossFilters"),
        scope_filters=_list_or_empty(metadata, "scopeFilters"),
        historical_filters=_list_or_empty(metadata, "historicalSnapshotDates"),
        currency=metadata.get("currency"),
        show_grand_total=metadata.get("showGrandTotal"),
        show_subtotals=metadata.get("showSubtotals"),
        last_run_date=report.last_run_date,
    )


class MetadataEnricher:
    """Turns ReportDescriptors into ItemOutcomes, one report at a time.

    Attributes:
        client: The SalesforceClient used for describe calls.
        output_manager: If set, each EnrichedRecord is written to its own file.
        debug: If True, print the exception type alongside failures.
    """

    def __init__(self, client: SalesforceClient, output_manager: Optional[OutputManager] = None,
                 debug: bool = False):
        self.client = client
        self.output_manager = output_manager
        self.debug = debug

    def enrich(self, session: SalesforceSession, report: ReportDescriptor, index: int, total: int) -> ItemOutcome:
        """Describe, reshape and persist one report.

        Args:
            session: The active Salesforce session.
            report: The report to describe.
            index: Zero-based position of the report in the run.
            total: Number of reports in the run.

        Returns:
            An EnrichedRecord on success, a ReportFailure otherwise.
        """
        start = time.monotonic()
        position = f"({index + 1}/{total})"
        label = report.name or report.id or "<unnamed>"

        try:
            if not report.id or not report.name:
                raise ValueError("Report row is missing Id or Name")

            describe = self.client.describe_report(session, report.id)
            record = format_report_metadata(report, describe)

            if self.output_manager is not None:
                self.output_manager.write_report(record)

            print(f"✓ Processed: {report.name} {position} - Time: {format_duration(time.monotonic() - start)}")
            return record

        except Exception as e:
            elapsed = format_duration(time.monotonic() - start)
            message = _error_message(e)
            print(f"Error processing report {label} {position} - Time: {elapsed}: {message}")
            if self.debug:
                print(f"  ({type(e).__name__})")
            return ReportFailure(report_name=label, error_message=message)


def _error_message(error: Exception) -> str:
    # KeyError wraps its message in quotes; report the missing key plainly
    if isinstance(error, KeyError) and error.args:
        return f"Missing field: {error.args[0]}"
    return str(error)
