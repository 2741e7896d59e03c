"""
Models — Typed records passed between the pipeline stages.

The JSON files written by the extractor keep the camelCase key names used by
the Salesforce API (basicInfo, detailColumns, ...). Each record therefore
exposes a to_dict() method that produces the on-disk shape, while the Python
attributes stay snake_case.

Outcome model:
    Every report returned by the listing query produces exactly one outcome:
    either an EnrichedRecord (describe call and reshape succeeded) or a
    ReportFailure (anything went wrong for that report). Both variants carry
    an is_success flag so callers can branch without isinstance checks.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class QueryConfig:
    """Filters applied to the Report listing query."""

    last_run_date: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        config = {}
        if self.last_run_date:
            config["lastRunDate"] = self.last_run_date
        return config


@dataclass(frozen=True)
class ReportDescriptor:
    """Listing-level view of one report (a row from the SOQL query)."""

    id: Optional[str]
    name: Optional[str]
    folder_name: Optional[str] = None
    last_run_date: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ReportDescriptor":
        """Build a descriptor from a SOQL record.

        A row missing Id or Name still yields a descriptor, so that the
        report fails on its own in MetadataEnricher.enrich().
        """
        return cls(
            id=record.get("Id"),
            name=record.get("Name"),
            folder_name=record.get("FolderName"),
            last_run_date=record.get("LastRunDate"),
        )


@dataclass(frozen=True)
class EnrichedRecord:
    """Normalized metadata for one successfully described report."""

    id: str
    name: str
    folder_name: Optional[str]
    report_type: str
    detail_columns: Tuple[Any, ...] = ()
    groupings_down: Tuple[Any, ...] = ()
    groupings_across: Tuple[Any, ...] = ()
    standard_filters: Tuple[Any, ...] = ()
    cross_filters: Tuple[Any, ...] = ()
    scope_filters: Tuple[Any, ...] = ()
    historical_filters: Tuple[Any, ...] = ()
    currency: Optional[str] = None
    show_grand_total: Optional[bool] = None
    show_subtotals: Optional[bool] = None
    last_run_date: Optional[str] = None

    is_success = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "basicInfo": {
                "id": self.id,
                "name": self.name,
                "folderName": self.folder_name,
                "reportType": self.report_type,
            },
            "fields": {
                "detailColumns": list(self.detail_columns),
                "groupingsDown": list(self.groupings_down),
                "groupingsAcross": list(self.groupings_across),
            },
            "filters": {
                "standardFilters": list(self.standard_filters),
                "crossFilters": list(self.cross_filters),
                "scopeFilters": list(self.scope_filters),
                "historicalFilters": list(self.historical_filters),
            },
            "additionalInfo": {
                "currency": self.currency,
                "showGrandTotal": self.show_grand_total,
                "showSubtotals": self.show_subtotals,
                "lastRunDate": self.last_run_date,
            },
        }


@dataclass(frozen=True)
class ReportFailure:
    """A report whose metadata could not be retrieved or reshaped."""

    report_name: str
    error_message: str

    is_success = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": True,
            "reportName": self.report_name,
            "errorMessage": self.error_message,
        }


ItemOutcome = Union[EnrichedRecord, ReportFailure]


@dataclass
class FetchResult:
    records: List[ReportDescriptor] = field(default_factory=list)
    total_size: int = 0
    query: str = ""


@dataclass
class RunSummary:
    """Aggregate manifest written once at the end of a run."""

    total_reports: int
    processed_at: str
    query_config: QueryConfig
    reports: List[ItemOutcome] = field(default_factory=list)

    @property
    def failed_reports(self) -> int:
        return sum(1 for outcome in self.reports if not outcome.is_success)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalReports": self.total_reports,
            "processedAt": self.processed_at,
            "queryConfig": self.query_config.to_dict(),
            "reports": [outcome.to_dict() for outcome in self.reports],
        }
