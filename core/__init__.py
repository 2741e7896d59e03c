"""
Core package — The extraction pipeline modules.

This package contains all the modules that implement the 6-step extraction
pipeline. Each module handles one concern:

  orchestrator.py        Pipeline coordination (Steps 1-6)
  salesforce_client.py   HTTP communication with Salesforce (Steps 1, 4, 5)
  query_builder.py       SOQL listing query (Step 3)
  report_fetcher.py      queryMore pagination over the listing (Step 4)
  metadata_enricher.py   Describe and reshape each report (Step 5)
  output_manager.py      Output directory reset and JSON files (Steps 2, 5, 6)
  models.py              Records passed between the steps
"""

from .orchestrator import ReportMetadataOrchestrator
from .salesforce_client import SalesforceClient, SalesforceSession, SalesforceAuthError, SalesforceAPIError
from .query_builder import build_query, BASE_REPORT_QUERY
from .report_fetcher import ReportFetcher
from .metadata_enricher import MetadataEnricher, format_report_metadata, format_duration
from .output_manager import OutputManager, sanitize_filename
from .models import (
    QueryConfig,
    ReportDescriptor,
    EnrichedRecord,
    ReportFailure,
    FetchResult,
    RunSummary,
)
