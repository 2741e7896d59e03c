"""
Settings — Default configuration values for the Salesforce report metadata extractor.

This module provides the DEFAULT_SETTINGS dict that the orchestrator uses as
fallback values when environment variables are not set. The actual configuration
is loaded from .env at runtime; these defaults let the extractor run against a
production org with nothing but credentials configured.

Configuration precedence (highest to lowest):
  1. CLI flags (--debug, --output-dir, --last-run-date)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  SF_LOGIN_URL     Host used for the SOAP login call (use https://test.salesforce.com for sandboxes)
  SF_API_VERSION   Salesforce API version for REST, SOAP and Analytics calls
  OUTPUT_DIR       Where to write report metadata (wiped at the start of every run)
  SF_TIMEOUT       Per-request HTTP timeout in seconds
  DEBUG            Whether to print verbose output (default: False)
"""

DEFAULT_SETTINGS = {
    "SF_LOGIN_URL": "https://login.salesforce.com",
    "SF_API_VERSION": "62.0",
    "OUTPUT_DIR": "report_metadata",
    "SF_TIMEOUT": 60,
    "DEBUG": False,
}

SUMMARY_FILENAME = "reports_summary.json"
