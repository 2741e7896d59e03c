"""
Report Metadata Orchestrator — Pipeline coordination for Salesforce report extraction.

This module ties together all other modules (SalesforceClient, build_query,
ReportFetcher, MetadataEnricher, OutputManager) into a sequential workflow:

  Step 1: AUTHENTICATION
      Calls SalesforceClient.login() to open a session via the SOAP login call.

  Step 2: OUTPUT DIRECTORY
      OutputManager.reset() wipes the previous run's output and recreates the
      directory empty.

  Step 3: BUILD QUERY
      build_query() turns the QueryConfig (optional lastRunDate filter) into
      the SOQL listing query.

  Step 4: FETCH REPORTS
      ReportFetcher.fetch_all() pages through the query with queryMore until
      Salesforce reports done.

  Step 5: DESCRIBE REPORTS
      MetadataEnricher.enrich() describes each report, one at a time, and
      writes its JSON file. A failing report becomes a ReportFailure in the
      summary; the run continues with the next report.

  Step 6: SAVE SUMMARY
      OutputManager.write_summary() writes reports_summary.json with every
      outcome in fetch order.

Error handling:
    An exception in Steps 1-4 or 6 stops the pipeline. It is printed once,
    recorded in the run results, and files already written stay on disk.
    Logout runs after every run that reached Salesforce, successful or not.

Configuration:
    All settings are loaded from environment variables (typically via .env file).
    Required: SF_USERNAME, SF_PASSWORD.
    See config/settings.py for defaults.

Typical usage:
    orchestrator = ReportMetadataOrchestrator(env_file="./.env")
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

from .metadata_enricher import MetadataEnricher
from .models import ItemOutcome, QueryConfig, RunSummary
from .output_manager import OutputManager
from .query_builder import build_query
from .report_fetcher import ReportFetcher
from .salesforce_client import SalesforceClient

from config import DEFAULT_SETTINGS


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def load_query_config() -> QueryConfig:
    """Read the listing filters from the environment."""
    return QueryConfig(last_run_date=os.getenv("SF_REPORT_LAST_RUN_DATE") or None)


class ReportMetadataOrchestrator:
    """Orchestrates the Salesforce report metadata extraction pipeline.

    Attributes:
        login_url: Host for the SOAP login call.
        username: Salesforce username.
        password: Salesforce password.
        security_token: Security token appended to the password.
        api_version: Salesforce API version (e.g. "62.0").
        timeout: HTTP timeout in seconds.
        debug: Whether to enable verbose output (default: False).
        query_config: Listing filters for this run.
        output_manager: Owns the output directory.
    """

    def __init__(self, env_file: str = "./.env"):
        """Initialize the orchestrator by loading configuration from environment.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        # Salesforce credentials (required)
        self.login_url = os.getenv("SF_LOGIN_URL") or DEFAULT_SETTINGS["SF_LOGIN_URL"]
        self.username = os.getenv("SF_USERNAME", "")
        self.password = os.getenv("SF_PASSWORD", "")
        self.security_token = os.getenv("SF_SECURITY_TOKEN", "")

        self.api_version = os.getenv("SF_API_VERSION", DEFAULT_SETTINGS["SF_API_VERSION"])
        self.timeout = float(os.getenv("SF_TIMEOUT", str(DEFAULT_SETTINGS["SF_TIMEOUT"])))
        self.debug = os.getenv("DEBUG", str(DEFAULT_SETTINGS["DEBUG"])).lower() == "true"

        self.query_config = load_query_config()

        output_dir = os.getenv("OUTPUT_DIR", DEFAULT_SETTINGS["OUTPUT_DIR"])
        self.output_manager = OutputManager(output_dir)

    def validate_config(self) -> bool:
        """Validate that all required configuration values are present.

        Returns:
            True if all required values are present, False otherwise.
            Prints specific error messages for each missing value.
        """
        errors = []
        if not self.username:
            errors.append("SF_USERNAME is required")
        if not self.password:
            errors.append("SF_PASSWORD is required")
        if not self.login_url.startswith(("http://", "https://")):
            errors.append(f"SF_LOGIN_URL must be an http(s) URL, got: {self.login_url}")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def run(self) -> Dict[str, Any]:
        """Execute the full extraction pipeline.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - query_config: The listing filters used
                - success: True if the pipeline reached the summary without a fatal error
                - query: The SOQL listing query (once built)
                - total_reports/failed_reports: Outcome counts (once the summary is written)
                - summary_path: Path to reports_summary.json (once written)
                - error: Error message (if success=False)
        """
        results = {
            "started_at": utc_timestamp(),
            "query_config": self.query_config.to_dict(),
            "success": False,
        }

        self.output_manager.debug = self.debug
        client = SalesforceClient(self.login_url, self.api_version, self.timeout, self.debug)
        session = None

        try:
            # Step 1: Authenticate with Salesforce
            self._step(1, "AUTHENTICATION")
            session = client.login(self.username, self.password, self.security_token)
            print("Connected to Salesforce successfully!")

            # Step 2: Reset the output directory
            self._step(2, "OUTPUT DIRECTORY")
            summary_path = self.output_manager.reset()

            # Step 3: Build the listing query
            self._step(3, "BUILD QUERY")
            print(f"Using configuration: {self.query_config.to_dict()}")
            query = build_query(self.query_config)
            results["query"] = query

            # Step 4: Fetch every report row
            self._step(4, "FETCH REPORTS")
            print("Fetching all reports...")
            fetcher = ReportFetcher(client, self.debug)
            fetched = fetcher.fetch_all(session, query)
            print(f"Found {fetched.total_size} reports in total")
            print(f"Using query: {fetched.query}")

            # Step 5: Describe each report, isolating per-report failures
            self._step(5, "DESCRIBE REPORTS")
            enricher = MetadataEnricher(client, self.output_manager, self.debug)
            outcomes: List[ItemOutcome] = []
            total = len(fetched.records)
            for index, report in enumerate(fetched.records):
                outcomes.append(enricher.enrich(session, report, index, total))

            # Step 6: Write the summary
            self._step(6, "SAVE SUMMARY")
            summary = RunSummary(
                total_reports=fetched.total_size,
                processed_at=utc_timestamp(),
                query_config=self.query_config,
                reports=outcomes,
            )
            self.output_manager.write_summary(summary)
            print("\nProcessing complete!")
            print(f"Summary file saved to: {summary_path}")

            results["success"] = True
            results["total_reports"] = summary.total_reports
            results["failed_reports"] = summary.failed_reports
            results["summary_path"] = summary_path

        except Exception as e:
            results["error"] = str(e)
            print(f"Error: {e}")
            if self.debug:
                import traceback
                traceback.print_exc()

        finally:
            self._logout(client, session)

        results["completed_at"] = utc_timestamp()
        return results

    def _logout(self, client: SalesforceClient, session) -> None:
        """End the Salesforce session. Failures are reported, never raised."""
        if session is not None:
            try:
                client.logout(session)
            except Exception as e:
                print(f"Warning: Salesforce logout failed: {e}")
        print("\nLogged out of Salesforce")

    def _step(self, number: int, title: str) -> None:
        print(f"\n{'='*60}")
        print(f"STEP {number}: {title}")
        print("="*60)

    def print_summary(self, results: Dict):
        """Print a human-readable execution summary.

        Args:
            results: The dict returned by run().
        """
        print(f"\n{'='*60}")
        print("EXTRACTION COMPLETE")
        print("="*60)
        print(f"Status: {'SUCCESS' if results.get('success') else 'FAILED'}")

        if "total_reports" in results:
            failed = results.get("failed_reports", 0)
            print(f"Reports: {results['total_reports']}")
            print(f"Succeeded: {results['total_reports'] - failed}")
            print(f"Failed: {failed}")
            print(f"Output: {self.output_manager.output_dir}")

        if results.get("error"):
            print(f"Error: {results['error']}")
