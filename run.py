#!/usr/bin/env python3
"""
Salesforce Report Metadata Extractor — Entry Point.

This is the main script that users run to extract the metadata of every report
in a Salesforce org. It reads configuration from a .env file, runs the
extraction pipeline, and writes one JSON file per report plus
reports_summary.json.

The extraction pipeline (managed by ReportMetadataOrchestrator) performs 6 steps:
  1. Log in to Salesforce via the SOAP login call
  2. Wipe and recreate the output directory
  3. Build the SOQL listing query (optionally filtered by LastRunDate)
  4. Page through every Report row with queryMore
  5. Describe each report via the Analytics API and save its metadata
  6. Save the summary with every report's outcome

Usage:
    python run.py                                    # Extract all reports
    python run.py --last-run-date 2024-01-01T00:00:00Z   # Only reports run since then
    python run.py --output-dir ./out                 # Alternate output directory
    python run.py --debug                            # Verbose output
    python run.py --version                          # Show version
    python run.py --env /path                        # Use alternate .env file
"""

import sys
import argparse
import logging
from pathlib import Path

from core import ReportMetadataOrchestrator, OutputManager, QueryConfig

# Read version from the repo-root VERSION file (e.g., "0.1.0").
VERSION_FILE = Path(__file__).resolve().parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def main():
    """Parse CLI arguments and run the extraction pipeline."""
    parser = argparse.ArgumentParser(
        description="Salesforce Report Metadata Extractor - Save the metadata of every report in an org"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--output-dir", "-o", help="Override OUTPUT_DIR (wiped before each run)")
    parser.add_argument("--last-run-date", help="Only extract reports with LastRunDate after this SOQL datetime")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args()

    if args.version:
        print(f"sf-report-metadata {VERSION}")
        sys.exit(0)

    # Initialize the orchestrator (loads .env and builds internal config)
    orchestrator = ReportMetadataOrchestrator(env_file=args.env)

    # Apply CLI overrides on top of .env values
    if args.debug:
        orchestrator.debug = True
    if args.output_dir:
        orchestrator.output_manager = OutputManager(args.output_dir)
    if args.last_run_date:
        orchestrator.query_config = QueryConfig(last_run_date=args.last_run_date)

    # Show HTTP traffic from requests/urllib3 in debug mode
    if orchestrator.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
        logging.getLogger("urllib3").setLevel(logging.DEBUG)

    # Print header
    print(f"\n{'='*60}")
    print(f"SALESFORCE REPORT METADATA EXTRACTOR v{VERSION}")
    print("="*60)
    print(f"Login URL: {orchestrator.login_url}")
    print(f"API Version: {orchestrator.api_version}")
    print(f"Output: {orchestrator.output_manager.output_dir}")

    # Validate required configuration before proceeding
    if not orchestrator.validate_config():
        sys.exit(1)

    results = orchestrator.run()

    orchestrator.print_summary(results)

    # Exit with error code if the pipeline aborted
    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
