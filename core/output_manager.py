"""
Output Manager — Output directory reset and JSON persistence.

Each run writes into a single flat directory (default: ./report_metadata):
  - <sanitized report name>.json: one EnrichedRecord per successfully described report
  - reports_summary.json:          the RunSummary with every outcome, in fetch order

The directory is wiped at the start of every run, so after a run it holds
only that run's files. Runs are not incremental.

File naming:
    Every character outside [A-Za-z0-9] in the report name becomes "_"
    ("Q1/Q2 Report" -> "Q1_Q2_Report.json"). Two reports whose names sanitize
    to the same value overwrite each other; the summary still lists both.

Pipeline context:
    reset() runs right after authentication (Step 2), write_report() is
    called by MetadataEnricher for each report (Step 5), and write_summary()
    runs once after the last report (Step 6).
"""

import json
import os
import re

from config import SUMMARY_FILENAME

from .models import EnrichedRecord, RunSummary

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]")


def sanitize_filename(name: str) -> str:
    """Map a report name to its per-report JSON filename."""
    return f"{_UNSAFE_CHARS.sub('_', name)}.json"


class OutputManager:
    """Owns the output directory for one run.

    Attributes:
        output_dir: Directory that receives the per-report files and the summary.
        debug: If True, print each written file.
    """

    def __init__(self, output_dir: str, debug: bool = False):
        self.output_dir = output_dir
        self.debug = debug

    @property
    def summary_path(self) -> str:
        return os.path.join(self.output_dir, SUMMARY_FILENAME)

    def reset(self) -> str:
        """Remove any previous output and recreate the directory empty.

        Returns:
            The path the summary file will be written to.

        Raises:
            OSError: If the directory cannot be cleared or created.
        """
        if os.path.exists(self.output_dir):
            print("Cleaning up existing results...")
            for filename in os.listdir(self.output_dir):
                os.unlink(os.path.join(self.output_dir, filename))
            os.rmdir(self.output_dir)
            print("Cleanup complete.")

        os.makedirs(self.output_dir)
        return self.summary_path

    def get_output_path(self, filename: str) -> str:
        return os.path.join(self.output_dir, filename)

    def write_report(self, record: EnrichedRecord) -> str:
        """Write one EnrichedRecord to <sanitized name>.json.

        Returns:
            The path of the written file.
        """
        path = self.get_output_path(sanitize_filename(record.name))
        self._write_json(path, record.to_dict())
        if self.debug:
            print(f"  Saved: {path}")
        return path

    def write_summary(self, summary: RunSummary) -> str:
        """Write the run summary to reports_summary.json.

        Returns:
            The path of the written file.
        """
        path = self.summary_path
        self._write_json(path, summary.to_dict())
        return path

    @staticmethod
    def _write_json(path: str, payload) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
