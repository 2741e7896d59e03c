"""
Query Builder — SOQL listing query for the Report object.

Pipeline context:
    Used in Step 3 of the orchestrator pipeline. The resulting query is handed
    to ReportFetcher.fetch_all() (Step 4).
"""

from .models import QueryConfig

BASE_REPORT_QUERY = "SELECT Id, Name, FolderName, LastRunDate FROM Report"


def build_query(config: QueryConfig) -> str:
    """Build the Report listing query from the run configuration.

    The lastRunDate value is inserted as-is; SOQL datetime literals are not
    quoted, and validating the format is left to Salesforce.

    Args:
        config: Query filters for this run.

    Returns:
        The SOQL query string.
    """
    query = BASE_REPORT_QUERY
    conditions = []

    if config.last_run_date:
        conditions.append(f"LastRunDate > {config.last_run_date}")

    if conditions:
        query += " WHERE " + " AND ".join(conditions)

    return query
