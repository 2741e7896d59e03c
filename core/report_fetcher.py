"""
Report Fetcher — Retrieves every Report row matching the listing query.

Salesforce returns SOQL results in batches (up to 2,000 rows each). Each page
carries a "done" flag and, while more rows remain, a "nextRecordsUrl" cursor
that is passed to the queryMore endpoint:

    query(soql)              -> {"records": [...], "done": false, "nextRecordsUrl": "/services/data/v62.0/query/01g...-2000"}
    query_more(cursor)       -> {"records": [...], "done": false, "nextRecordsUrl": "/services/data/v62.0/query/01g...-4000"}
    query_more(cursor)       -> {"records": [...], "done": true}

Pages are concatenated in the order they are received. Rows are never
reordered or deduplicated.

Errors on any page (expired session, network failure, malformed SOQL) are
not caught here: a listing that cannot be completed aborts the run.

Pipeline context:
    Used in Step 4 of the orchestrator pipeline. Input is the query from
    build_query() (Step 3); output feeds MetadataEnricher (Step 5).
"""

from typing import Any, Dict, Iterator, List

from .models import FetchResult, ReportDescriptor
from .salesforce_client import SalesforceClient, SalesforceSession


class ReportFetcher:
    """Pages through a SOQL query result set.

    Attributes:
        client: The SalesforceClient used for query/queryMore calls.
        debug: If True, print verbose page details.
    """

    def __init__(self, client: SalesforceClient, debug: bool = False):
        self.client = client
        self.debug = debug

    def iter_pages(self, session: SalesforceSession, query: str) -> Iterator[List[Dict[str, Any]]]:
        """Yield the raw records of each page, in fetch order.

        The generator issues the initial query on first iteration and follows
        nextRecordsUrl until a page reports done. Each call starts a fresh
        pass over the result set.

        Raises:
            ValueError: If a page is not done but carries no cursor.
        """
        result = self.client.query(session, query)
        yield result.get("records", [])

        while not result.get("done", True):
            cursor = result.get("nextRecordsUrl")
            if not cursor:
                raise ValueError("Query result is not done but has no nextRecordsUrl")
            result = self.client.query_more(session, cursor)
            yield result.get("records", [])

    def fetch_all(self, session: SalesforceSession, query: str) -> FetchResult:
        """Fetch every page and return the accumulated descriptors.

        Args:
            session: The active Salesforce session.
            query: The SOQL listing query.

        Returns:
            A FetchResult with the descriptors in fetch order, their count,
            and the query that produced them.
        """
        records: List[ReportDescriptor] = []

        for page_number, page in enumerate(self.iter_pages(session, query)):
            records.extend(ReportDescriptor.from_record(record) for record in page)
            if self.debug:
                print(f"  Page {page_number + 1}: {len(page)} records")
            if page_number > 0:
                print(f"Fetched {len(records)} reports so far...")

        return FetchResult(records=records, total_size=len(records), query=query)
