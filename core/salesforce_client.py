"""
Salesforce API Client — Handles authentication and API calls to a Salesforce org.

This module is responsible for all HTTP communication with Salesforce.
It uses three Salesforce API surfaces:

  1. SOAP Partner API — Used for username/password login (the same flow as
     the Data Loader and most CLI tools) and for logout.

  2. REST API — Used for the SOQL listing query and its queryMore
     continuation pages.

  3. Analytics (Reports & Dashboards) REST API — Used to describe each
     report's metadata.

Authentication flow:
    POST {login_url}/services/Soap/u/{version}
    SOAPAction: login
    Body: <login><username>...</username><password>password+token</password></login>
    Response: <serverUrl>https://acme.my.salesforce.com/services/Soap/u/62.0/00D...</serverUrl>
              <sessionId>00D...!AQ...</sessionId>

    The session id is then sent as a Bearer token on every REST call, against
    the instance host taken from serverUrl.

Session handling:
    The client keeps no login state of its own. login() returns a
    SalesforceSession value that the caller passes back into every other
    call, and logout() invalidates it.

Pipeline context:
    login() is Step 1 of the orchestrator pipeline, query()/query_more() back
    Step 4 (ReportFetcher), describe_report() backs Step 5
    (MetadataEnricher), and logout() runs in the pipeline's cleanup.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse
from xml.sax.saxutils import escape

import requests

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
PARTNER_NS = "urn:partner.soap.sforce.com"

LOGIN_ENVELOPE = """<?xml version="1.0" encoding="utf-8" ?>
<env:Envelope xmlns:xsd="http://www.w3.org/2001/XMLSchema"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
    xmlns:env="http://schemas.xmlsoap.org/soap/envelope/">
  <env:Body>
    <n1:login xmlns:n1="urn:partner.soap.sforce.com">
      <n1:username>{username}</n1:username>
      <n1:password>{password}</n1:password>
    </n1:login>
  </env:Body>
</env:Envelope>"""

LOGOUT_ENVELOPE = """<?xml version="1.0" encoding="utf-8" ?>
<env:Envelope xmlns:xsd="http://www.w3.org/2001/XMLSchema"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
    xmlns:env="http://schemas.xmlsoap.org/soap/envelope/">
  <env:Header>
    <SessionHeader xmlns="urn:partner.soap.sforce.com">
      <sessionId>{session_id}</sessionId>
    </SessionHeader>
  </env:Header>
  <env:Body>
    <logout xmlns="urn:partner.soap.sforce.com" />
  </env:Body>
</env:Envelope>"""


class SalesforceAuthError(RuntimeError):
    """Raised when the SOAP login call returns a fault."""


class SalesforceAPIError(requests.HTTPError):
    """Raised when a REST call returns a Salesforce error body.

    Attributes:
        status_code: HTTP status of the failed call.
        error_code: Salesforce errorCode (e.g. "INVALID_SESSION_ID"), if any.
    """

    def __init__(self, message: str, status_code: int, error_code: Optional[str] = None, response=None):
        super().__init__(message, response=response)
        self.status_code = status_code
        self.error_code = error_code


@dataclass(frozen=True)
class SalesforceSession:
    """An authenticated Salesforce session.

    Attributes:
        session_id: The session token, sent as a Bearer token.
        instance_url: Scheme and host of the org (e.g. "https://acme.my.salesforce.com").
    """

    session_id: str
    instance_url: str


class SalesforceClient:
    """Client for the Salesforce SOAP, REST and Analytics APIs.

    All calls go through a single requests.Session so connections are reused
    across the (potentially thousands of) describe calls of one run.

    Attributes:
        login_url: Host for the SOAP login call (trailing slash stripped).
        api_version: API version string without the "v" prefix (e.g. "62.0").
        timeout: Per-request timeout in seconds.
        debug: If True, print verbose request details.
    """

    def __init__(self, login_url: str, api_version: str = "62.0", timeout: float = 60, debug: bool = False):
        self.login_url = login_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self.debug = debug
        self._session = requests.Session()

    def login(self, username: str, password: str, security_token: str = "") -> SalesforceSession:
        """Open a session via the SOAP login call.

        Args:
            username: Salesforce username.
            password: Salesforce password.
            security_token: Security token appended to the password (empty
                when the caller's IP is trusted by the org).

        Returns:
            The authenticated SalesforceSession.

        Raises:
            SalesforceAuthError: If Salesforce returns a SOAP fault (bad
                credentials, locked user, ...).
            requests.HTTPError: If the call fails without a SOAP fault.
        """
        url = f"{self.login_url}/services/Soap/u/{self.api_version}"
        body = LOGIN_ENVELOPE.format(
            username=escape(username),
            password=escape(password + security_token),
        )

        if self.debug:
            print(f"  Logging in as: {username} ({url})")

        response = self._session.post(
            url,
            data=body.encode("utf-8"),
            headers={"Content-Type": "text/xml; charset=UTF-8", "SOAPAction": "login"},
            timeout=self.timeout,
        )

        # Faults come back as HTTP 500 with a parseable body
        fault = _soap_fault(response.text)
        if fault:
            raise SalesforceAuthError(f"Salesforce login failed: {fault}")
        response.raise_for_status()

        root = ET.fromstring(response.content)
        session_id = root.findtext(f".//{{{PARTNER_NS}}}sessionId")
        server_url = root.findtext(f".//{{{PARTNER_NS}}}serverUrl")
        if not session_id or not server_url:
            raise SalesforceAuthError("Salesforce login response did not contain a session")

        parsed = urlparse(server_url)
        session = SalesforceSession(
            session_id=session_id,
            instance_url=f"{parsed.scheme}://{parsed.netloc}",
        )

        if self.debug:
            print(f"  Instance: {session.instance_url}")

        return session

    def logout(self, session: SalesforceSession) -> None:
        """Invalidate the session via the SOAP logout call.

        Raises:
            requests.HTTPError: If the call fails.
        """
        url = f"{session.instance_url}/services/Soap/u/{self.api_version}"
        body = LOGOUT_ENVELOPE.format(session_id=escape(session.session_id))

        response = self._session.post(
            url,
            data=body.encode("utf-8"),
            headers={"Content-Type": "text/xml; charset=UTF-8", "SOAPAction": "logout"},
            timeout=self.timeout,
        )
        response.raise_for_status()

    def query(self, session: SalesforceSession, soql: str) -> Dict[str, Any]:
        """Run a SOQL query and return the first page of results.

        GET /services/data/v{version}/query?q={soql}

        Returns:
            A dict with "records", "done", "totalSize" and, when not done,
            "nextRecordsUrl".
        """
        url = f"{session.instance_url}/services/data/v{self.api_version}/query"

        if self.debug:
            print(f"  Executing SOQL: {soql}")

        return self._get(session, url, params={"q": soql})

    def query_more(self, session: SalesforceSession, next_records: str) -> Dict[str, Any]:
        """Fetch the next page of a query.

        Args:
            session: The active session.
            next_records: The nextRecordsUrl of the previous page, or a bare
                query locator.

        Returns:
            The same shape as query().
        """
        if next_records.startswith("/"):
            url = f"{session.instance_url}{next_records}"
        else:
            url = f"{session.instance_url}/services/data/v{self.api_version}/query/{next_records}"

        if self.debug:
            print(f"  Fetching next page: {url}")

        return self._get(session, url)

    def describe_report(self, session: SalesforceSession, report_id: str) -> Dict[str, Any]:
        """Describe one report via the Analytics API.

        GET /services/data/v{version}/analytics/reports/{id}/describe

        Returns:
            The describe payload: reportMetadata, reportExtendedMetadata and
            reportTypeMetadata.
        """
        url = f"{session.instance_url}/services/data/v{self.api_version}/analytics/reports/{report_id}/describe"
        return self._get(session, url)

    def _get(self, session: SalesforceSession, url: str, params: Optional[Dict] = None) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {session.session_id}",
            "Accept": "application/json",
        }
        response = self._session.get(url, params=params, headers=headers, timeout=self.timeout)
        _raise_for_error(response)
        return response.json()


def _soap_fault(text: str) -> Optional[str]:
    """Return the faultstring of a SOAP response, or None."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return None
    fault = root.find(f".//{{{SOAP_ENV_NS}}}Fault")
    if fault is None:
        return None
    return fault.findtext("faultstring") or "unknown SOAP fault"


def _raise_for_error(response: requests.Response) -> None:
    """Raise SalesforceAPIError for Salesforce error bodies, else fall back to raise_for_status.

    Salesforce REST errors look like:
        [{"message": "Session expired or invalid", "errorCode": "INVALID_SESSION_ID"}]
    """
    if response.ok:
        return

    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, list) and body and isinstance(body[0], dict):
        error = body[0]
        message = error.get("message", response.reason)
        error_code = error.get("errorCode")
        raise SalesforceAPIError(
            f"{error_code}: {message}" if error_code else message,
            status_code=response.status_code,
            error_code=error_code,
            response=response,
        )

    response.raise_for_status()
