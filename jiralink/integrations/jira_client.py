"""
Jira REST client authenticated with Connect signed tokens.
"""

import re
from typing import Any, Dict, Iterable, Optional, Tuple
from urllib.parse import quote

import httpx
from loguru import logger

from jiralink.auth.signer import RequestSigner
from jiralink.core.exceptions import InvalidInput, JiraApiError
from jiralink.infrastructure.http_client import AsyncHTTPClient
from jiralink.models.connection import ProjectRef
from jiralink.storage.installation_store import CredentialStore

ISSUE_KEY_RE = re.compile(r"^[A-Z][A-Z0-9_]*-\d+$")

DEFAULT_WEBHOOK_EVENTS = (
    "jira:issue_created",
    "jira:issue_updated",
    "comment_created",
    "comment_updated",
)


def normalize_issue_key(issue_key: str) -> str:
    """
    Validate and upper-case an issue key.

    Raises:
        InvalidInput: If the key is not of the form ``PROJ-123``
    """
    key = (issue_key or "").strip().upper()
    if not ISSUE_KEY_RE.match(key):
        raise InvalidInput(f"Invalid issue key: {issue_key!r}")
    return key


class JiraClient:
    """Client for the Jira Cloud REST API, signing every call."""

    def __init__(
        self,
        credential_store: CredentialStore,
        signer: Optional[RequestSigner] = None,
        http_client: Optional[AsyncHTTPClient] = None,
    ):
        """
        Initialize Jira client.

        Args:
            credential_store: Holds the active installation credential
            signer: Request signer (defaults to one reading credential_store)
            http_client: HTTP client (defaults to a new AsyncHTTPClient)
        """
        self.credential_store = credential_store
        self.signer = signer or RequestSigner(credential_store)
        self.http_client = http_client or AsyncHTTPClient()

    async def _call(self, method: str, path: str, json: Optional[Any] = None) -> Dict[str, Any]:
        credential = self.credential_store.get_credential()
        url, token = self.signer.sign_url(method, path, credential=credential)

        headers = {"Authorization": token.authorization_header, "Accept": "application/json"}
        try:
            response = await self.http_client.request(method, url, headers=headers, json=json)
        except httpx.HTTPStatusError as e:
            raise JiraApiError(
                f"Jira returned {e.response.status_code} for {method} {path}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise JiraApiError(f"Jira request failed for {method} {path}: {e}") from e

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise JiraApiError(f"Invalid JSON from Jira for {method} {path}") from e

    async def list_projects(self) -> Dict[str, Any]:
        """Search response listing every project visible to the app."""
        return await self._call("GET", "/rest/api/3/project/search?expand=description")

    async def find_project(self, key: str) -> Optional[Tuple[ProjectRef, str]]:
        """
        Look up a project by key.

        Args:
            key: Project key typed by the user

        Returns:
            Tuple of (ProjectRef, description), or None when nothing matches
        """
        response = await self._call(
            "GET", f"/rest/api/3/project/search?query={quote(key.strip(), safe='')}&expand=description"
        )
        values = response.get("values") or []
        if not response.get("total") or not values:
            logger.info(f"Project {key} not found")
            return None

        # query also matches names; prefer the exact key when it is among the hits
        wanted = key.strip().upper()
        project = next((v for v in values if v.get("key") == wanted), values[0])
        return ProjectRef.model_validate(project), project.get("description") or ""

    async def get_issue(self, issue_key: str) -> Dict[str, Any]:
        """
        Fetch an issue.

        Raises:
            InvalidInput: If the key is malformed
            JiraApiError: If Jira returns an error (e.g. 404)
        """
        key = normalize_issue_key(issue_key)
        issue = await self._call("GET", f"/rest/api/3/issue/{key}")
        if issue.get("errorMessages") or issue.get("errors"):
            raise JiraApiError(f"Issue {key} not found")
        return issue

    async def register_webhook(
        self,
        url: str,
        events: Iterable[str] = DEFAULT_WEBHOOK_EVENTS,
        name: str = "jiralink",
        jql_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Register a webhook pointing back at this app."""
        body: Dict[str, Any] = {
            "name": name,
            "url": url,
            "events": list(events),
            "excludeIssueDetails": False,
        }
        if jql_filter:
            body["jqlFilter"] = jql_filter

        result = await self._call("POST", "/rest/webhooks/1.0/webhook", json=body)
        logger.info(f"Registered webhook {name} -> {url}")
        return result

    async def close(self):
        await self.http_client.close()

