"""
Unit tests for JiraClient.
"""

import json

import httpx
import jwt
import pytest

from jiralink.auth.qsh import query_string_hash
from jiralink.auth.signer import RequestSigner
from jiralink.core.exceptions import InvalidInput, JiraApiError, MissingCredential, NotInstalled
from jiralink.infrastructure.http_client import AsyncHTTPClient
from jiralink.integrations.jira_client import JiraClient, normalize_issue_key


class TestJiraClient:
    """Test suite for JiraClient."""

    @pytest.fixture
    def requests(self):
        return []

    @pytest.fixture
    def routes(self):
        return {}

    @pytest.fixture
    def client(self, installed_store, requests, routes):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            key = (request.method, request.url.path)
            if key not in routes:
                return httpx.Response(404, json={"errorMessages": ["Not found"]})
            status, body = routes[key]
            return httpx.Response(status, json=body)

        http_client = AsyncHTTPClient(transport=httpx.MockTransport(handler))
        return JiraClient(installed_store, http_client=http_client)

    @pytest.mark.asyncio
    async def test_requests_are_signed(self, client, requests, routes, credential, project_factory):
        """Every call carries a JWT whose QSH matches the request."""
        routes[("GET", "/rest/api/3/project/search")] = (200, {"total": 1, "values": [project_factory("ABC")]})

        await client.list_projects()

        request = requests[0]
        assert str(request.url) == "https://test.atlassian.net/rest/api/3/project/search?expand=description"
        scheme, raw = request.headers["Authorization"].split(" ", 1)
        assert scheme == "JWT"
        claims = jwt.decode(raw, credential.shared_secret, algorithms=["HS256"])
        assert claims["iss"] == "chat.rocket.jira"
        assert claims["qsh"] == query_string_hash("GET", "/rest/api/3/project/search", "expand=description")

    @pytest.mark.asyncio
    async def test_find_project(self, client, routes, project_factory):
        routes[("GET", "/rest/api/3/project/search")] = (
            200,
            {"total": 2, "values": [project_factory("ABCD", project_id="2"), project_factory("ABC", "Alpha Beta")]},
        )

        project, description = await client.find_project("abc")

        assert project.key == "ABC"
        assert project.name == "Alpha Beta"
        assert description == "The ABC project"

    @pytest.mark.asyncio
    async def test_find_project_query_encoded(self, client, requests, routes):
        routes[("GET", "/rest/api/3/project/search")] = (200, {"total": 0, "values": []})

        assert await client.find_project("my project") is None
        assert requests[0].url.params["query"] == "my project"

    @pytest.mark.asyncio
    async def test_get_issue(self, client, routes, sample_issue_data):
        routes[("GET", "/rest/api/3/issue/ABC-42")] = (200, sample_issue_data)

        issue = await client.get_issue("abc-42")

        assert issue["key"] == "ABC-42"

    @pytest.mark.asyncio
    async def test_get_issue_not_found(self, client):
        """A 404 surfaces as JiraApiError with the status code."""
        with pytest.raises(JiraApiError) as exc_info:
            await client.get_issue("ABC-999")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_get_issue_invalid_key(self, client, requests):
        with pytest.raises(InvalidInput):
            await client.get_issue("not an issue")
        assert requests == []

    @pytest.mark.asyncio
    async def test_register_webhook(self, client, requests, routes):
        routes[("POST", "/rest/webhooks/1.0/webhook")] = (201, {"self": "https://test.atlassian.net/rest/webhooks/1.0/webhook/1"})

        result = await client.register_webhook("https://chat.example.com/on_issue", jql_filter="project = ABC")

        body = json.loads(requests[0].content)
        assert body["url"] == "https://chat.example.com/on_issue"
        assert body["jqlFilter"] == "project = ABC"
        assert "comment_created" in body["events"]
        assert result["self"].endswith("/webhook/1")

    @pytest.mark.asyncio
    async def test_not_installed(self, credential_store):
        client = JiraClient(
            credential_store,
            http_client=AsyncHTTPClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))),
        )
        with pytest.raises(NotInstalled):
            await client.list_projects()


class TestNormalizeIssueKey:
    @pytest.mark.parametrize("raw,expected", [("abc-1", "ABC-1"), (" XY2-10 ", "XY2-10")])
    def test_valid(self, raw, expected):
        assert normalize_issue_key(raw) == expected

    @pytest.mark.parametrize("raw", ["", "ABC", "ABC-", "1ABC-1", "help"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidInput):
            normalize_issue_key(raw)


def test_missing_credential_is_reported(credential_store):
    """Signing without an install raises MissingCredential from the signer."""
    with pytest.raises(MissingCredential):
        RequestSigner(credential_store).sign_url("GET", "/rest/api/3/myself")
