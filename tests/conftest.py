"""
Pytest configuration and fixtures.
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["APP_KEY"] = "chat.rocket.jira"
os.environ["APP_BASE_URL"] = "https://chat.example.com/api/apps/public/jira"
os.environ["SENDER_USERNAME"] = "rocket.cat"
os.environ["LOG_LEVEL"] = "DEBUG"

from jiralink.models.installation import Credential  # noqa: E402
from jiralink.models.notification import Notification  # noqa: E402
from jiralink.monitoring.metrics import PerformanceMetrics  # noqa: E402
from jiralink.storage.connection_registry import ConnectionRegistry  # noqa: E402
from jiralink.storage.installation_store import CredentialStore  # noqa: E402
from jiralink.storage.persistence import InMemoryBackend  # noqa: E402

JIRA_BASE_URL = "https://test.atlassian.net"


@dataclass
class FakeRoom:
    id: str


@dataclass
class FakeUser:
    username: str


class FakeRoomResolver:
    """Resolves every room id except the ones marked missing."""

    def __init__(self, missing: Optional[List[str]] = None):
        self.missing = set(missing or [])
        self.calls: List[str] = []

    async def get_room(self, room_id: str):
        self.calls.append(room_id)
        if room_id in self.missing:
            return None
        return FakeRoom(id=room_id)


class FakeUserResolver:
    def __init__(self, known: Optional[List[str]] = None):
        self.known = set(known if known is not None else ["rocket.cat"])

    async def get_user(self, username: str):
        return FakeUser(username=username) if username in self.known else None


class FakeMessageSender:
    """Records every delivery; raises for rooms listed in ``failing``."""

    def __init__(self, failing: Optional[List[str]] = None):
        self.failing = set(failing or [])
        self.sent: List[Tuple[str, Notification, object]] = []

    async def send(self, room, notification: Notification, sender) -> None:
        if room.id in self.failing:
            raise RuntimeError(f"chat server rejected message for {room.id}")
        self.sent.append((room.id, notification, sender))

    @property
    def room_ids(self) -> List[str]:
        return [room_id for room_id, _, _ in self.sent]


@pytest.fixture
def install_payload() -> Dict:
    """Body Jira posts to the installed lifecycle callback."""
    return {
        "key": "chat.rocket.jira",
        "clientKey": "jira:1f3c7a2e-0d7f-4c2b-9a4e-6d0c0b8e1a11",
        "publicKey": "MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEA",
        "sharedSecret": "x7Q2m9Vw4Lp8Rt1Zs6Yb3Nc5Hd0Kf2Jg",
        "serverVersion": "100136",
        "pluginsVersion": "1001.0.0-SNAPSHOT",
        "baseUrl": JIRA_BASE_URL,
        "productType": "jira",
        "description": "Atlassian JIRA at https://test.atlassian.net",
        "eventType": "installed",
    }


@pytest.fixture
def credential(install_payload) -> Credential:
    return Credential.model_validate(install_payload)


@pytest.fixture
def credential_store() -> CredentialStore:
    return CredentialStore(InMemoryBackend())


@pytest.fixture
def installed_store(credential_store, credential) -> CredentialStore:
    credential_store.set_credential(credential)
    return credential_store


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry(InMemoryBackend())


@pytest.fixture
def metrics() -> PerformanceMetrics:
    return PerformanceMetrics()


@pytest.fixture
def room_resolver() -> FakeRoomResolver:
    return FakeRoomResolver()


@pytest.fixture
def user_resolver() -> FakeUserResolver:
    return FakeUserResolver()


@pytest.fixture
def message_sender() -> FakeMessageSender:
    return FakeMessageSender()


def make_project(key: str, name: Optional[str] = None, project_id: str = "10000") -> Dict:
    """Project JSON as returned by /rest/api/3/project/search."""
    return {
        "id": project_id,
        "self": f"{JIRA_BASE_URL}/rest/api/3/project/{project_id}",
        "key": key,
        "name": name or f"Project {key}",
        "description": f"The {key} project",
    }


@pytest.fixture
def project_factory():
    return make_project


@pytest.fixture
def sample_issue_data() -> Dict:
    """Issue JSON as embedded in webhooks and returned by the issue API."""
    return {
        "id": "10042",
        "self": f"{JIRA_BASE_URL}/rest/api/2/issue/10042",
        "key": "ABC-42",
        "fields": {
            "summary": "Login button does nothing",
            "description": "Steps:\n# Open {{/login}}\n# Click *Login*",
            "status": {"id": "3", "name": "In Progress"},
            "priority": {"id": "2", "name": "High"},
            "issuetype": {"id": "1", "name": "Bug"},
            "project": make_project("ABC", "Alpha Beta"),
            "assignee": {"accountId": "5b10a2844c20165700ede21g", "displayName": "Ada Lovelace"},
            "attachment": [
                {
                    "filename": "screenshot.png",
                    "thumbnail": f"{JIRA_BASE_URL}/secure/thumbnail/10100/screenshot.png",
                    "content": f"{JIRA_BASE_URL}/secure/attachment/10100/screenshot.png",
                }
            ],
        },
    }


@pytest.fixture
def comment_event(sample_issue_data) -> Dict:
    """comment_created webhook body."""
    author = {"accountId": "5b10ac8d82e05b22cc7d4ef5", "displayName": "Grace Hopper"}
    return {
        "webhookEvent": "comment_created",
        "timestamp": 1700000000000,
        "issue": sample_issue_data,
        "comment": {
            "id": "10500",
            "body": "Reproduced on staging, see !screenshot.png|thumbnail!",
            "author": author,
            "updateAuthor": author,
        },
    }


@pytest.fixture
def issue_event(sample_issue_data) -> Dict:
    """jira:issue_created webhook body."""
    return {
        "webhookEvent": "jira:issue_created",
        "timestamp": 1700000000000,
        "user": {"accountId": "5b10a2844c20165700ede21g", "displayName": "Ada Lovelace"},
        "issue": sample_issue_data,
    }
