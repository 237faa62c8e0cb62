"""
Unit tests for Connect lifecycle handlers and the app descriptor.
"""

import pytest

from jiralink.connect.descriptor import build_descriptor
from jiralink.connect.lifecycle import handle_installed, handle_uninstalled
from jiralink.core.exceptions import InvalidInput, NotInstalled


class TestLifecycle:
    """Test install/uninstall callbacks."""

    def test_installed_stores_credential(self, credential_store, install_payload):
        credential = handle_installed(install_payload, credential_store)

        assert credential.client_key == install_payload["clientKey"]
        assert credential_store.get_credential().shared_secret == install_payload["sharedSecret"]

    def test_reinstall_replaces_credential(self, credential_store, install_payload):
        handle_installed(install_payload, credential_store)
        install_payload.update(clientKey="jira:other", sharedSecret="rotated-secret")

        handle_installed(install_payload, credential_store)

        assert credential_store.get_credential().client_key == "jira:other"
        assert credential_store.get_credential().shared_secret == "rotated-secret"

    def test_installed_without_secret(self, credential_store, install_payload):
        del install_payload["sharedSecret"]
        with pytest.raises(InvalidInput):
            handle_installed(install_payload, credential_store)
        assert not credential_store.is_installed()

    def test_installed_malformed(self, credential_store):
        with pytest.raises(InvalidInput):
            handle_installed({"eventType": "installed"}, credential_store)

    def test_uninstalled_matching_client(self, credential_store, install_payload):
        handle_installed(install_payload, credential_store)

        assert handle_uninstalled({**install_payload, "eventType": "uninstalled"}, credential_store) is True
        with pytest.raises(NotInstalled):
            credential_store.get_credential()

    def test_uninstalled_other_client_ignored(self, credential_store, install_payload):
        """An uninstall from a site that was already replaced leaves the active one."""
        handle_installed(install_payload, credential_store)

        removed = handle_uninstalled({**install_payload, "clientKey": "jira:stale"}, credential_store)

        assert removed is False
        assert credential_store.is_installed()

    def test_uninstalled_when_nothing_installed(self, credential_store, install_payload):
        assert handle_uninstalled(install_payload, credential_store) is False


class TestDescriptor:
    def test_descriptor(self):
        descriptor = build_descriptor("https://chat.example.com/api/apps/public/jira/")

        assert descriptor["key"] == "chat.rocket.jira"
        assert descriptor["baseUrl"] == "https://chat.example.com/api/apps/public/jira"
        assert descriptor["links"]["self"] == "https://chat.example.com/api/apps/public/jira/manifest.json"
        assert descriptor["authentication"] == {"type": "jwt"}
        assert descriptor["lifecycle"] == {
            "installed": "/app-installed-callback",
            "uninstalled": "/app-uninstalled-callback",
        }

    def test_webhooks(self):
        webhooks = build_descriptor()["modules"]["webhooks"]
        assert {(w["event"], w["url"]) for w in webhooks} == {
            ("jira:issue_created", "/on_issue"),
            ("jira:issue_updated", "/on_issue"),
            ("comment_created", "/on_comment"),
            ("comment_updated", "/on_comment"),
        }

    def test_default_base_url_from_settings(self):
        assert build_descriptor()["baseUrl"] == "https://chat.example.com/api/apps/public/jira"
