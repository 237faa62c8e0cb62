"""
Unit tests for the jiralink command line.
"""

import json

import pytest

from jiralink.auth.qsh import query_string_hash
from jiralink_cli import main


class TestCli:
    @pytest.fixture
    def storage(self, tmp_path):
        return str(tmp_path / "state.json")

    @pytest.fixture
    def install_file(self, tmp_path, install_payload):
        path = tmp_path / "installed.json"
        path.write_text(json.dumps(install_payload), encoding="utf-8")
        return str(path)

    def test_install_then_sign(self, storage, install_file, capsys):
        assert main(["--storage", storage, "install", install_file]) == 0
        capsys.readouterr()

        assert main(["--storage", storage, "sign", "GET", "/rest/api/3/myself"]) == 0

        url, header = capsys.readouterr().out.strip().splitlines()
        assert url == "https://test.atlassian.net/rest/api/3/myself"
        assert header.startswith("Authorization: JWT ")

    def test_sign_before_install_fails(self, storage, capsys):
        assert main(["--storage", storage, "sign", "GET", "/rest/api/3/myself"]) == 1

    def test_uninstall(self, storage, install_file, capsys):
        main(["--storage", storage, "install", install_file])
        assert main(["--storage", storage, "uninstall"]) == 0
        assert "Credential removed" in capsys.readouterr().out

    def test_qsh(self, storage, capsys):
        assert main(["--storage", storage, "qsh", "get", "/rest/api/3/project/search?expand=description"]) == 0

        canonical, digest = capsys.readouterr().out.strip().splitlines()
        assert canonical == "GET&/rest/api/3/project/search&expand=description"
        assert digest == query_string_hash("GET", "/rest/api/3/project/search", "expand=description")

    def test_connections_empty(self, storage, capsys):
        assert main(["--storage", storage, "connections"]) == 0
        assert "No connected rooms" in capsys.readouterr().out

    def test_descriptor(self, storage, capsys):
        assert main(["--storage", storage, "descriptor", "--base-url", "https://chat.example.com/jira"]) == 0
        descriptor = json.loads(capsys.readouterr().out)
        assert descriptor["links"]["self"] == "https://chat.example.com/jira/manifest.json"

    def test_translate(self, storage, tmp_path, capsys):
        source = tmp_path / "comment.txt"
        source.write_text("h1. Title\nuse {{make}}", encoding="utf-8")

        assert main(["--storage", storage, "translate", str(source)]) == 0
        assert capsys.readouterr().out == "*Title*\nuse `make`\n"
