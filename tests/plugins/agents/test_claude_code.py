"""Tests for plugins/agents/claude_code.py."""

import json
from unittest.mock import patch

import pytest

from mcp_manager.plugins.agents import ClaudeCodeConnector


@pytest.fixture(autouse=True)
def quiet():
    with patch("mcp_manager.plugins.agents.connector.message"):
        yield


def _write(path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


# ===========================================================================
# File locations
# ===========================================================================
class TestClaudeCodePaths:

    def test_prefers_user_config(self, claude_code, home):
        (home / ".claude.json").write_text("{}")
        assert claude_code.config_path() == home / ".claude.json"

    def test_falls_back_to_settings(self, claude_code, home):
        assert claude_code.config_path() == home / ".claude" / "settings.json"

    def test_presence(self, claude_code, home):
        assert not claude_code.is_present()
        (home / ".local" / "bin").mkdir(parents=True)
        (home / ".local" / "bin" / "claude").write_text("")
        assert claude_code.is_present()

    def test_project_keys_are_unique(self, home, tmp_path):
        connector = ClaudeCodeConnector(home=home, cwd=tmp_path)
        keys = connector.project_keys()
        assert keys[0] == str(tmp_path)
        assert len(keys) == len(set(keys))


# ===========================================================================
# Sections
# ===========================================================================
class TestClaudeCodeSections:

    def test_reads_global_and_current_project(self, claude_code, home, project):
        _write(
            home / ".claude.json",
            {
                "mcpServers": {"github": {}},
                "projects": {
                    str(project): {"mcpServers": {"local-db": {}}},
                    "/some/other/project": {"mcpServers": {"elsewhere": {}}},
                },
            },
        )
        assert claude_code.declared_provider_ids() == {"github", "local-db"}

    def test_reads_settings_file_too(self, claude_code, home):
        _write(home / ".claude.json", {"mcpServers": {"a": {}}})
        _write(home / ".claude" / "settings.json", {"mcpServers": {"b": {}}})
        assert claude_code.declared_provider_ids() == {"a", "b"}

    def test_malformed_project_sections_skipped(self, claude_code, home, project):
        _write(
            home / ".claude.json",
            {"mcpServers": {"a": {}}, "projects": {str(project): {"mcpServers": "bad"}}},
        )
        assert claude_code.declared_provider_ids() == {"a"}

        _write(home / ".claude.json", {"mcpServers": {"a": {}}, "projects": ["bad"]})
        assert claude_code.declared_provider_ids() == {"a"}

    def test_disable_project_entry(self, claude_code, home, project):
        path = home / ".claude.json"
        _write(path, {"projects": {str(project): {"mcpServers": {"local-db": {"command": "db"}}}}})

        assert claude_code.set_enabled("local-db", False)

        data = json.loads(path.read_text())
        assert data["projects"][str(project)]["mcpServers"]["local-db"] == {"command": "db", "disabled": True}
        assert claude_code.is_enabled("local-db") is False

    def test_remove_from_every_section(self, claude_code, home, project):
        path = home / ".claude.json"
        _write(path, {"mcpServers": {"a": {}}, "projects": {str(project): {"mcpServers": {"a": {}}}}})

        assert claude_code.remove_provider("a")

        data = json.loads(path.read_text())
        assert data["mcpServers"] == {}
        assert data["projects"][str(project)]["mcpServers"] == {}


# ===========================================================================
# Entries
# ===========================================================================
class TestClaudeCodeEntries:

    def test_default_stdio_entry(self, claude_code, home):
        (home / ".claude.json").write_text("{}")
        claude_code.add_provider("github")
        entry = claude_code.get_entry("github")
        assert entry == {"type": "stdio", "command": "npx", "args": ["-y", "github"]}
        assert claude_code.is_enabled("github")

    def test_http_entry(self, claude_code, home):
        (home / ".claude.json").write_text("{}")
        claude_code.add_provider("remote", {"type": "http", "url": "https://mcp.example.com"})
        assert claude_code.get_entry("remote") == {"type": "http", "url": "https://mcp.example.com"}

    def test_writes_settings_when_no_user_config(self, claude_code, home):
        claude_code.add_provider("a")
        settings = json.loads((home / ".claude" / "settings.json").read_text())
        assert "a" in settings["mcpServers"]
        assert not (home / ".claude.json").exists()

    def test_re_add_replaces_transport_keeps_flags(self, claude_code, home):
        _write(
            home / ".claude.json",
            {"mcpServers": {"a": {"type": "stdio", "command": "old", "args": ["x"], "env": {"A": "1"}, "disabled": True}}},
        )

        claude_code.add_provider("a", {"type": "http", "url": "https://a.example.com"})

        assert claude_code.get_entry("a") == {"type": "http", "url": "https://a.example.com", "disabled": True}

    def test_enable_removes_disabled_key(self, claude_code, home):
        _write(home / ".claude.json", {"mcpServers": {"a": {"disabled": True}}})
        claude_code.set_enabled("a", True)
        assert claude_code.get_entry("a") == {}
        assert claude_code.is_enabled("a")
