"""Tests for plugins/agents/connector.py - the shared connector contract."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from mcp_manager.core.errors import MalformedInputError, WriteFailureError
from mcp_manager.core.models import AgentType
from mcp_manager.plugins.agents.connector import AbstractConnector, parse_env, split_args, stdio_entry


class ConcreteConnector(AbstractConnector):
    """Minimal dialect for exercising AbstractConnector."""

    AGENT_ID = "test"
    DISPLAY_NAME = "Test Agent"

    def config_path(self) -> Path:
        return self.home / ".test" / "mcp.json"

    def build_entry(self, provider_id, config):
        return stdio_entry(provider_id, config, "run", provider_id)

    def apply_enabled(self, entry, enabled):
        entry["active"] = enabled

    def entry_enabled(self, entry):
        return entry.get("active", True)


@pytest.fixture
def connector(home):
    return ConcreteConnector(home=home)


@pytest.fixture(autouse=True)
def quiet():
    with patch("mcp_manager.plugins.agents.connector.message"):
        yield


def _write(connector, data) -> Path:
    path = connector.config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return path


def _read(connector) -> dict:
    return json.loads(connector.config_path().read_text())


# ===========================================================================
# Identity
# ===========================================================================
class TestConnectorIdentity:

    def test_agent_id_override(self, connector):
        assert connector.agent_id == "test"
        assert connector.display_name == "Test Agent"

    def test_defaults_from_agent_type(self, home):
        class Plain(ConcreteConnector):
            AGENT_ID = None
            DISPLAY_NAME = None

        connector = Plain(home=home)
        assert connector.AGENT_TYPE is AgentType.OTHER
        assert connector.agent_id == "other"
        assert connector.display_name == "Other"

    def test_to_agent(self, connector):
        _write(connector, {"mcpServers": {"a": {}}})
        agent = connector.to_agent()
        assert agent.id == "test"
        assert agent.config_path == connector.config_path()
        assert agent.declared_provider_ids == {"a"}
        assert agent.is_detected

    def test_missing_file_not_present(self, connector):
        assert not connector.is_present()
        assert connector.to_agent().declared_provider_ids == set()


# ===========================================================================
# Reads
# ===========================================================================
class TestConnectorReads:

    def test_declared_ids(self, connector):
        _write(connector, {"mcpServers": {"a": {}, "b": {"command": "x"}}, "other": {"c": {}}})
        assert connector.declared_provider_ids() == {"a", "b"}

    def test_malformed_json(self, connector):
        _write(connector, "{not json")
        assert connector.declared_provider_ids() == set()
        assert connector.get_entry("a") is None

    def test_top_level_not_object(self, connector):
        _write(connector, "[1, 2]")
        assert connector.declared_provider_ids() == set()

    def test_section_not_object(self, connector):
        _write(connector, {"mcpServers": ["a"]})
        assert connector.declared_provider_ids() == set()

    def test_empty_file(self, connector):
        _write(connector, "")
        assert connector.declared_provider_ids() == set()

    def test_get_entry_and_enabled(self, connector):
        _write(connector, {"mcpServers": {"a": {"active": False}, "b": {}, "c": "junk"}})
        assert connector.get_entry("a") == {"active": False}
        assert connector.is_enabled("a") is False
        assert connector.is_enabled("b") is True
        assert connector.is_enabled("c") is None
        assert connector.is_enabled("missing") is None


# ===========================================================================
# Writes
# ===========================================================================
class TestConnectorWrites:

    def test_add_creates_file(self, connector):
        assert connector.add_provider("a") is True
        assert _read(connector) == {"mcpServers": {"a": {"command": "run", "args": ["a"]}}}

    def test_add_preserves_unrelated_keys(self, connector):
        _write(connector, {"theme": "dark", "mcpServers": {"b": {"command": "keep"}}})

        connector.add_provider("a", {"command": "uvx", "args": "a --flag", "env": '{"TOKEN": "t"}'})

        data = _read(connector)
        assert data["theme"] == "dark"
        assert data["mcpServers"]["b"] == {"command": "keep"}
        assert data["mcpServers"]["a"] == {"command": "uvx", "args": ["a", "--flag"], "env": {"TOKEN": "t"}}

    def test_re_add_merges_existing_entry(self, connector):
        _write(connector, {"mcpServers": {"a": {"command": "old", "active": False, "note": "x"}}})
        connector.add_provider("a", {"command": "new"})
        assert _read(connector)["mcpServers"]["a"] == {"command": "new", "active": False, "note": "x", "args": ["a"]}

    def test_refuses_to_overwrite_malformed_file(self, connector):
        path = _write(connector, "{not json")
        with pytest.raises(WriteFailureError):
            connector.add_provider("a")
        assert path.read_text() == "{not json"

    def test_refuses_when_section_not_object(self, connector):
        _write(connector, {"mcpServers": "nope"})
        with pytest.raises(WriteFailureError, match="mcpServers"):
            connector.add_provider("a")

    def test_invalid_env_rejected(self, connector):
        with pytest.raises(MalformedInputError):
            connector.add_provider("a", {"env": "[1]"})
        assert not connector.config_path().exists()

    def test_remove(self, connector):
        _write(connector, {"x": 1, "mcpServers": {"a": {}, "b": {}}})
        assert connector.remove_provider("a") is True
        assert _read(connector) == {"x": 1, "mcpServers": {"b": {}}}
        assert connector.remove_provider("a") is False

    def test_remove_without_file(self, connector):
        assert connector.remove_provider("a") is False
        assert not connector.config_path().exists()

    def test_set_enabled(self, connector):
        _write(connector, {"mcpServers": {"a": {"command": "run"}}})
        assert connector.set_enabled("a", False) is True
        assert _read(connector)["mcpServers"]["a"] == {"command": "run", "active": False}
        assert connector.set_enabled("missing", False) is False

    def test_set_enabled_replaces_non_object_entry(self, connector):
        _write(connector, {"mcpServers": {"a": "junk"}})
        connector.set_enabled("a", False)
        assert _read(connector)["mcpServers"]["a"] == {"active": False}

    def test_write_failure(self, connector, home):
        # A file where the config directory should be
        (home / ".test").write_text("")
        with pytest.raises(WriteFailureError):
            connector.add_provider("a")


# ===========================================================================
# Entry helpers
# ===========================================================================
class TestEntryHelpers:

    def test_split_args(self):
        assert split_args(None, "-y pkg") == ["-y", "pkg"]
        assert split_args("a  b ", "default") == ["a", "b"]
        assert split_args("", "default") == []

    def test_parse_env(self):
        assert parse_env(None) is None
        assert parse_env("  ") is None
        assert parse_env('{"A": 1}') == {"A": "1"}

    def test_parse_env_invalid(self):
        with pytest.raises(MalformedInputError, match="invalid JSON"):
            parse_env("{")
        with pytest.raises(MalformedInputError, match="expected a JSON object"):
            parse_env('"text"')

    def test_stdio_entry_defaults(self):
        assert stdio_entry("p", {}, "npx", "-y p") == {"command": "npx", "args": ["-y", "p"]}
