"""Tests for cli_extensions/provider_commands.py - Provider CLI commands."""

import argparse
from datetime import UTC, datetime
from unittest.mock import Mock, patch

import pytest

from mcp_manager.cli_extensions.provider_commands import ProviderCommands
from mcp_manager.core.manager import ProviderManager
from mcp_manager.core.models import CommandResult, Installation, Provider


def _parse(*argv):
    parser = argparse.ArgumentParser()
    subparsers = parser.add_subparsers(dest="command")
    ProviderCommands.add_cli_arguments(subparsers)
    return parser.parse_args(["providers", *argv])


@pytest.fixture
def manager():
    manager = Mock(spec=ProviderManager)
    manager.list_installations.return_value = []
    return manager


def _printed(mock_message) -> list[str]:
    return [c.args[0] for c in mock_message.call_args_list]


# ===========================================================================
# Argument parsing
# ===========================================================================
class TestProviderCommandsArguments:

    def test_install_arguments(self):
        args = _parse("install", "slack", "--local", "--name", "Slack", "--command", "npx -y slack", "--set", "a=1", "b=2")
        assert args.providers_command == "install"
        assert args.local
        assert args.invocation == "npx -y slack"
        assert args.assignments == ["a=1", "b=2"]

    def test_set_config_without_entries(self):
        args = _parse("set-config", "slack")
        assert args.assignments == []

    def test_uninstall_flag(self):
        assert _parse("uninstall", "slack", "--remove-from-agents").remove_from_agents


# ===========================================================================
# Dispatch
# ===========================================================================
@patch("mcp_manager.cli_extensions.common.message")
@patch("mcp_manager.cli_extensions.provider_commands.message")
class TestProviderCommandsProcess:

    def test_no_subcommand(self, mock_message, mock_common, manager):
        with pytest.raises(SystemExit):
            ProviderCommands.process_cli_command(argparse.Namespace(providers_command=None), manager)

    def test_install_from_registry(self, mock_message, mock_common, manager):
        manager.install_from_registry.return_value = CommandResult(changed=1, items=["github"])

        ProviderCommands.process_cli_command(_parse("install", "github", "--registry", "official"), manager)

        manager.install_from_registry.assert_called_once_with("github", "official")
        assert _printed(mock_common) == ["Installed provider 'github'"]

    def test_install_already_installed(self, mock_message, mock_common, manager):
        manager.install_from_registry.return_value = CommandResult(items=["github"])
        ProviderCommands.process_cli_command(_parse("install", "github"), manager)
        assert _printed(mock_common) == ["Provider 'github' is already installed"]

    def test_install_local(self, mock_message, mock_common, manager):
        manager.install_provider.return_value = CommandResult(changed=1)

        ProviderCommands.process_cli_command(
            _parse("install", "db", "--local", "--description", "Database", "--set", "url=postgres://x"), manager
        )

        provider = manager.install_provider.call_args.args[0]
        assert provider == Provider(id="db", name="db", description="Database", global_config={"url": "postgres://x"})
        manager.install_from_registry.assert_not_called()

    def test_install_failure_exits(self, mock_message, mock_common, manager):
        manager.install_from_registry.return_value = CommandResult(errors=["Provider 'x' not found"])
        with pytest.raises(SystemExit) as exc_info:
            ProviderCommands.process_cli_command(_parse("install", "x"), manager)
        assert exc_info.value.code == 1
        assert _printed(mock_common) == ["Error: Provider 'x' not found"]

    def test_uninstall(self, mock_message, mock_common, manager):
        manager.uninstall_provider.return_value = CommandResult(changed=1)
        ProviderCommands.process_cli_command(_parse("uninstall", "x", "--remove-from-agents"), manager)
        manager.uninstall_provider.assert_called_once_with("x", remove_from_agents=True)

    def test_set_config(self, mock_message, mock_common, manager):
        manager.update_global_config.return_value = CommandResult(changed=3, items=["i1", "i2"])

        ProviderCommands.process_cli_command(_parse("set-config", "x", "k=v"), manager)

        manager.update_global_config.assert_called_once_with("x", {"k": "v"})
        assert "(2 installation(s) followed)" in _printed(mock_common)[0]


# ===========================================================================
# Display
# ===========================================================================
@patch("mcp_manager.cli_extensions.provider_commands.message")
class TestProviderCommandsDisplay:

    def test_list_empty(self, mock_message, manager):
        manager.list_providers.return_value = []
        ProviderCommands.list_providers(manager)
        assert "No providers installed." in _printed(mock_message)

    def test_list(self, mock_message, manager):
        manager.list_providers.return_value = [Provider(id="github", name="GitHub"), Provider(id="local", name="local")]
        manager.list_installations.side_effect = lambda provider_id: (
            [Installation(id="i", provider_id="github", agent_id="claudecode")] if provider_id == "github" else []
        )

        ProviderCommands.list_providers(manager)

        printed = _printed(mock_message)
        assert "  github (GitHub)" in printed
        assert "    agents: claudecode" in printed
        assert "  local" in printed
        assert "\nTotal: 2 provider(s)" in printed

    def test_show(self, mock_message, manager):
        manager.get_provider.return_value = Provider(
            id="github",
            name="GitHub",
            description="GitHub API",
            global_config={"k": "v"},
            installed_at=datetime(2025, 1, 1, tzinfo=UTC),
        )
        manager.list_installations.return_value = [
            Installation(id="i1", provider_id="github", agent_id="claude"),
            Installation(id="i2", provider_id="github", agent_id="codex", is_enabled=False, agent_specific_config={"k": "x"}),
        ]

        ProviderCommands.show_provider(manager, "github")

        printed = _printed(mock_message)
        assert any(line.strip() == "Global config: k=v" for line in printed)
        assert "  claude [enabled] (inherits global)" in printed
        assert "  codex [disabled] k=x" in printed

    def test_show_missing(self, mock_message, manager):
        manager.get_provider.return_value = None
        with pytest.raises(SystemExit):
            ProviderCommands.show_provider(manager, "nope")
        assert _printed(mock_message) == ["Provider 'nope' not found"]
