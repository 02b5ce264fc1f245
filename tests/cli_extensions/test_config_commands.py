"""Tests for cli_extensions/config_commands.py - Config CLI commands."""

import argparse
from unittest.mock import Mock, patch

import pytest
import yaml

from mcp_manager.cli_extensions.config_commands import ConfigCommands
from mcp_manager.config.config import Config, ConfigError


def _printed(mock_message) -> list[str]:
    return [c.args[0] for c in mock_message.call_args_list]


@pytest.fixture
def config(tmp_path):
    return Config(config_dir=tmp_path / "config")


class TestConfigCommandsAddCliArguments:
    """Test that all subcommands are registered."""

    def test_adds_config_parser(self):
        mock_subparsers = Mock()
        mock_parser = Mock()
        mock_subparsers.add_parser.return_value = mock_parser
        ConfigCommands.add_cli_arguments(mock_subparsers)
        assert mock_subparsers.add_parser.called

    def test_adds_expected_subcommands(self):
        parser = argparse.ArgumentParser()
        subparsers = parser.add_subparsers(dest="command")
        ConfigCommands.add_cli_arguments(subparsers)

        for cmd in ["init", "show", "validate", "path", "template"]:
            args = parser.parse_args(["config", cmd])
            assert args.config_command == cmd

        assert parser.parse_args(["config", "init", "--force"]).force


@patch("mcp_manager.cli_extensions.config_commands.message")
class TestConfigCommandsProcessCliCommand:

    @patch("mcp_manager.cli_extensions.config_commands.ConfigCommands.display")
    def test_show(self, mock_display, mock_message):
        config = Mock(spec=Config)
        ConfigCommands.process_cli_command(Mock(config_command="show"), config)
        mock_display.assert_called_once_with(config)

    @patch("mcp_manager.cli_extensions.config_commands.ConfigCommands.validate")
    def test_validate(self, mock_validate, mock_message):
        config = Mock(spec=Config)
        ConfigCommands.process_cli_command(Mock(config_command="validate"), config)
        mock_validate.assert_called_once_with(config)

    @patch("mcp_manager.cli_extensions.config_commands.ConfigCommands.show_location")
    def test_path(self, mock_show, mock_message):
        config = Mock(spec=Config)
        ConfigCommands.process_cli_command(Mock(config_command="path"), config)
        mock_show.assert_called_once_with(config)

    def test_init(self, mock_message):
        config = Mock(spec=Config)
        ConfigCommands.process_cli_command(Mock(config_command="init", force=True), config)
        config.initialize.assert_called_once_with(force=True)

    def test_config_error_exits(self, mock_message):
        config = Mock(spec=Config)
        config.initialize.side_effect = ConfigError("Configuration file already exists")
        with pytest.raises(SystemExit) as exc_info:
            ConfigCommands.process_cli_command(Mock(config_command="init", force=False), config)
        assert exc_info.value.code == 1
        assert _printed(mock_message) == ["Configuration file already exists"]

    def test_no_command_prints_usage(self, mock_message):
        ConfigCommands.process_cli_command(Mock(config_command=None), Mock(spec=Config))
        assert "Available commands:" in _printed(mock_message)

    def test_unknown_command(self, mock_message):
        with pytest.raises(SystemExit):
            ConfigCommands.process_cli_command(Mock(config_command="unknown"), Mock(spec=Config))


@patch("mcp_manager.cli_extensions.config_commands.message")
class TestConfigCommandsOperations:

    def test_display_defaults_without_file(self, mock_message, config):
        with patch("mcp_manager.config.config.message"):
            ConfigCommands.display(config)
        printed = _printed(mock_message)
        assert "No configuration file found" in printed[0]
        assert "  1. official (http)" in printed
        assert f"  {config.default_database}" in printed

    def test_display_file(self, mock_message, config):
        config.config_directory.mkdir(parents=True)
        config.config_file.write_text(
            yaml.dump(
                {
                    "registries": [{"name": "team", "type": "git", "url": "https://github.com/o/r.git", "enabled": False}],
                    "agents": {"disabled": ["claude"]},
                }
            )
        )
        ConfigCommands.display(config)
        printed = _printed(mock_message)
        assert "  1. team (git) (disabled)" in printed
        assert "  - claude" in printed

    def test_validate_without_file(self, mock_message, config):
        with pytest.raises(SystemExit):
            ConfigCommands.validate(config)

    def test_validate_valid_file(self, mock_message, config):
        with patch("mcp_manager.config.config.message"):
            config.initialize()
        ConfigCommands.validate(config)
        assert _printed(mock_message) == ["Configuration is valid (1 registry)"]

    def test_validate_invalid_file(self, mock_message, config):
        config.config_directory.mkdir(parents=True)
        config.config_file.write_text("sync:\n  workers: 0\n")
        with pytest.raises(SystemExit):
            ConfigCommands.process_cli_command(Mock(config_command="validate"), config)
        assert "'sync.workers' must be an integer of at least 1" in _printed(mock_message)

    def test_template(self, mock_message, capsys):
        ConfigCommands.template()
        output = capsys.readouterr().out
        assert "registries:" in output
        assert "strict_identity: false" in output

    def test_show_location(self, mock_message, config):
        ConfigCommands.show_location(config)
        printed = _printed(mock_message)
        assert f"  Config file:          {config.config_file}" in printed
        assert "  Config file does not exist" in printed
