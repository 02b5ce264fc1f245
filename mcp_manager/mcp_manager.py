#!/usr/bin/env python

"""Manage MCP providers across AI agents."""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

from mcp_manager.cli_extensions import (
    AgentCommands,
    CleanupCommands,
    ConfigCommands,
    ProviderCommands,
    RegistryCommands,
    SyncCommands,
)
from mcp_manager.config import Config, ConfigData, ConfigError
from mcp_manager.core.agents import AgentManager
from mcp_manager.core.manager import ProviderManager
from mcp_manager.core.registry_cache import RegistryCache
from mcp_manager.output import MessageType, VerbosityLevel, get_output, message
from mcp_manager.storage import Database, InstallationStore, ProviderCatalog, RegistryCacheStore

# Grouped command help text
COMMAND_GROUPS = """
catalog commands:
  providers           Install, inspect and configure providers
  registry            Browse and refresh provider registries

agent commands:
  agents              Show agents and manage their providers
  sync                Reconcile agent config files with the catalog

maintenance commands:
  cleanup             Remove duplicates and orphans, re-sync an agent

configuration file commands:
  config              Manage the configuration file
"""


class GroupedHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Custom formatter that hides the subparser choices from positional arguments."""

    def _metavar_formatter(self, action, default_metavar):
        if action.choices is not None:
            result = action.metavar if action.metavar is not None else ""

            def format_fn(tuple_size):
                if isinstance(result, tuple):
                    return result
                return (result,) * tuple_size

            return format_fn
        return super()._metavar_formatter(action, default_metavar)

    def _format_action(self, action):
        # Subparser actions are listed in the epilog
        if isinstance(action, argparse._SubParsersAction):
            return ""
        return super()._format_action(action)


def create_manager(
    config: Config,
    config_data: ConfigData,
    home: Path | None = None,
    cwd: Path | None = None,
) -> ProviderManager:
    """Wire the stores, registries and agents described by *config_data*.

    Args:
        config: Config instance the data was read from
        config_data: Validated configuration with defaults filled in
        home: Home directory agents are looked up in (defaults to the user's)
        cwd: Working directory for project-scoped agent settings

    Returns:
        A ready-to-use ProviderManager
    """
    db = Database(config.database_path(config_data))

    cache_settings = config_data.get("cache", {})
    registry_cache = RegistryCache(
        config.build_registries(config_data),
        RegistryCacheStore(db),
        max_age=timedelta(minutes=cache_settings.get("max_age_minutes", 60)),
    )

    agent_manager = AgentManager(
        disabled=config_data.get("agents", {}).get("disabled") or [],
        home=home,
        cwd=cwd,
    )

    sync_settings = config_data.get("sync", {})
    return ProviderManager(
        ProviderCatalog(db),
        InstallationStore(db),
        agent_manager,
        registry_cache,
        strict_identity=sync_settings.get("strict_identity", False),
        workers=sync_settings.get("workers", 1),
    )


def main() -> None:
    """Main entry point for the mcp-manager CLI."""
    parser = argparse.ArgumentParser(
        description="Keep MCP providers in sync across your AI agents",
        formatter_class=GroupedHelpFormatter,
        epilog=COMMAND_GROUPS,
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase verbosity (-v, -vv, -vvv)",
    )
    parser.add_argument(
        "--no-color", action="store_true",
        help="Disable colored output",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    # Register all command parsers
    ProviderCommands.add_cli_arguments(subparsers)   # providers
    AgentCommands.add_cli_arguments(subparsers)      # agents
    SyncCommands.add_cli_arguments(subparsers)       # sync
    CleanupCommands.add_cli_arguments(subparsers)    # cleanup
    RegistryCommands.add_cli_arguments(subparsers)   # registry
    ConfigCommands.add_cli_arguments(subparsers)     # config

    args = parser.parse_args()

    # Configure output system
    output_mgr = get_output()
    output_mgr.verbosity = args.verbose
    output_mgr.use_color = not args.no_color and sys.stdout.isatty()

    message(
        f"Verbosity level: {args.verbose}",
        MessageType.DEBUG,
        VerbosityLevel.DEBUG,
    )
    message(
        f"Command: {args.command}",
        MessageType.DEBUG,
        VerbosityLevel.DEBUG,
    )

    # No command specified
    if args.command is None:
        parser.print_help()
        return

    config = Config()

    # Config file commands work without a valid configuration
    if args.command == "config":
        ConfigCommands.process_cli_command(args, config)
        return

    try:
        config.ensure_directories()
        config_data = config.read()
    except ConfigError as e:
        message(str(e), MessageType.ERROR, VerbosityLevel.ALWAYS)
        sys.exit(1)

    manager = create_manager(config, config_data)

    if args.command == "providers":
        ProviderCommands.process_cli_command(args, manager)
    elif args.command == "agents":
        AgentCommands.process_cli_command(args, manager)
    elif args.command == "sync":
        SyncCommands.process_cli_command(args, manager, config_data.get("sync"))
    elif args.command == "cleanup":
        CleanupCommands.process_cli_command(args, manager)
    elif args.command == "registry":
        RegistryCommands.process_cli_command(args, manager.registry_cache)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
