"""CLI commands for detected agents and the providers configured for them."""

import argparse
import sys

from mcp_manager.cli_extensions.common import format_config, parse_assignments, report_result
from mcp_manager.core.manager import ProviderManager
from mcp_manager.output import MessageType, VerbosityLevel, message


class AgentCommands:
    """Manages CLI commands for agents."""

    @classmethod
    def add_cli_arguments(cls, subparsers) -> None:
        """Add agent-related CLI arguments.

        Args:
            subparsers: The argparse subparsers to add to
        """
        agents_parser = subparsers.add_parser("agents", help="Manage agents and their providers")
        agents_subparsers = agents_parser.add_subparsers(dest="agents_command", help="Agent commands")

        # agents list
        list_parser = agents_subparsers.add_parser("list", help="List detected agents")
        list_parser.add_argument("--all", action="store_true", help="Include agents that are not installed")

        # agents show
        show_parser = agents_subparsers.add_parser("show", help="Show an agent and its providers")
        show_parser.add_argument("agent_id", help="Agent id (e.g., claudecode)")

        # agents add
        add_parser = agents_subparsers.add_parser("add", help="Add a provider to an agent's config")
        add_parser.add_argument("agent_id", help="Agent id")
        add_parser.add_argument("provider_id", help="Provider id")
        add_parser.add_argument(
            "--set", nargs="+", metavar="KEY=VALUE", dest="assignments",
            help="Agent-specific configuration (default: inherit the global configuration)",
        )

        # agents remove
        remove_parser = agents_subparsers.add_parser("remove", help="Remove a provider from an agent's config")
        remove_parser.add_argument("agent_id", help="Agent id")
        remove_parser.add_argument("provider_id", help="Provider id")

        # agents enable / disable
        for name, verb in (("enable", "Enable"), ("disable", "Disable")):
            toggle_parser = agents_subparsers.add_parser(name, help=f"{verb} a provider for an agent")
            toggle_parser.add_argument("agent_id", help="Agent id")
            toggle_parser.add_argument("provider_id", help="Provider id")

        # agents set-config
        set_config_parser = agents_subparsers.add_parser(
            "set-config",
            help="Replace an agent-specific configuration",
            description="Replace the agent-specific configuration. With no entries the "
            "installation inherits the global configuration again.",
        )
        set_config_parser.add_argument("agent_id", help="Agent id")
        set_config_parser.add_argument("provider_id", help="Provider id")
        set_config_parser.add_argument("assignments", nargs="*", metavar="KEY=VALUE", help="Configuration entries")

    @classmethod
    def process_cli_command(cls, args: argparse.Namespace, manager: ProviderManager) -> None:
        """Process agents-related CLI commands.

        Args:
            args: Parsed command-line arguments
            manager: Command layer to operate on
        """
        cmd = getattr(args, "agents_command", None)
        if cmd is None:
            message("No agents subcommand specified", MessageType.ERROR, VerbosityLevel.ALWAYS)
            message(
                "Available commands: list, show, add, remove, enable, disable, set-config",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )
            sys.exit(1)

        if cmd == "list":
            cls.list_agents(manager, include_missing=args.all)
        elif cmd == "show":
            cls.show_agent(manager, args.agent_id)
        elif cmd == "add":
            config = parse_assignments(args.assignments) if args.assignments else None
            result = manager.add_to_agent(args.provider_id, args.agent_id, config)
            report_result(result, f"Added '{args.provider_id}' to {args.agent_id}")
        elif cmd == "remove":
            result = manager.remove_from_agent(args.provider_id, args.agent_id)
            report_result(result, f"Removed '{args.provider_id}' from {args.agent_id}")
        elif cmd in ("enable", "disable"):
            enabled = cmd == "enable"
            result = manager.set_enabled(args.provider_id, args.agent_id, enabled)
            report_result(
                result,
                f"{cmd.capitalize()}d '{args.provider_id}' for {args.agent_id}",
                unchanged=f"'{args.provider_id}' is already {cmd}d for {args.agent_id}",
            )
        elif cmd == "set-config":
            result = manager.update_agent_config(args.provider_id, args.agent_id, parse_assignments(args.assignments))
            report_result(
                result,
                f"Updated configuration of '{args.provider_id}' for {args.agent_id}",
                unchanged="Configuration unchanged",
            )

    @classmethod
    def list_agents(cls, manager: ProviderManager, include_missing: bool = False) -> None:
        """List detected agents."""
        message("\n=== Agents ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        agents = manager.list_agents(include_missing=include_missing)
        if not agents:
            message("No agents detected.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("Use 'mcp-manager agents list --all' to see supported agents", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        for agent in agents:
            status = "" if agent.is_detected else " (not installed)"
            count = len(agent.declared_provider_ids)
            message(
                f"  {agent.id:<15} {agent.name}{status} - {count} provider(s)",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )
            message(f"    config: {agent.config_path}", MessageType.NORMAL, VerbosityLevel.VERBOSE)

        message(f"\nTotal: {len(agents)} agent(s)", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @classmethod
    def show_agent(cls, manager: ProviderManager, agent_id: str) -> None:
        """Show an agent with its declared and tracked providers."""
        agent = manager.get_agent(agent_id)
        if agent is None:
            message(f"Agent '{agent_id}' not found", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

        message(f"\n=== {agent.name} ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Id:        {agent.id}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Config:    {agent.config_path}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message(f"  Installed: {'yes' if agent.is_detected else 'no'}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        installations = {i.provider_id: i for i in manager.list_installations(agent_id=agent.id)}
        provider_ids = sorted(agent.declared_provider_ids | set(installations))

        message("\nProviders:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if not provider_ids:
            message("  (none)", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        for provider_id in provider_ids:
            installation = installations.get(provider_id)
            if installation is None:
                message(f"  {provider_id} (not synced)", MessageType.WARNING, VerbosityLevel.ALWAYS)
                continue
            state = "enabled" if installation.is_enabled else "disabled"
            notes = "" if provider_id in agent.declared_provider_ids else " (missing from config file)"
            message(f"  {provider_id} [{state}]{notes}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            if manager.get_provider(provider_id) is not None:
                effective = manager.effective_config(provider_id, agent.id)
                message(f"    config: {format_config(effective)}", MessageType.NORMAL, VerbosityLevel.VERBOSE)

        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
