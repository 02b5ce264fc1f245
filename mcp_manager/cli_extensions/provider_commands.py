"""CLI commands for managing providers in the catalog."""

import argparse
import sys

from mcp_manager.cli_extensions.common import format_config, parse_assignments, report_result
from mcp_manager.core.manager import ProviderManager
from mcp_manager.core.models import Provider
from mcp_manager.output import MessageType, VerbosityLevel, message


class ProviderCommands:
    """Manages CLI commands for catalog providers."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Add provider-related CLI arguments.

        Args:
            subparsers: The argparse subparsers to add to
        """
        providers_parser = subparsers.add_parser("providers", help="Manage installed providers")
        providers_sub = providers_parser.add_subparsers(dest="providers_command", help="Provider commands")

        # providers list
        providers_sub.add_parser("list", help="List installed providers")

        # providers show
        show_parser = providers_sub.add_parser("show", help="Show a provider and where it is installed")
        show_parser.add_argument("provider_id", help="Provider id")

        # providers install
        install_parser = providers_sub.add_parser(
            "install",
            help="Install a provider from a registry, or define one locally",
            description="Install a provider into the catalog. By default the provider is looked "
            "up in the configured registries; use --local to define it by hand.",
        )
        install_parser.add_argument("provider_id", help="Provider id")
        install_parser.add_argument("--registry", help="Only look in this registry")
        install_parser.add_argument("--local", action="store_true", help="Define the provider without a registry")
        install_parser.add_argument("--name", help="Display name (with --local)")
        install_parser.add_argument("--description", default="", help="Description (with --local)")
        install_parser.add_argument("--source-url", default="", help="Source repository URL (with --local)")
        install_parser.add_argument("--command", dest="invocation", default="", help="Invocation command (with --local)")
        install_parser.add_argument(
            "--set", nargs="+", metavar="KEY=VALUE", dest="assignments",
            help="Global configuration (with --local)",
        )

        # providers uninstall
        uninstall_parser = providers_sub.add_parser(
            "uninstall", help="Remove a provider and its installations",
        )
        uninstall_parser.add_argument("provider_id", help="Provider id")
        uninstall_parser.add_argument(
            "--remove-from-agents", action="store_true",
            help="Also delete the provider from agent config files",
        )

        # providers set-config
        set_config_parser = providers_sub.add_parser(
            "set-config",
            help="Replace a provider's global configuration",
            description="Replace the global configuration. Installations whose override still "
            "matches the old global configuration follow the new one.",
        )
        set_config_parser.add_argument("provider_id", help="Provider id")
        set_config_parser.add_argument("assignments", nargs="*", metavar="KEY=VALUE", help="Configuration entries")

    @classmethod
    def process_cli_command(cls, args: argparse.Namespace, manager: ProviderManager) -> None:
        """Process provider CLI commands.

        Args:
            args: Parsed command-line arguments
            manager: Command layer to operate on
        """
        cmd = getattr(args, "providers_command", None)
        if cmd is None:
            message("No providers subcommand specified", MessageType.ERROR, VerbosityLevel.ALWAYS)
            message(
                "Available commands: list, show, install, uninstall, set-config",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )
            sys.exit(1)

        if cmd == "list":
            cls.list_providers(manager)
        elif cmd == "show":
            cls.show_provider(manager, args.provider_id)
        elif cmd == "install":
            cls.install(manager, args)
        elif cmd == "uninstall":
            result = manager.uninstall_provider(args.provider_id, remove_from_agents=args.remove_from_agents)
            report_result(result, f"Uninstalled provider '{args.provider_id}'")
        elif cmd == "set-config":
            result = manager.update_global_config(args.provider_id, parse_assignments(args.assignments))
            updated = len(result.items)
            report_result(
                result,
                f"Updated global configuration of '{args.provider_id}' ({updated} installation(s) followed)",
            )

    @staticmethod
    def list_providers(manager: ProviderManager) -> None:
        """List every provider in the catalog."""
        providers = manager.list_providers()
        message("\n=== Installed Providers ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        if not providers:
            message("No providers installed.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message(
                "\nUse 'mcp-manager providers install <id>' or 'mcp-manager sync'",
                MessageType.NORMAL,
                VerbosityLevel.ALWAYS,
            )
            message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        for provider in providers:
            agents = [i.agent_id for i in manager.list_installations(provider_id=provider.id)]
            label = provider.id if provider.name == provider.id else f"{provider.id} ({provider.name})"
            message(f"  {label}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            if provider.description:
                message(f"    {provider.description}", MessageType.NORMAL, VerbosityLevel.VERBOSE)
            if agents:
                message(f"    agents: {', '.join(agents)}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        message(f"\nTotal: {len(providers)} provider(s)", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @staticmethod
    def show_provider(manager: ProviderManager, provider_id: str) -> None:
        """Show a provider's metadata and installations."""
        provider = manager.get_provider(provider_id)
        if provider is None:
            message(f"Provider '{provider_id}' not found", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

        message(f"\n=== {provider.name} ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        fields = [
            ("Id", provider.id),
            ("Description", provider.description),
            ("Version", provider.version),
            ("Author", provider.author),
            ("Source", provider.source_url),
            ("Command", provider.invocation_spec),
            ("Tags", ", ".join(provider.tags)),
            ("Installed", provider.installed_at.isoformat() if provider.installed_at else ""),
            ("Global config", format_config(provider.global_config)),
        ]
        for label, value in fields:
            if value:
                message(f"  {label + ':':<15}{value}", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        installations = manager.list_installations(provider_id=provider.id)
        message("\nInstallations:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        if not installations:
            message("  (none)", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for installation in installations:
            state = "enabled" if installation.is_enabled else "disabled"
            override = installation.agent_specific_config
            config = format_config(override) if override else "(inherits global)"
            message(f"  {installation.agent_id} [{state}] {config}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @staticmethod
    def install(manager: ProviderManager, args: argparse.Namespace) -> None:
        """Install from a registry, or from the command line with --local."""
        if args.local:
            provider = Provider(
                id=args.provider_id,
                name=args.name or args.provider_id,
                description=args.description,
                source_url=args.source_url,
                invocation_spec=args.invocation,
                global_config=parse_assignments(args.assignments),
            )
            result = manager.install_provider(provider)
        else:
            result = manager.install_from_registry(args.provider_id, args.registry)

        report_result(
            result,
            f"Installed provider '{args.provider_id}'",
            unchanged=f"Provider '{args.provider_id}' is already installed",
        )
