"""CLI commands for catalog consistency repairs."""

import argparse
import sys

from mcp_manager.cli_extensions.common import report_result
from mcp_manager.core.manager import ProviderManager
from mcp_manager.output import MessageType, VerbosityLevel, message


class CleanupCommands:
    """Manages CLI commands for duplicate, orphan and re-sync repairs."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Add cleanup commands to the argument parser.

        Args:
            subparsers: The argparse subparsers to add to
        """
        cleanup_parser = subparsers.add_parser("cleanup", help="Repair catalog inconsistencies")
        cleanup_sub = cleanup_parser.add_subparsers(dest="cleanup_command", help="Cleanup commands")

        # cleanup duplicates
        duplicates_parser = cleanup_sub.add_parser(
            "duplicates",
            help="Find providers that share a name",
            description="List providers whose names match ignoring case. With --remove, keep one "
            "per group (preferring a provider some agent uses) and uninstall the rest.",
        )
        duplicates_parser.add_argument("--remove", action="store_true", help="Remove the duplicates")

        # cleanup orphans
        cleanup_sub.add_parser("orphans", help="Remove installations of providers no longer in the catalog")

        # cleanup resync
        resync_parser = cleanup_sub.add_parser(
            "resync", help="Track providers an agent declares but the catalog does not link to it",
        )
        resync_parser.add_argument("--agent", dest="agent_id", required=True, help="Agent id")

    @classmethod
    def process_cli_command(cls, args: argparse.Namespace, manager: ProviderManager) -> None:
        """Process cleanup commands.

        Args:
            args: Parsed command-line arguments
            manager: Command layer to operate on
        """
        cmd = getattr(args, "cleanup_command", None)
        if cmd is None:
            message("No cleanup subcommand specified", MessageType.ERROR, VerbosityLevel.ALWAYS)
            message("Available commands: duplicates, orphans, resync", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            sys.exit(1)

        if cmd == "duplicates":
            cls.duplicates(manager, remove=args.remove)
        elif cmd == "orphans":
            result = manager.remove_orphans()
            report_result(
                result,
                f"Removed {result.changed} orphaned installation(s)",
                unchanged="No orphaned installations",
            )
        elif cmd == "resync":
            result = manager.force_resync(args.agent_id)
            report_result(
                result,
                f"Tracked {result.changed} provider(s) for {args.agent_id}: {', '.join(result.items)}",
                unchanged=f"Every provider of {args.agent_id} is already tracked",
            )

    @staticmethod
    def duplicates(manager: ProviderManager, remove: bool = False) -> None:
        """Show duplicate groups and optionally remove them."""
        groups = manager.scan_duplicates()
        if not groups:
            message("No duplicate providers found", MessageType.SUCCESS, VerbosityLevel.ALWAYS)
            return

        message(f"\n=== Duplicate Providers ({len(groups)} group(s)) ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for group in groups:
            message(f"  {group[0].name}:", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            for provider in group:
                agents = [i.agent_id for i in manager.list_installations(provider_id=provider.id)]
                used_by = f" used by {', '.join(agents)}" if agents else " unused"
                message(f"    {provider.id}{used_by}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        if not remove:
            message("Use 'mcp-manager cleanup duplicates --remove' to remove them", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        result = manager.remove_duplicates()
        report_result(result, f"Removed {result.changed} duplicate provider(s): {', '.join(result.items)}")
