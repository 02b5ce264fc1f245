"""CLI commands for browsing and refreshing provider registries."""

import argparse
import sys

from mcp_manager.core.errors import SourceUnavailableError
from mcp_manager.core.models import RegistryMetadata
from mcp_manager.core.registry_cache import RegistryCache
from mcp_manager.output import MessageType, VerbosityLevel, message


class RegistryCommands:
    """Manages CLI commands for registries."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Add registry commands to the argument parser.

        Args:
            subparsers: The argparse subparsers to add to
        """
        registry_parser = subparsers.add_parser("registry", help="Browse provider registries")
        registry_sub = registry_parser.add_subparsers(dest="registry_command", help="Registry commands")

        # registry list
        registry_sub.add_parser("list", help="List configured registries and their cache state")

        # registry search
        search_parser = registry_sub.add_parser("search", help="Search registries for providers")
        search_parser.add_argument("query", help="Text to look for in names, descriptions and tags")
        search_parser.add_argument("--registry", help="Only search this registry")
        search_parser.add_argument("--limit", type=int, default=20, help="Maximum results (default: 20)")

        # registry refresh
        refresh_parser = registry_sub.add_parser("refresh", help="Fetch registries now, ignoring the cache age")
        refresh_parser.add_argument("name", nargs="?", help="Registry name (default: all)")

    @classmethod
    def process_cli_command(cls, args: argparse.Namespace, registry_cache: RegistryCache) -> None:
        """Process registry commands.

        Args:
            args: Parsed command-line arguments
            registry_cache: Cache in front of the configured registries
        """
        cmd = getattr(args, "registry_command", None)
        if cmd is None:
            message("No registry subcommand specified", MessageType.ERROR, VerbosityLevel.ALWAYS)
            message("Available commands: list, search, refresh", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            sys.exit(1)

        if cmd == "list":
            cls.list_registries(registry_cache)
        elif cmd == "search":
            cls.search(registry_cache, args.query, args.registry, args.limit)
        elif cmd == "refresh":
            cls.refresh(registry_cache, args.name)

    @staticmethod
    def list_registries(registry_cache: RegistryCache) -> None:
        """List registries with the outcome of their last refresh."""
        message("\n=== Registries ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)

        if not registry_cache.registries:
            message("No registries configured.", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        for metadata in registry_cache.list_registries():
            registry = registry_cache.get_registry(metadata.registry_name)
            message(f"  {metadata.registry_name} ({registry.REGISTRY_TYPE})", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            if registry.url:
                message(f"    URL: {registry.get_display_url()}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            _show_metadata(metadata, stale=registry_cache.is_stale(metadata.registry_name))

        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @staticmethod
    def search(registry_cache: RegistryCache, query: str, registry_name: str | None = None, limit: int = 20) -> None:
        """Print providers matching *query*, best match first."""
        try:
            results = registry_cache.search(query, limit=limit, registry_name=registry_name)
        except KeyError:
            message(f"Registry '{registry_name}' is not configured", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)
        except SourceUnavailableError as e:
            message(f"Error: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)

        if not results:
            message(f"No providers match '{query}'", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            return

        message(f"\n=== Results for '{query}' ===\n", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        for summary in results:
            provider = summary.provider
            label = provider.id if provider.name == provider.id else f"{provider.id} ({provider.name})"
            message(f"  {label}  [{summary.registry_name}]", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            if provider.description:
                message(f"    {provider.description}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
            message(f"    score: {summary.score:.2f}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        message("", MessageType.NORMAL, VerbosityLevel.ALWAYS)

    @staticmethod
    def refresh(registry_cache: RegistryCache, name: str | None = None) -> None:
        """Force a refresh of one or every registry."""
        if name is not None:
            try:
                results = [registry_cache.refresh(name)]
            except KeyError:
                message(f"Registry '{name}' is not configured", MessageType.ERROR, VerbosityLevel.ALWAYS)
                sys.exit(1)
        else:
            results = registry_cache.refresh_all()

        failed = False
        for metadata in results:
            if metadata.last_refresh_successful:
                message(
                    f"Refreshed '{metadata.registry_name}': {metadata.cached_count} provider(s)",
                    MessageType.SUCCESS,
                    VerbosityLevel.ALWAYS,
                )
            else:
                failed = True
                message(
                    f"Failed to refresh '{metadata.registry_name}': {metadata.last_refresh_error}",
                    MessageType.ERROR,
                    VerbosityLevel.ALWAYS,
                )

        if failed:
            sys.exit(1)


def _show_metadata(metadata: RegistryMetadata, stale: bool) -> None:
    if metadata.last_refresh_at is None:
        message("    Never refreshed", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        return

    status = "ok" if metadata.last_refresh_successful else f"failed ({metadata.last_refresh_error})"
    msg_type = MessageType.NORMAL if metadata.last_refresh_successful else MessageType.WARNING
    message(
        f"    Last refresh: {metadata.last_refresh_at:%Y-%m-%d %H:%M} {status}",
        msg_type,
        VerbosityLevel.ALWAYS,
    )
    freshness = "stale" if stale else "fresh"
    message(f"    Cached: {metadata.cached_count} provider(s), {freshness}", MessageType.NORMAL, VerbosityLevel.ALWAYS)
