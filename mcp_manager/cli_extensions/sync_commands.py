"""CLI command for reconciling agent files with the catalog."""

import argparse
from datetime import timedelta

from mcp_manager.cli_extensions.common import report_result
from mcp_manager.core.manager import ProviderManager, summary_result
from mcp_manager.core.models import RegistryMetadata
from mcp_manager.core.reconciler import SyncSummary, SyncWorker
from mcp_manager.core.registry_cache import RegistryRefreshWorker
from mcp_manager.core.watcher import ConfigWatcher
from mcp_manager.output import MessageType, VerbosityLevel, message


class SyncCommands:
    """Manages the sync command."""

    @staticmethod
    def add_cli_arguments(subparsers) -> None:
        """Add the sync command to the argument parser.

        Args:
            subparsers: The argparse subparsers to add to
        """
        sync_parser = subparsers.add_parser(
            "sync",
            help="Reconcile agent config files with the catalog",
            description="Read every detected agent's config file, add unknown providers to the "
            "catalog and record which agents use them. Running it again changes nothing.",
        )
        sync_parser.add_argument("--agent", dest="agent_id", help="Only sync this agent")
        sync_parser.add_argument(
            "--watch", action="store_true",
            help="Keep running; sync periodically and whenever an agent config file changes",
        )

    @classmethod
    def process_cli_command(
        cls,
        args: argparse.Namespace,
        manager: ProviderManager,
        settings: dict | None = None,
    ) -> None:
        """Process the sync command.

        Args:
            args: Parsed command-line arguments
            manager: Command layer to operate on
            settings: The ``sync`` section of the configuration
        """
        if getattr(args, "watch", False):
            cls.watch(manager, settings or {})
            return

        agent_id = getattr(args, "agent_id", None)
        result = manager.sync(agent_id)
        target = agent_id or "all agents"
        created = ", ".join(result.items)
        report_result(
            result,
            f"Synced {target}: {result.changed} change(s)" + (f" (new: {created})" if created else ""),
            unchanged=f"Synced {target}: already up to date",
        )

    @staticmethod
    def watch(manager: ProviderManager, settings: dict) -> None:
        """Run the background workers until interrupted.

        Alongside the periodic sync, registries are refreshed in the
        background and an agent is re-synced as soon as one of its config
        files changes.
        """
        interval = timedelta(minutes=settings.get("interval_minutes", 5))
        initial_delay = timedelta(seconds=settings.get("initial_delay_seconds", 5))

        def on_summary(summary: SyncSummary) -> None:
            result = summary_result(summary)
            for error in result.errors:
                message(f"Error: {error}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            if result.changed:
                message(f"Sync: {result.changed} change(s)", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

        def on_refresh(results: list[RegistryMetadata]) -> None:
            for metadata in results:
                if not metadata.last_refresh_successful:
                    message(
                        f"Registry '{metadata.registry_name}' refresh failed: {metadata.last_refresh_error}",
                        MessageType.WARNING,
                        VerbosityLevel.ALWAYS,
                    )

        worker = SyncWorker(manager.reconciler, interval=interval, initial_delay=initial_delay, on_summary=on_summary)
        refresher = None
        if manager.registry_cache is not None and manager.registry_cache.registries:
            refresher = RegistryRefreshWorker(manager.registry_cache, on_refresh=on_refresh)
        watcher = ConfigWatcher(manager.reconciler, on_summary=on_summary)

        message(
            f"Watching agent configs every {interval.total_seconds() / 60:g} minute(s); press Ctrl-C to stop",
            MessageType.INFO,
            VerbosityLevel.ALWAYS,
        )
        worker.start()
        if refresher is not None:
            refresher.start()
        watcher.start()
        try:
            while not worker.wait(1.0):
                pass
        except KeyboardInterrupt:
            message("\nStopping...", MessageType.NORMAL, VerbosityLevel.ALWAYS)
        finally:
            watcher.stop()
            if refresher is not None:
                refresher.stop()
            worker.stop()
