"""Background synchronizer between agent files and the catalog."""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import timedelta

from mcp_manager.core.agents import AgentManager
from mcp_manager.core.errors import NotFoundError
from mcp_manager.core.models import AUTO_DISCOVERED_TAG, Agent, Provider, ProviderSummary
from mcp_manager.core.registry_cache import RegistryCache
from mcp_manager.core.worker import PeriodicWorker
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.storage.catalog import ProviderCatalog
from mcp_manager.storage.installations import InstallationStore


@dataclass
class SyncSummary:
    """Aggregated outcome of a reconciliation pass.

    Attributes:
        agents_processed: Agents whose files were read
        ids_seen: Declared provider ids examined
        providers_created: Ids of providers added to the catalog
        installations_created: Installation rows created
        errors: One message per failed agent or declared id
        cancelled: True if the pass stopped before every agent was done
    """

    agents_processed: int = 0
    ids_seen: int = 0
    providers_created: list[str] = field(default_factory=list)
    installations_created: int = 0
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def changed(self) -> int:
        return len(self.providers_created) + self.installations_created

    def merge(self, other: SyncSummary) -> None:
        self.agents_processed += other.agents_processed
        self.ids_seen += other.ids_seen
        self.providers_created.extend(other.providers_created)
        self.installations_created += other.installations_created
        self.errors.extend(other.errors)
        self.cancelled = self.cancelled or other.cancelled


class Reconciler:
    """Converges the catalog and installation store with what agents declare.

    For each detected agent, every declared provider id is resolved to a
    catalog id and linked to the agent.  Re-running over unchanged files
    changes nothing.  A failure on one declared id or one agent is
    recorded in the summary and processing moves on.
    """

    def __init__(
        self,
        agent_manager: AgentManager,
        catalog: ProviderCatalog,
        installations: InstallationStore,
        registry_cache: RegistryCache | None = None,
        strict_identity: bool = False,
        workers: int = 1,
    ):
        self.agent_manager = agent_manager
        self.catalog = catalog
        self.installations = installations
        self.registry_cache = registry_cache
        self.strict_identity = strict_identity
        self.workers = max(1, workers)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def run(self, stop_event: threading.Event | None = None) -> SyncSummary:
        """Reconcile every detected agent.

        *stop_event* is checked before each agent; an agent already being
        reconciled always finishes.
        """
        summary = SyncSummary()
        agents = self.agent_manager.detect_agents()
        if not agents:
            message("No agents detected for sync", MessageType.DEBUG, VerbosityLevel.DEBUG)
            return summary

        message(f"Syncing providers from {len(agents)} agent(s)", MessageType.INFO, VerbosityLevel.VERBOSE)

        def task(agent: Agent) -> SyncSummary:
            if stop_event is not None and stop_event.is_set():
                return SyncSummary(cancelled=True)
            return self._sync_isolated(agent)

        if self.workers == 1:
            for agent in agents:
                result = task(agent)
                summary.merge(result)
                if result.cancelled:
                    break
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="mcp-sync") as pool:
                for result in pool.map(task, agents):
                    summary.merge(result)

        level = VerbosityLevel.VERBOSE if summary.changed else VerbosityLevel.DEBUG
        message(
            f"Sync complete: {summary.ids_seen} provider id(s) checked, "
            f"{len(summary.providers_created)} new provider(s), "
            f"{summary.installations_created} new installation(s)",
            MessageType.INFO,
            level,
        )
        return summary

    def sync_agent(self, agent_id: str) -> SyncSummary:
        """Reconcile one agent now, with the same algorithm as :meth:`run`.

        Raises:
            NotFoundError: If no connector handles *agent_id*
        """
        agent = self.agent_manager.get_agent(agent_id)
        if agent is None:
            raise NotFoundError("Agent", agent_id)
        return self._sync_isolated(agent)

    # ------------------------------------------------------------------
    # Algorithm
    # ------------------------------------------------------------------
    def _sync_isolated(self, agent: Agent) -> SyncSummary:
        try:
            return self._sync(agent)
        except Exception as e:
            # One agent's failure never aborts the pass
            message(f"Failed to sync agent {agent.name}: {e}", MessageType.ERROR, VerbosityLevel.ALWAYS)
            return SyncSummary(agents_processed=1, errors=[f"{agent.id}: {e}"])

    def _sync(self, agent: Agent) -> SyncSummary:
        summary = SyncSummary(agents_processed=1)
        if not agent.declared_provider_ids:
            message(f"Agent {agent.name} declares no providers", MessageType.DEBUG, VerbosityLevel.DEBUG)
            return summary

        for declared_id in sorted(agent.declared_provider_ids):
            summary.ids_seen += 1
            try:
                actual_id, created = self.resolve_provider_id(declared_id, agent)
                if created:
                    summary.providers_created.append(actual_id)

                _, linked = self.installations.ensure(actual_id, agent.id)
                if linked:
                    summary.installations_created += 1
                    message(
                        f"Linked provider '{actual_id}' to agent {agent.name}",
                        MessageType.INFO,
                        VerbosityLevel.VERBOSE,
                    )
            except Exception as e:
                # Only this id is skipped; the agent's other ids still sync
                message(
                    f"Failed to sync '{declared_id}' from agent {agent.name}: {e}",
                    MessageType.WARNING,
                    VerbosityLevel.ALWAYS,
                )
                summary.errors.append(f"{agent.id}/{declared_id}: {e}")

        return summary

    def resolve_provider_id(self, declared_id: str, agent: Agent) -> tuple[str, bool]:
        """Map an agent-declared id to a catalog id, creating the provider if needed.

        Order of resolution: exact catalog id, catalog name (ignoring
        case), registry lookup, then a synthesized placeholder.  Providers
        created here are always keyed by the declared id.

        Returns:
            Tuple of (catalog id, whether this call created the provider)
        """
        if self.catalog.exists(declared_id):
            return declared_id, False

        by_name = self.catalog.find_by_name(declared_id)
        if by_name:
            message(
                f"Provider named '{declared_id}' already exists as '{by_name[0].id}'",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            return by_name[0].id, False

        found = self.registry_cache.find(declared_id) if self.registry_cache is not None else None
        if found is not None:
            existing = self._catalog_match(found)
            if existing is not None:
                message(
                    f"Provider '{found.name}' was created concurrently as '{existing.id}'",
                    MessageType.INFO,
                    VerbosityLevel.VERBOSE,
                )
                return existing.id, False

            provider = dataclasses.replace(
                found.provider,
                id=declared_id,
                global_config=dict(found.provider.global_config),
                installed_at=None,
            )
            if found.id != declared_id:
                message(
                    f"Registry '{found.registry_name}' knows '{declared_id}' as '{found.id}'; keeping '{declared_id}'",
                    MessageType.DEBUG,
                    VerbosityLevel.DEBUG,
                )
        else:
            provider = self._synthesize(declared_id, agent)

        stored, inserted = self.catalog.insert_or_get(provider)
        if inserted:
            message(
                f"Auto-installed provider '{declared_id}' from agent {agent.name}",
                MessageType.SUCCESS,
                VerbosityLevel.VERBOSE,
            )
        return stored.id, inserted

    def _catalog_match(self, found: ProviderSummary) -> Provider | None:
        """Re-check the catalog for a provider with the fetched entry's name."""
        for candidate in self.catalog.find_by_name(found.name):
            if self.strict_identity and _different_sources(candidate, found.provider):
                message(
                    f"'{candidate.id}' shares the name '{found.name}' but comes from "
                    f"{candidate.source_url}; treating as a different provider",
                    MessageType.DEBUG,
                    VerbosityLevel.DEBUG,
                )
                continue
            return candidate
        return None

    @staticmethod
    def _synthesize(declared_id: str, agent: Agent) -> Provider:
        return Provider(
            id=declared_id,
            name=declared_id,
            description=f"Auto-discovered from {agent.name}",
            version="unknown",
            author="Unknown",
            tags=[AUTO_DISCOVERED_TAG, agent.type.value],
        )


def _different_sources(a: Provider, b: Provider) -> bool:
    return bool(a.source_url and b.source_url and a.source_url != b.source_url)


class SyncWorker(PeriodicWorker):
    """Runs a :class:`Reconciler` periodically in a daemon thread.

    :meth:`stop` lets the agent being reconciled finish before the thread
    exits.
    """

    NAME = "mcp-manager-sync"
    DESCRIPTION = "provider sync"

    def __init__(
        self,
        reconciler: Reconciler,
        interval: timedelta = timedelta(minutes=5),
        initial_delay: timedelta = timedelta(seconds=5),
        on_summary: Callable[[SyncSummary], None] | None = None,
    ):
        super().__init__(interval, initial_delay)
        self.reconciler = reconciler
        self.on_summary = on_summary

    def run_once(self) -> None:
        summary = self.reconciler.run(stop_event=self._stop)
        if self.on_summary is not None:
            self.on_summary(summary)
