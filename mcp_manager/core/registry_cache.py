"""Read-through, fail-open cache in front of the configured registries."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from mcp_manager.core.errors import SourceUnavailableError
from mcp_manager.core.models import Provider, ProviderSummary, RegistryMetadata, utc_now
from mcp_manager.core.worker import PeriodicWorker
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.plugins.registries.abstract_registry import AbstractRegistry, rank_summaries
from mcp_manager.storage.registry_cache import RegistryCacheStore

DEFAULT_MAX_AGE = timedelta(minutes=60)

# Minimum wait between refresh attempts after a failed one
DEFAULT_RETRY_AFTER = timedelta(minutes=1)


class RegistryCache:
    """Serves registry listings from the local store.

    For each registry, on every call:

    * fresh cache (last successful refresh younger than ``max_age``): the
      cache answers alone, even when the answer is empty;
    * stale cache: the registry is fetched and the cache replaced as a
      whole; if the fetch fails the stale cache answers and the failure
      is only recorded in the registry's metadata;
    * no cache at all and a failed fetch: :class:`SourceUnavailableError`.

    After a failed refresh no new attempt is made for ``retry_after``.
    Registries are consulted in the order they were given.
    """

    def __init__(
        self,
        registries: list[AbstractRegistry],
        store: RegistryCacheStore,
        max_age: timedelta = DEFAULT_MAX_AGE,
        retry_after: timedelta = DEFAULT_RETRY_AFTER,
        clock: Callable[[], datetime] = utc_now,
    ):
        names = [registry.name for registry in registries]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate registry names: {', '.join(sorted(duplicates))}")

        self.registries = list(registries)
        self.store = store
        self.max_age = max_age
        self.retry_after = retry_after
        self.clock = clock
        self._locks = {registry.name: threading.Lock() for registry in registries}

    def get_registry(self, name: str) -> AbstractRegistry | None:
        for registry in self.registries:
            if registry.name == name:
                return registry
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_all(self, registry_name: str | None = None) -> list[ProviderSummary]:
        """Return every cached provider, registry by registry."""
        results: list[ProviderSummary] = []
        for entries in self._each_registry(registry_name):
            results.extend(entries)
        return results

    def search(self, query: str, limit: int = 50, registry_name: str | None = None) -> list[ProviderSummary]:
        """Rank cached providers against *query* across registries."""
        return rank_summaries(self.list_all(registry_name), query, limit)

    def get_details(self, provider_id: str, registry_name: str | None = None) -> Provider | None:
        """Return the first registry's record for *provider_id*."""
        for entries in self._each_registry(registry_name):
            for summary in entries:
                if summary.id == provider_id:
                    return summary.provider
        return None

    def find(self, provider_id: str) -> ProviderSummary | None:
        """Resolve an agent-declared id against the registries.

        Registries are tried in configured order; within one registry an
        exact id match wins over a case-insensitive name match.  Registries
        that cannot answer are skipped.
        """
        wanted = provider_id.casefold()
        for registry in self.registries:
            try:
                entries = self._entries(registry)
            except SourceUnavailableError as e:
                message(f"Skipping registry lookup: {e}", MessageType.DEBUG, VerbosityLevel.DEBUG)
                continue

            for summary in entries:
                if summary.id == provider_id:
                    return summary
            for summary in entries:
                if summary.name.casefold() == wanted:
                    return summary
        return None

    def list_registries(self) -> list[RegistryMetadata]:
        """Return refresh metadata for every configured registry."""
        results = []
        for registry in self.registries:
            metadata = self.store.get_metadata(registry.name)
            results.append(metadata or RegistryMetadata(registry_name=registry.name))
        return results

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    def refresh(self, registry_name: str) -> RegistryMetadata:
        """Fetch *registry_name* now, regardless of staleness or backoff.

        Never raises for transport failures; the outcome is in the
        returned metadata.

        Raises:
            KeyError: If no registry has that name
        """
        registry = self.get_registry(registry_name)
        if registry is None:
            raise KeyError(registry_name)
        with self._locks[registry.name]:
            return self._refresh(registry)

    def refresh_all(self) -> list[RegistryMetadata]:
        return [self.refresh(registry.name) for registry in self.registries]

    def is_stale(self, registry_name: str) -> bool:
        return self.store.is_stale(registry_name, self.max_age, now=self.clock())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _each_registry(self, registry_name: str | None):
        """Yield the entries of each selected registry.

        Raises:
            KeyError: If *registry_name* is not configured
            SourceUnavailableError: If no selected registry could answer
        """
        if registry_name is not None:
            registry = self.get_registry(registry_name)
            if registry is None:
                raise KeyError(registry_name)
            selected = [registry]
        else:
            selected = self.registries

        failures: list[SourceUnavailableError] = []
        for registry in selected:
            try:
                entries = self._entries(registry)
            except SourceUnavailableError as e:
                message(str(e), MessageType.WARNING, VerbosityLevel.VERBOSE)
                failures.append(e)
                continue
            yield entries

        if failures and len(failures) == len(selected):
            raise failures[0]

    def _entries(self, registry: AbstractRegistry) -> list[ProviderSummary]:
        with self._locks[registry.name]:
            now = self.clock()
            if not self.store.is_stale(registry.name, self.max_age, now=now):
                return self.store.get_by_registry(registry.name)

            metadata = self.store.get_metadata(registry.name)
            if self._in_backoff(metadata, now):
                message(
                    f"Registry '{registry.name}' failed recently; not retrying yet",
                    MessageType.DEBUG,
                    VerbosityLevel.DEBUG,
                )
            else:
                metadata = self._refresh(registry)

            if metadata is not None and metadata.last_refresh_successful:
                return self.store.get_by_registry(registry.name)
            if self.store.has_cache(registry.name):
                message(
                    f"Serving stale cache for registry '{registry.name}'",
                    MessageType.DEBUG,
                    VerbosityLevel.DEBUG,
                )
                return self.store.get_by_registry(registry.name)

            reason = metadata.last_refresh_error if metadata and metadata.last_refresh_error else "no cached data"
            raise SourceUnavailableError(registry.name, reason)

    def _in_backoff(self, metadata: RegistryMetadata | None, now: datetime) -> bool:
        if metadata is None or metadata.last_refresh_successful or metadata.last_refresh_at is None:
            return False
        return now - metadata.last_refresh_at < self.retry_after

    def _refresh(self, registry: AbstractRegistry) -> RegistryMetadata:
        now = self.clock()
        message(f"Refreshing registry '{registry.name}'...", MessageType.INFO, VerbosityLevel.EXTRA_VERBOSE)
        try:
            summaries = registry.list_all()
            for summary in summaries:
                summary.registry_name = registry.name
        except SourceUnavailableError as e:
            return self._record_failure(registry, e.reason, now)
        except Exception as e:
            # Malformed listings are recorded like transport failures
            return self._record_failure(registry, f"{type(e).__name__}: {e}", now)

        count = self.store.replace(registry.name, summaries, fetched_at=now)
        message(
            f"Registry '{registry.name}': cached {count} provider(s)",
            MessageType.INFO,
            VerbosityLevel.VERBOSE,
        )
        return self.store.record_refresh(registry.name, success=True, when=now)

    def _record_failure(self, registry: AbstractRegistry, reason: str, now: datetime) -> RegistryMetadata:
        message(f"Refresh of '{registry.name}' failed: {reason}", MessageType.WARNING, VerbosityLevel.VERBOSE)
        return self.store.record_refresh(registry.name, success=False, error=reason, when=now)


class RegistryRefreshWorker(PeriodicWorker):
    """Refreshes every registry of a :class:`RegistryCache` in the background.

    Registries are refreshed one after another; a stop request is honoured
    between registries.  Failures end up in the registry metadata like any
    other refresh.
    """

    NAME = "mcp-manager-registry-refresh"
    DESCRIPTION = "registry refresh"

    def __init__(
        self,
        cache: RegistryCache,
        interval: timedelta | None = None,
        initial_delay: timedelta = timedelta(seconds=30),
        on_refresh: Callable[[list[RegistryMetadata]], None] | None = None,
    ):
        super().__init__(interval if interval is not None else cache.max_age, initial_delay)
        self.cache = cache
        self.on_refresh = on_refresh

    def run_once(self) -> None:
        results = []
        for registry in self.cache.registries:
            if self.stopping:
                break
            results.append(self.cache.refresh(registry.name))

        failed = [metadata.registry_name for metadata in results if not metadata.last_refresh_successful]
        message(
            f"Refreshed {len(results)} registry(ies)" + (f"; failed: {', '.join(failed)}" if failed else ""),
            MessageType.INFO,
            VerbosityLevel.VERBOSE,
        )
        if self.on_refresh is not None:
            self.on_refresh(results)
