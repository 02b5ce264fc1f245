"""Query and command operations over providers, agents and installations."""

from __future__ import annotations

from mcp_manager.core import cleanup
from mcp_manager.core.agents import AgentManager
from mcp_manager.core.errors import McpManagerError, NotFoundError
from mcp_manager.core.models import Agent, CommandResult, Installation, Provider
from mcp_manager.core.reconciler import Reconciler, SyncSummary
from mcp_manager.core.registry_cache import RegistryCache
from mcp_manager.core.resolver import ConfigurationResolver, validate_configuration
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.storage.catalog import ProviderCatalog
from mcp_manager.storage.installations import InstallationStore


class ProviderManager:
    """Facade used by the CLI.

    Queries return records or None.  Commands return a
    :class:`CommandResult` and report failures in its ``errors`` instead
    of raising, so callers can show partial success.
    """

    def __init__(
        self,
        catalog: ProviderCatalog,
        installations: InstallationStore,
        agent_manager: AgentManager,
        registry_cache: RegistryCache | None = None,
        strict_identity: bool = False,
        workers: int = 1,
    ):
        self.catalog = catalog
        self.installations = installations
        self.agent_manager = agent_manager
        self.registry_cache = registry_cache
        self.resolver = ConfigurationResolver(installations)
        self.reconciler = Reconciler(
            agent_manager,
            catalog,
            installations,
            registry_cache,
            strict_identity=strict_identity,
            workers=workers,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_providers(self) -> list[Provider]:
        return self.catalog.list()

    def get_provider(self, provider_id: str) -> Provider | None:
        return self.catalog.get(provider_id)

    def list_agents(self, include_missing: bool = False) -> list[Agent]:
        return self.agent_manager.detect_agents(include_missing)

    def get_agent(self, agent_id: str) -> Agent | None:
        return self.agent_manager.get_agent(agent_id)

    def list_installations(self, provider_id: str | None = None, agent_id: str | None = None) -> list[Installation]:
        if provider_id is not None and agent_id is not None:
            installation = self.installations.get_pair(provider_id, agent_id)
            return [installation] if installation else []
        if provider_id is not None:
            return self.installations.list_by_provider(provider_id)
        if agent_id is not None:
            return self.installations.list_by_agent(agent_id)
        return self.installations.list_all()

    def effective_config(self, provider_id: str, agent_id: str) -> dict[str, str]:
        """Return the configuration *agent_id* uses for *provider_id*.

        Raises:
            NotFoundError: If the provider does not exist
        """
        provider = self.catalog.get(provider_id)
        if provider is None:
            raise NotFoundError("Provider", provider_id)
        return self.resolver.effective_config(provider, self.installations.get_pair(provider_id, agent_id))

    # ------------------------------------------------------------------
    # Provider commands
    # ------------------------------------------------------------------
    def install_provider(self, provider: Provider) -> CommandResult:
        """Add *provider* to the catalog; an existing id is left untouched."""
        result = CommandResult()
        errors = validate_configuration(provider.global_config)
        if not provider.id:
            errors.insert(0, "Provider id is empty")
        if errors:
            result.errors.extend(errors)
            return result

        try:
            stored, inserted = self.catalog.insert_or_get(provider)
        except McpManagerError as e:
            result.errors.append(str(e))
            return result

        result.items.append(stored.id)
        if inserted:
            result.changed = 1
        else:
            message(f"Provider '{provider.id}' is already installed", MessageType.INFO, VerbosityLevel.VERBOSE)
        return result

    def install_from_registry(self, provider_id: str, registry_name: str | None = None) -> CommandResult:
        """Install a provider using a registry's record for *provider_id*."""
        if self.registry_cache is None:
            return CommandResult(errors=["No registries configured"])
        try:
            provider = self.registry_cache.get_details(provider_id, registry_name)
        except (McpManagerError, KeyError) as e:
            return CommandResult(errors=[str(e)])
        if provider is None:
            return CommandResult(errors=[str(NotFoundError("Provider", provider_id))])
        return self.install_provider(provider)

    def uninstall_provider(self, provider_id: str, remove_from_agents: bool = False) -> CommandResult:
        """Remove a provider and every installation that references it.

        Args:
            provider_id: Provider to remove
            remove_from_agents: Also delete its entries from agent files
        """
        result = CommandResult()
        if not self.catalog.exists(provider_id):
            result.errors.append(str(NotFoundError("Provider", provider_id)))
            return result

        if remove_from_agents:
            for installation in self.installations.list_by_provider(provider_id):
                connector = self.agent_manager.get_connector(installation.agent_id)
                if connector is None:
                    continue
                try:
                    if connector.remove_provider(provider_id):
                        result.changed += 1
                except McpManagerError as e:
                    result.errors.append(f"{installation.agent_id}: {e}")

        try:
            if self.catalog.remove(provider_id):
                result.changed += 1
                result.items.append(provider_id)
        except McpManagerError as e:
            result.errors.append(str(e))
        return result

    def update_global_config(self, provider_id: str, config: dict[str, str]) -> CommandResult:
        """Replace a provider's global configuration and propagate it.

        Installations tracking the old configuration move to the new one;
        customized ones are left alone.  ``items`` lists the updated
        installation ids.
        """
        result = CommandResult()
        errors = validate_configuration(config)
        if errors:
            result.errors.extend(errors)
            return result

        provider = self.catalog.get(provider_id)
        if provider is None:
            result.errors.append(str(NotFoundError("Provider", provider_id)))
            return result

        old_global = dict(provider.global_config)
        provider.global_config = dict(config)
        try:
            self.catalog.update(provider)
        except McpManagerError as e:
            result.errors.append(str(e))
            return result
        result.changed = 1

        updated = self.resolver.propagate_global_update(provider_id, old_global, dict(config), result.errors)
        result.changed += len(updated)
        result.items.extend(updated)
        return result

    # ------------------------------------------------------------------
    # Provider-for-agent commands
    # ------------------------------------------------------------------
    def add_to_agent(self, provider_id: str, agent_id: str, config: dict[str, str] | None = None) -> CommandResult:
        """Declare *provider_id* in the agent's file and record the installation.

        Args:
            provider_id: Catalog provider
            agent_id: Target agent
            config: Agent-specific override; None inherits the global config
        """
        result = CommandResult()
        if config is not None:
            errors = validate_configuration(config)
            if errors:
                result.errors.extend(errors)
                return result

        provider = self.catalog.get(provider_id)
        if provider is None:
            result.errors.append(str(NotFoundError("Provider", provider_id)))
            return result
        connector = self.agent_manager.get_connector(agent_id)
        if connector is None:
            result.errors.append(str(NotFoundError("Agent", agent_id)))
            return result

        override = dict(config) if config else {}
        try:
            existing = self.installations.get_pair(provider_id, agent_id)
            effective = override or (
                self.resolver.effective_config(provider, existing) if existing else dict(provider.global_config)
            )
            connector.add_provider(provider_id, effective)
            result.changed += 1

            installation, created = self.installations.ensure(provider_id, agent_id, config=override)
            if created:
                result.changed += 1
            elif config is not None and installation.agent_specific_config != override:
                self.installations.update_config(installation.id, override)
                result.changed += 1
            result.items.append(installation.id)
        except McpManagerError as e:
            result.errors.append(str(e))
        return result

    def remove_from_agent(self, provider_id: str, agent_id: str) -> CommandResult:
        """Remove the provider from the agent's file and drop the installation."""
        result = CommandResult()
        connector = self.agent_manager.get_connector(agent_id)
        if connector is None:
            result.errors.append(str(NotFoundError("Agent", agent_id)))
            return result

        try:
            if connector.remove_provider(provider_id):
                result.changed += 1
            if self.installations.remove_pair(provider_id, agent_id):
                result.changed += 1
        except McpManagerError as e:
            result.errors.append(str(e))
            return result

        if not result.changed:
            result.errors.append(str(NotFoundError("Installation", f"{provider_id}->{agent_id}")))
        return result

    def set_enabled(self, provider_id: str, agent_id: str, enabled: bool) -> CommandResult:
        """Enable or disable a provider for an agent, in its file and in the store."""
        result = CommandResult()
        connector = self.agent_manager.get_connector(agent_id)
        if connector is None:
            result.errors.append(str(NotFoundError("Agent", agent_id)))
            return result

        installation = self.installations.get_pair(provider_id, agent_id)
        if installation is None:
            result.errors.append(str(NotFoundError("Installation", f"{provider_id}->{agent_id}")))
            return result

        try:
            # The store only follows a flag the agent file actually carries
            if not connector.set_enabled(provider_id, enabled):
                result.errors.append(f"'{provider_id}' is not declared in {connector.display_name}'s config")
                return result
            if installation.is_enabled != enabled:
                self.installations.set_enabled(installation.id, enabled)
                result.changed += 1
        except McpManagerError as e:
            result.errors.append(str(e))
        result.items.append(installation.id)
        return result

    def update_agent_config(self, provider_id: str, agent_id: str, config: dict[str, str]) -> CommandResult:
        """Replace the agent-specific override; an empty map inherits again."""
        result = CommandResult()
        errors = validate_configuration(config)
        if errors:
            result.errors.extend(errors)
            return result

        installation = self.installations.get_pair(provider_id, agent_id)
        if installation is None:
            result.errors.append(str(NotFoundError("Installation", f"{provider_id}->{agent_id}")))
            return result

        try:
            if self.installations.update_config(installation.id, config):
                result.changed = 1
                result.items.append(installation.id)
        except McpManagerError as e:
            result.errors.append(str(e))
        return result

    # ------------------------------------------------------------------
    # Sync and cleanup
    # ------------------------------------------------------------------
    def sync(self, agent_id: str | None = None) -> CommandResult:
        """Run reconciliation now, for one agent or all of them."""
        try:
            summary = self.reconciler.sync_agent(agent_id) if agent_id else self.reconciler.run()
        except NotFoundError as e:
            return CommandResult(errors=[str(e)])
        return summary_result(summary)

    def scan_duplicates(self) -> list[list[Provider]]:
        return cleanup.find_duplicates(self.catalog)

    def remove_duplicates(self) -> CommandResult:
        return cleanup.remove_duplicates(self.catalog, self.installations)

    def remove_orphans(self) -> CommandResult:
        return cleanup.remove_orphans(self.installations)

    def force_resync(self, agent_id: str) -> CommandResult:
        try:
            return cleanup.force_resync(self.reconciler, agent_id)
        except NotFoundError as e:
            return CommandResult(errors=[str(e)])


def summary_result(summary: SyncSummary) -> CommandResult:
    """Express a sync summary as a command result."""
    return CommandResult(
        changed=summary.changed,
        errors=list(summary.errors),
        items=list(summary.providers_created),
    )
