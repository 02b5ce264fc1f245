"""Operator-triggered consistency repairs."""

from __future__ import annotations

from collections import defaultdict

from mcp_manager.core.errors import McpManagerError, NotFoundError
from mcp_manager.core.models import CommandResult, Provider
from mcp_manager.core.reconciler import Reconciler
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.storage.catalog import ProviderCatalog
from mcp_manager.storage.installations import InstallationStore


def find_duplicates(catalog: ProviderCatalog) -> list[list[Provider]]:
    """Group catalog providers sharing a name, ignoring case.

    Returns:
        Groups of two or more providers, each in insertion order
    """
    groups: dict[str, list[Provider]] = defaultdict(list)
    for provider in catalog.list():
        groups[provider.name.casefold()].append(provider)
    return [group for group in groups.values() if len(group) > 1]


def choose_survivor(group: list[Provider], installations: InstallationStore) -> Provider:
    """Pick the provider of a duplicate set to keep.

    Providers referenced by an installation are preferred; among several
    candidates the first by insertion order wins.
    """
    referenced = [p for p in group if installations.list_by_provider(p.id)]
    return referenced[0] if referenced else group[0]


def remove_duplicates(catalog: ProviderCatalog, installations: InstallationStore) -> CommandResult:
    """Keep one provider per duplicate set and uninstall the rest."""
    result = CommandResult()
    for group in find_duplicates(catalog):
        keep = choose_survivor(group, installations)
        for provider in group:
            if provider.id == keep.id:
                continue
            try:
                if catalog.remove(provider.id):
                    result.changed += 1
                    result.items.append(provider.id)
                    message(
                        f"Removed duplicate '{provider.id}' (kept '{keep.id}')",
                        MessageType.SUCCESS,
                        VerbosityLevel.VERBOSE,
                    )
            except McpManagerError as e:
                result.errors.append(f"{provider.id}: {e}")
    return result


def remove_orphans(installations: InstallationStore) -> CommandResult:
    """Remove installations whose provider is no longer in the catalog."""
    result = CommandResult()
    for installation in installations.list_orphans():
        try:
            if installations.remove(installation.id):
                result.changed += 1
                result.items.append(f"{installation.provider_id}->{installation.agent_id}")
        except McpManagerError as e:
            result.errors.append(f"{installation.id}: {e}")

    if result.changed:
        message(f"Removed {result.changed} orphaned installation(s)", MessageType.SUCCESS, VerbosityLevel.VERBOSE)
    return result


def force_resync(reconciler: Reconciler, agent_id: str) -> CommandResult:
    """Create installations for ids *agent_id* declares but the store lacks.

    Uses the reconciler's identity resolution for each untracked id only.

    Raises:
        NotFoundError: If the agent is unknown
    """
    agent = reconciler.agent_manager.get_agent(agent_id)
    if agent is None:
        raise NotFoundError("Agent", agent_id)

    tracked = {i.provider_id for i in reconciler.installations.list_by_agent(agent_id)}
    result = CommandResult()

    for declared_id in sorted(agent.declared_provider_ids - tracked):
        try:
            actual_id, _ = reconciler.resolve_provider_id(declared_id, agent)
            _, created = reconciler.installations.ensure(actual_id, agent_id)
        except McpManagerError as e:
            result.errors.append(f"{declared_id}: {e}")
            continue
        if created:
            result.changed += 1
            result.items.append(actual_id)

    return result
