"""Effective configuration and shared-default propagation."""

from __future__ import annotations

from typing import Any

from mcp_manager.core.errors import McpManagerError
from mcp_manager.core.models import Installation, Provider
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.storage.installations import InstallationStore


def validate_configuration(config: Any) -> list[str]:
    """Validate a configuration map.

    Args:
        config: Candidate map of string keys to string values

    Returns:
        List of error messages; empty when the map is valid
    """
    if config is None:
        return ["Configuration is missing"]
    if not isinstance(config, dict):
        return [f"Configuration must be a mapping, got {type(config).__name__}"]

    errors = []
    for key, value in config.items():
        if not isinstance(key, str) or not key.strip():
            errors.append(f"Configuration key {key!r} is empty")
            continue
        if value is None:
            errors.append(f"Configuration key '{key}' has no value")
        elif not isinstance(value, str):
            errors.append(f"Configuration key '{key}' must be a string, got {type(value).__name__}")
    return errors


class ConfigurationResolver:
    """Decides which configuration an installation uses.

    An installation with an empty override inherits the provider's global
    configuration.  An override equal to the global configuration is
    "tracking" and follows it when the global configuration changes; any
    other override is "diverged" and is never overwritten.
    """

    def __init__(self, installations: InstallationStore):
        self.installations = installations

    @staticmethod
    def effective_config(provider: Provider, installation: Installation | None = None) -> dict[str, str]:
        if installation is not None and installation.agent_specific_config:
            return dict(installation.agent_specific_config)
        return dict(provider.global_config)

    @staticmethod
    def matches_global(provider: Provider, installation: Installation) -> bool:
        return installation.agent_specific_config == provider.global_config

    def propagate_global_update(
        self,
        provider_id: str,
        old_global: dict[str, str],
        new_global: dict[str, str],
        errors: list[str] | None = None,
    ) -> list[str]:
        """Move tracking overrides of *provider_id* from *old_global* to *new_global*.

        A failure on one installation is appended to *errors* (when given)
        and does not stop the others.

        Returns:
            Ids of the installations that were updated
        """
        updated = []
        for installation in self.installations.list_by_provider(provider_id):
            if not installation.agent_specific_config:
                # Inherits the global configuration; nothing stored to move
                continue
            if installation.agent_specific_config != old_global:
                message(
                    f"Keeping customized configuration of {provider_id} for {installation.agent_id}",
                    MessageType.DEBUG,
                    VerbosityLevel.DEBUG,
                )
                continue

            try:
                if self.installations.update_config(installation.id, new_global):
                    updated.append(installation.id)
            except McpManagerError as e:
                message(
                    f"Failed to update configuration of {provider_id} for {installation.agent_id}: {e}",
                    MessageType.WARNING,
                    VerbosityLevel.ALWAYS,
                )
                if errors is not None:
                    errors.append(str(e))

        if updated:
            message(
                f"Propagated new configuration of {provider_id} to {len(updated)} installation(s)",
                MessageType.INFO,
                VerbosityLevel.VERBOSE,
            )
        return updated
