"""CLI command extensions for mcp-manager."""

from .agent_commands import AgentCommands
from .cleanup_commands import CleanupCommands
from .config_commands import ConfigCommands
from .provider_commands import ProviderCommands
from .registry_commands import RegistryCommands
from .sync_commands import SyncCommands

__all__ = [
    "AgentCommands",
    "CleanupCommands",
    "ConfigCommands",
    "ProviderCommands",
    "RegistryCommands",
    "SyncCommands",
]
