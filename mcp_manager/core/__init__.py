"""Core records, errors and services for mcp-manager.

Services live in their own modules (``agents``, ``registry_cache``,
``resolver``, ``reconciler``, ``worker``, ``watcher``, ``cleanup``,
``manager``) and are imported from there.
"""

from .errors import (
    ConflictError,
    MalformedInputError,
    McpManagerError,
    NotFoundError,
    SourceUnavailableError,
    WriteFailureError,
)
from .models import (
    AUTO_DISCOVERED_TAG,
    Agent,
    AgentType,
    CommandResult,
    Installation,
    Provider,
    ProviderSummary,
    RegistryMetadata,
)

__all__ = [
    "AUTO_DISCOVERED_TAG",
    "Agent",
    "AgentType",
    "CommandResult",
    "ConflictError",
    "Installation",
    "MalformedInputError",
    "McpManagerError",
    "NotFoundError",
    "Provider",
    "ProviderSummary",
    "RegistryMetadata",
    "SourceUnavailableError",
    "WriteFailureError",
]
