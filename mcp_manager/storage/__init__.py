"""SQLite-backed stores for mcp-manager."""

from .catalog import ProviderCatalog
from .database import MEMORY_DATABASE, Database
from .installations import InstallationStore
from .registry_cache import RegistryCacheStore

__all__ = [
    "MEMORY_DATABASE",
    "Database",
    "InstallationStore",
    "ProviderCatalog",
    "RegistryCacheStore",
]
