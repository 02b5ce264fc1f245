"""Remote provider registries."""

from .abstract_registry import AbstractRegistry, rank_summaries, score_provider
from .git_registry import GitRegistry
from .http_registry import HttpRegistry
from .static_registry import StaticRegistry

# Registry classes by the ``type`` used in the config file
REGISTRY_TYPES: dict[str, type[AbstractRegistry]] = {
    HttpRegistry.REGISTRY_TYPE: HttpRegistry,
    GitRegistry.REGISTRY_TYPE: GitRegistry,
    StaticRegistry.REGISTRY_TYPE: StaticRegistry,
}

__all__ = [
    "REGISTRY_TYPES",
    "AbstractRegistry",
    "GitRegistry",
    "HttpRegistry",
    "StaticRegistry",
    "rank_summaries",
    "score_provider",
]
