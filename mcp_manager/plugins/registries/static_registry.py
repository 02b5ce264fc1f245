"""In-memory registry, optionally loaded from a manifest file."""

from pathlib import Path

from mcp_manager.core.errors import MalformedInputError, SourceUnavailableError
from mcp_manager.core.models import Provider, ProviderSummary
from mcp_manager.plugins.registries.abstract_registry import AbstractRegistry
from mcp_manager.plugins.registries.manifests import load_manifest, provider_from_manifest
from mcp_manager.utils.url import resolve_file_path


class StaticRegistry(AbstractRegistry):
    """A fixed list of providers.

    With a ``url`` the list is read from that manifest file on every
    listing; otherwise it is the list given to the constructor.  Setting
    ``available`` to False makes every call fail as an unreachable
    registry would.
    """

    REGISTRY_TYPE = "static"

    def __init__(self, name: str, providers: list[Provider] | None = None, url: str = ""):
        super().__init__(name, url)
        self.providers = list(providers or [])
        self.available = True
        self.calls = 0

    def list_all(self) -> list[ProviderSummary]:
        self.calls += 1
        if not self.available:
            raise SourceUnavailableError(self.name, "registry is offline")

        providers = self._load_file() if self.url else self.providers
        return [ProviderSummary(provider=provider, registry_name=self.name) for provider in providers]

    def _load_file(self) -> list[Provider]:
        path = resolve_file_path(self.url)
        if not Path(path).is_file():
            raise SourceUnavailableError(self.name, f"{path} does not exist")
        try:
            entries = load_manifest(path)
        except MalformedInputError as e:
            raise SourceUnavailableError(self.name, str(e)) from e
        return [provider_from_manifest(entry) for entry in entries]
