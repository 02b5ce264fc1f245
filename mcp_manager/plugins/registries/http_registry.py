"""HTTP registry speaking the MCP registry ``/v0.1/servers`` API."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

from mcp_manager.core.errors import SourceUnavailableError
from mcp_manager.core.models import Provider, ProviderSummary, parse_timestamp
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.plugins.registries.abstract_registry import AbstractRegistry
from mcp_manager.utils.url import is_http_url

# Stop following cursors after this many pages
MAX_PAGES = 20

_OFFICIAL_META = "io.modelcontextprotocol.registry/official"


class HttpRegistry(AbstractRegistry):
    """Paginated JSON registry.

    ``GET {url}/v0.1/servers`` returns ``{"servers": [...], "metadata":
    {"nextCursor": ...}}``; ``GET {url}/v0.1/servers/{id}`` returns one
    entry.  Entries may be wrapped as ``{"server": {...}, "_meta": {...}}``
    or flat.
    """

    REGISTRY_TYPE = "http"

    def __init__(
        self,
        name: str,
        url: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
        max_pages: int = MAX_PAGES,
    ):
        super().__init__(name, url.rstrip("/"))
        self.timeout = timeout
        self.max_pages = max_pages
        self._client = client
        self._owns_client = client is None

    @classmethod
    def can_handle_url(cls, url: str) -> bool:
        return is_http_url(url)

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.url,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers={"Accept": "application/json"},
            )
        return self._client

    def close(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------
    def list_all(self) -> list[ProviderSummary]:
        """Follow ``metadata.nextCursor`` until exhausted or ``max_pages``.

        Raises:
            SourceUnavailableError: If any page fails; a partial listing is
                never returned
        """
        results: list[ProviderSummary] = []
        cursor: str | None = None

        for page in range(self.max_pages):
            params = {"cursor": cursor} if cursor else None
            payload = self._get_json("/v0.1/servers", params=params)
            if not isinstance(payload, dict):
                raise SourceUnavailableError(self.name, "listing is not a JSON object")

            entries = payload.get("servers") or []
            if not isinstance(entries, list):
                raise SourceUnavailableError(self.name, "'servers' is not a list")

            for entry in entries:
                summary = self._to_summary(entry)
                if summary is not None:
                    results.append(summary)

            metadata = payload.get("metadata") or {}
            cursor = metadata.get("nextCursor") if isinstance(metadata, dict) else None
            message(
                f"Registry '{self.name}': page {page + 1}, {len(entries)} entries",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            if not cursor or not entries:
                break

        return results

    def get_details(self, provider_id: str) -> Provider | None:
        path = f"/v0.1/servers/{quote(provider_id, safe='')}"
        try:
            response = self.client.get(path)
        except httpx.HTTPError as e:
            raise SourceUnavailableError(self.name, str(e)) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        payload = self._decode(response)

        summary = self._to_summary(payload)
        return summary.provider if summary is not None else None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        try:
            response = self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise SourceUnavailableError(self.name, str(e)) from e
        return self._decode(response)

    def _decode(self, response: httpx.Response) -> Any:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceUnavailableError(self.name, f"HTTP {response.status_code}") from e
        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailableError(self.name, f"invalid JSON: {e}") from e

    def _to_summary(self, entry: Any) -> ProviderSummary | None:
        if not isinstance(entry, dict):
            return None

        server = entry.get("server") if isinstance(entry.get("server"), dict) else entry
        server_name = server.get("name")
        if not server_name:
            message(
                f"Registry '{self.name}': skipping entry without a name",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            return None

        meta = entry.get("_meta")
        official = meta.get(_OFFICIAL_META) if isinstance(meta, dict) else None
        updated = None
        if isinstance(official, dict):
            updated = official.get("updatedAt") or official.get("publishedAt")

        repository = server.get("repository") or {}
        tags = server.get("tags")
        provider = Provider(
            id=str(server_name),
            name=str(server.get("title") or server_name),
            description=str(server.get("description") or ""),
            version=str(server.get("version") or ""),
            author=extract_author(str(server_name)),
            source_url=str(repository.get("url") or "") if isinstance(repository, dict) else "",
            invocation_spec=invocation_from_packages(str(server_name), server.get("packages")),
            tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
        )
        return ProviderSummary(
            provider=provider,
            registry_name=self.name,
            last_updated=_parse_time(updated),
        )


def extract_author(server_name: str) -> str:
    """Return the namespace part of ``author.domain/package`` style names."""
    head = server_name.split("/", 1)[0]
    return head or "Unknown"


def invocation_from_packages(server_name: str, packages: Any) -> str:
    """Derive an install command from the ``packages`` list.

    npm packages are preferred; OCI images become ``docker pull``.
    """
    if not isinstance(packages, list) or not packages:
        return f"npm install -g {server_name}"

    valid = [pkg for pkg in packages if isinstance(pkg, dict) and pkg.get("identifier")]
    for pkg in valid:
        if pkg.get("registryType") == "npm":
            return f"npm install -g {pkg['identifier']}"
    if not valid:
        return f"npm install -g {server_name}"

    first = valid[0]
    if first.get("registryType") == "oci":
        return f"docker pull {first['identifier']}"
    return f"# Install: {first['identifier']}"


def _parse_time(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return parse_timestamp(value.replace("Z", "+00:00"))
    except ValueError:
        return None
