"""Domain records shared by the catalog, the stores and the reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

# Tag placed on providers synthesized by the reconciler
AUTO_DISCOVERED_TAG = "auto-discovered"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO timestamp written by :func:`format_timestamp`."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize a datetime for storage."""
    if value is None:
        return None
    return value.isoformat()


class AgentType(Enum):
    """Agent dialects known to mcp-manager.

    The value doubles as the agent's stable id.
    """

    CLAUDE_DESKTOP = "claude"
    CLAUDE_CODE = "claudecode"
    GITHUB_COPILOT = "githubcopilot"
    OPENAI_CODEX = "openaicodex"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return _AGENT_DISPLAY_NAMES.get(self, self.name.replace("_", " ").title())


_AGENT_DISPLAY_NAMES = {
    AgentType.CLAUDE_DESKTOP: "Claude Desktop",
    AgentType.CLAUDE_CODE: "Claude Code",
    AgentType.GITHUB_COPILOT: "GitHub Copilot",
    AgentType.OPENAI_CODEX: "OpenAI Codex",
}


@dataclass
class Provider:
    """An installable capability provider (an MCP server).

    ``id`` is case-sensitive and never changes once the provider is in the
    catalog.  ``global_config`` is the shared default configuration that
    installations inherit unless they carry their own override.
    """

    id: str
    name: str
    description: str = ""
    version: str = ""
    author: str = ""
    source_url: str = ""
    invocation_spec: str = ""
    tags: list[str] = field(default_factory=list)
    global_config: dict[str, str] = field(default_factory=dict)
    installed_at: datetime | None = None

    def __post_init__(self) -> None:
        # Tags behave as a set but keep first-seen order for display
        self.tags = list(dict.fromkeys(self.tags))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "author": self.author,
            "source_url": self.source_url,
            "invocation_spec": self.invocation_spec,
            "tags": list(self.tags),
            "global_config": dict(self.global_config),
            "installed_at": format_timestamp(self.installed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Provider:
        """Build a provider from a dictionary produced by :meth:`to_dict`.

        Missing optional fields fall back to their defaults, as do
        ``tags`` and ``global_config`` of the wrong type; ``id`` and
        ``name`` default to each other when only one is given.
        """
        provider_id = str(data.get("id") or data.get("name") or "")
        tags = data.get("tags")
        global_config = data.get("global_config")
        return cls(
            id=provider_id,
            name=str(data.get("name") or provider_id),
            description=str(data.get("description") or ""),
            version=str(data.get("version") or ""),
            author=str(data.get("author") or ""),
            source_url=str(data.get("source_url") or ""),
            invocation_spec=str(data.get("invocation_spec") or ""),
            tags=[str(tag) for tag in tags] if isinstance(tags, list) else [],
            global_config={str(k): str(v) for k, v in global_config.items()} if isinstance(global_config, dict) else {},
            installed_at=parse_timestamp(data.get("installed_at")),
        )


@dataclass
class ProviderSummary:
    """A provider as seen by one remote registry."""

    provider: Provider
    registry_name: str
    score: float = 1.0
    download_count: int = 0
    last_updated: datetime | None = None

    @property
    def id(self) -> str:
        return self.provider.id

    @property
    def name(self) -> str:
        return self.provider.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider.to_dict(),
            "registry_name": self.registry_name,
            "score": self.score,
            "download_count": self.download_count,
            "last_updated": format_timestamp(self.last_updated),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProviderSummary:
        return cls(
            provider=Provider.from_dict(data.get("provider") or {}),
            registry_name=str(data.get("registry_name") or ""),
            score=float(data.get("score") or 0.0),
            download_count=int(data.get("download_count") or 0),
            last_updated=parse_timestamp(data.get("last_updated")),
        )


@dataclass
class Agent:
    """A detected client application.

    Agents are never persisted; ``declared_provider_ids`` is read from the
    agent's own configuration file every time an agent is built.
    """

    id: str
    name: str
    type: AgentType
    config_path: Path
    declared_provider_ids: set[str] = field(default_factory=set)
    is_detected: bool = True


@dataclass
class Installation:
    """Provider ``provider_id`` configured for agent ``agent_id``.

    An empty ``agent_specific_config`` means the installation inherits the
    provider's global configuration.
    """

    id: str
    provider_id: str
    agent_id: str
    is_enabled: bool = True
    agent_specific_config: dict[str, str] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RegistryMetadata:
    """Outcome of the most recent refresh attempt for one registry."""

    registry_name: str
    last_refresh_at: datetime | None = None
    last_success_at: datetime | None = None
    last_refresh_successful: bool = False
    last_refresh_error: str | None = None
    cached_count: int = 0


@dataclass
class CommandResult:
    """Structured outcome of a command.

    Attributes:
        changed: Number of records or files changed
        errors: Human-readable error messages, one per failed unit
        items: Ids or records the command touched, for display
    """

    changed: int = 0
    errors: list[str] = field(default_factory=list)
    items: list[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge(self, other: CommandResult) -> None:
        """Fold another result into this one."""
        self.changed += other.changed
        self.errors.extend(other.errors)
        self.items.extend(other.items)
