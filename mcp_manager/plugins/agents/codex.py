"""OpenAI Codex connector."""

from pathlib import Path
from typing import Any

from mcp_manager.core.models import AgentType
from mcp_manager.plugins.agents.connector import AbstractConnector, platform_name, stdio_entry


class CodexConnector(AbstractConnector):
    """``mcp_config.json`` under the platform's Codex directory.

    Entries carry a boolean ``enabled`` field.
    """

    AGENT_TYPE = AgentType.OPENAI_CODEX

    def config_path(self) -> Path:
        platform = platform_name()
        if platform == "windows":
            return self.home / ".codex" / "mcp_config.json"
        if platform == "macos":
            return self.home / "Library" / "Application Support" / "Codex" / "mcp_config.json"
        return self.home / ".config" / "codex" / "mcp_config.json"

    def is_present(self) -> bool:
        path = self.config_path()
        return path.exists() or path.parent.is_dir()

    def build_entry(self, provider_id: str, config: dict[str, str]) -> dict[str, Any]:
        entry = stdio_entry(provider_id, config, "node", f"{provider_id}/index.js")
        entry["enabled"] = True
        return entry

    def apply_enabled(self, entry: dict[str, Any], enabled: bool) -> None:
        entry["enabled"] = enabled

    def entry_enabled(self, entry: dict[str, Any]) -> bool:
        value = entry.get("enabled", True)
        if isinstance(value, str):
            return value.lower() != "false"
        return bool(value)
