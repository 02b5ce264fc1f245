"""GitHub Copilot (VS Code) connector."""

from pathlib import Path
from typing import Any

from mcp_manager.core.models import AgentType
from mcp_manager.plugins.agents.connector import AbstractConnector, stdio_entry


class CopilotConnector(AbstractConnector):
    """``~/.vscode/mcp/config.json``.

    The agent counts as present whenever ``~/.vscode`` exists, even
    before the MCP config file has been created.
    """

    AGENT_TYPE = AgentType.GITHUB_COPILOT

    def config_path(self) -> Path:
        return self.home / ".vscode" / "mcp" / "config.json"

    def is_present(self) -> bool:
        return (self.home / ".vscode").is_dir()

    def build_entry(self, provider_id: str, config: dict[str, str]) -> dict[str, Any]:
        entry = stdio_entry(provider_id, config, "npx", f"-y {provider_id}")
        entry["enabled"] = "true"
        return entry

    def apply_enabled(self, entry: dict[str, Any], enabled: bool) -> None:
        entry["enabled"] = "true" if enabled else "false"

    def entry_enabled(self, entry: dict[str, Any]) -> bool:
        return str(entry.get("enabled", "true")).lower() != "false"
