"""Claude Desktop connector."""

import os
from pathlib import Path
from typing import Any

from mcp_manager.core.models import AgentType
from mcp_manager.plugins.agents.connector import AbstractConnector, platform_name, stdio_entry


class ClaudeDesktopConnector(AbstractConnector):
    """``claude_desktop_config.json`` in the platform's application data directory.

    Entries are stdio descriptors; the enabled state is an ``"enabled"``
    string flag (``"true"``/``"false"``) inside the entry.
    """

    AGENT_TYPE = AgentType.CLAUDE_DESKTOP

    def config_path(self) -> Path:
        platform = platform_name()
        if platform == "windows":
            appdata = os.environ.get("APPDATA")
            base = Path(appdata) if appdata else self.home / "AppData" / "Roaming"
        elif platform == "macos":
            base = self.home / "Library" / "Application Support"
        else:
            base = self.home / ".config"
        return base / "Claude" / "claude_desktop_config.json"

    def build_entry(self, provider_id: str, config: dict[str, str]) -> dict[str, Any]:
        entry = stdio_entry(provider_id, config, "npx", f"-y {provider_id}")
        entry["enabled"] = "true"
        return entry

    def apply_enabled(self, entry: dict[str, Any], enabled: bool) -> None:
        entry["enabled"] = "true" if enabled else "false"

    def entry_enabled(self, entry: dict[str, Any]) -> bool:
        return str(entry.get("enabled", "true")).lower() != "false"
