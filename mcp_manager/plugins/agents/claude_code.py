"""Claude Code connector."""

from pathlib import Path
from typing import Any

from mcp_manager.core.models import AgentType
from mcp_manager.plugins.agents.connector import AbstractConnector, parse_env, split_args

# Transport keys replaced wholesale when an entry is re-added
_TRANSPORT_KEYS = ("type", "command", "args", "env", "url")


class ClaudeCodeConnector(AbstractConnector):
    """Claude Code keeps providers in two places.

    ``~/.claude.json`` holds a global ``mcpServers`` map plus one
    ``projects[<path>].mcpServers`` map per project; the project matching
    the working directory is read too.  The older ``~/.claude/settings.json``
    is read as well and is written to only when ``~/.claude.json`` does not
    exist.

    Entries are stdio (``command``/``args``/``env``) or http
    (``type: "http"``, ``url``).  A disabled entry carries
    ``"disabled": true``; enabled entries have no such key.
    """

    AGENT_TYPE = AgentType.CLAUDE_CODE

    @property
    def user_config_path(self) -> Path:
        return self.home / ".claude.json"

    @property
    def settings_path(self) -> Path:
        return self.home / ".claude" / "settings.json"

    def config_path(self) -> Path:
        if self.user_config_path.exists():
            return self.user_config_path
        return self.settings_path

    def config_files(self) -> list[Path]:
        return [self.user_config_path, self.settings_path]

    def is_present(self) -> bool:
        candidates = [
            self.home / ".claude",
            self.user_config_path,
            self.home / ".local" / "bin" / "claude",
            self.home / ".local" / "bin" / "claude.exe",
        ]
        return any(path.exists() for path in candidates)

    def project_keys(self) -> list[str]:
        """Spellings of the working directory used as ``projects`` keys."""
        cwd = str(self.cwd)
        return list(dict.fromkeys([cwd, cwd.replace("\\", "/"), cwd.replace("/", "\\")]))

    def server_sections(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        sections = super().server_sections(data)

        projects = data.get("projects")
        if projects is None:
            return sections
        if not isinstance(projects, dict):
            self._warn_section("projects")
            return sections

        for key in self.project_keys():
            project = projects.get(key)
            if project is None:
                continue
            if not isinstance(project, dict):
                self._warn_section(f"projects[{key}]")
                continue
            servers = project.get(self.SERVERS_KEY)
            if servers is None:
                continue
            if not isinstance(servers, dict):
                self._warn_section(f"projects[{key}].{self.SERVERS_KEY}")
                continue
            sections.append(servers)

        return sections

    def build_entry(self, provider_id: str, config: dict[str, str]) -> dict[str, Any]:
        if config.get("type") == "http":
            return {"type": "http", "url": config.get("url", "")}

        entry: dict[str, Any] = {
            "type": "stdio",
            "command": config.get("command") or "npx",
            "args": split_args(config.get("args"), f"-y {provider_id}"),
        }
        env = parse_env(config.get("env"))
        if env is not None:
            entry["env"] = env
        return entry

    def merge_entry(self, existing: dict[str, Any], entry: dict[str, Any]) -> dict[str, Any]:
        kept = {key: value for key, value in existing.items() if key not in _TRANSPORT_KEYS}
        return {**entry, **kept}

    def apply_enabled(self, entry: dict[str, Any], enabled: bool) -> None:
        if enabled:
            entry.pop("disabled", None)
        else:
            entry["disabled"] = True

    def entry_enabled(self, entry: dict[str, Any]) -> bool:
        return entry.get("disabled") is not True
