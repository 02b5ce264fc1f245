"""Abstract base class for agent connector plugins."""

import json
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from mcp_manager.core.errors import MalformedInputError, WriteFailureError
from mcp_manager.core.models import Agent, AgentType
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.utils.jsonfile import read_json_object, write_json_atomic


class AbstractConnector(ABC):
    """Reads and writes the provider list of one agent's configuration file.

    Every dialect converges on the same contract:

    * reads never fail: a missing file means no declared providers and a
      malformed file or section is logged and skipped;
    * writes preserve every unrelated key and raise
      :class:`WriteFailureError` when the file cannot be written.

    Subclasses describe where the file lives, how a provider entry looks
    and how "enabled" is encoded.
    """

    # Subclasses must define this to identify their dialect
    AGENT_TYPE: AgentType = AgentType.OTHER

    # Overrides AGENT_TYPE.value as the agent id (for AgentType.OTHER plugins)
    AGENT_ID: str | None = None

    DISPLAY_NAME: str | None = None

    # Key holding the provider map inside the config file
    SERVERS_KEY = "mcpServers"

    def __init__(self, home: Path | None = None, cwd: Path | None = None):
        """Initialize a connector.

        Args:
            home: Home directory to resolve agent paths against (defaults to ~)
            cwd: Working directory for project-scoped sections (defaults to cwd)
        """
        self.home = Path(home) if home is not None else Path.home()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()

    @property
    def agent_id(self) -> str:
        return self.AGENT_ID or self.AGENT_TYPE.value

    @property
    def display_name(self) -> str:
        return self.DISPLAY_NAME or self.AGENT_TYPE.display_name

    # ------------------------------------------------------------------
    # Dialect hooks
    # ------------------------------------------------------------------
    @abstractmethod
    def config_path(self) -> Path:
        """Return the file this connector writes to."""
        pass

    @abstractmethod
    def build_entry(self, provider_id: str, config: dict[str, str]) -> dict[str, Any]:
        """Build the dialect's entry for *provider_id* from a config map.

        Args:
            provider_id: Provider being added
            config: Effective configuration (may be empty)

        Returns:
            JSON-serializable entry for the provider map
        """
        pass

    @abstractmethod
    def apply_enabled(self, entry: dict[str, Any], enabled: bool) -> None:
        """Encode *enabled* into *entry* in place."""
        pass

    @abstractmethod
    def entry_enabled(self, entry: dict[str, Any]) -> bool:
        """Decode the enabled state of *entry*."""
        pass

    def merge_entry(self, existing: dict[str, Any], entry: dict[str, Any]) -> dict[str, Any]:
        """Combine a re-added entry with the one already in the file."""
        return {**existing, **entry}

    def is_present(self) -> bool:
        """Return True if this agent appears installed on the host."""
        return self.config_path().exists()

    def config_files(self) -> list[Path]:
        """Return every file that may declare providers, in priority order."""
        return [self.config_path()]

    def server_sections(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        """Return the provider maps found in one parsed file.

        Sections that are present but not JSON objects are logged and
        skipped.
        """
        section = data.get(self.SERVERS_KEY)
        if section is None:
            return []
        if not isinstance(section, dict):
            self._warn_section(self.SERVERS_KEY)
            return []
        return [section]

    # ------------------------------------------------------------------
    # Uniform contract
    # ------------------------------------------------------------------
    def declared_provider_ids(self) -> set[str]:
        """Return the live set of provider ids declared in the agent's files."""
        ids: set[str] = set()
        for path in self.config_files():
            data = self._read(path)
            if data is None:
                continue
            for section in self.server_sections(data):
                ids.update(str(key) for key in section)

        message(
            f"{self.display_name}: {len(ids)} declared provider(s)",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return ids

    def get_entry(self, provider_id: str) -> dict[str, Any] | None:
        """Return the raw entry for *provider_id*, if any file declares it."""
        for path in self.config_files():
            data = self._read(path)
            if data is None:
                continue
            for section in self.server_sections(data):
                entry = section.get(provider_id)
                if isinstance(entry, dict):
                    return entry
        return None

    def is_enabled(self, provider_id: str) -> bool | None:
        """Return the enabled flag of *provider_id*, or None if not declared."""
        entry = self.get_entry(provider_id)
        return None if entry is None else self.entry_enabled(entry)

    def add_provider(self, provider_id: str, config: dict[str, str] | None = None) -> bool:
        """Write or merge the entry for *provider_id*.

        Keys of an existing entry that the new entry does not set are kept.

        Returns:
            True once the file has been written

        Raises:
            WriteFailureError: If the file cannot be read back or written
        """
        path = self.config_path()
        data = self._read_for_write(path)

        section = data.setdefault(self.SERVERS_KEY, {})
        if not isinstance(section, dict):
            raise WriteFailureError(str(path), f"'{self.SERVERS_KEY}' is not a JSON object")

        entry = section.get(provider_id)
        existing = dict(entry) if isinstance(entry, dict) else {}
        section[provider_id] = self.merge_entry(existing, self.build_entry(provider_id, dict(config or {})))

        write_json_atomic(path, data)
        message(
            f"Added '{provider_id}' to {self.display_name} ({path})",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return True

    def remove_provider(self, provider_id: str) -> bool:
        """Remove *provider_id* from every section that declares it.

        Returns:
            False if no file declared the id
        """
        return self._edit_entries(provider_id, lambda section, _: section.pop(provider_id))

    def set_enabled(self, provider_id: str, enabled: bool) -> bool:
        """Enable or disable *provider_id* wherever it is declared.

        Returns:
            False if no file declared the id
        """
        return self._edit_entries(provider_id, lambda _, entry: self.apply_enabled(entry, enabled))

    def to_agent(self) -> Agent:
        """Build a live :class:`Agent` record for this connector."""
        return Agent(
            id=self.agent_id,
            name=self.display_name,
            type=self.AGENT_TYPE,
            config_path=self.config_path(),
            declared_provider_ids=self.declared_provider_ids(),
            is_detected=self.is_present(),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _read(self, path: Path) -> dict[str, Any] | None:
        try:
            return read_json_object(path)
        except MalformedInputError as e:
            message(
                f"{self.display_name}: ignoring unreadable config: {e}",
                MessageType.WARNING,
                VerbosityLevel.VERBOSE,
            )
            return None

    def _read_for_write(self, path: Path) -> dict[str, Any]:
        # Refuse to overwrite a file we could not parse
        try:
            data = read_json_object(path)
        except MalformedInputError as e:
            raise WriteFailureError(str(path), "; ".join(e.errors)) from e
        return data if data is not None else {}

    def _edit_entries(self, provider_id: str, edit) -> bool:
        found = False
        for path in self.config_files():
            if not path.exists():
                continue
            data = self._read_for_write(path)
            touched = False
            for section in self.server_sections(data):
                entry = section.get(provider_id)
                if entry is None:
                    continue
                if not isinstance(entry, dict):
                    entry = {}
                    section[provider_id] = entry
                edit(section, entry)
                touched = True
            if touched:
                write_json_atomic(path, data)
                found = True
        return found

    def _warn_section(self, where: str) -> None:
        message(
            f"{self.display_name}: skipping malformed section '{where}'",
            MessageType.WARNING,
            VerbosityLevel.VERBOSE,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(agent_id='{self.agent_id}', path={self.config_path()})"


# ----------------------------------------------------------------------
# Shared entry builders
# ----------------------------------------------------------------------
def split_args(value: str | None, default: str) -> list[str]:
    """Split a space separated ``args`` config value."""
    text = default if value is None else value
    return [part for part in text.split(" ") if part]


def parse_env(value: str | None) -> dict[str, str] | None:
    """Parse the ``env`` config value (JSON object text).

    Raises:
        MalformedInputError: If the text is not a JSON object
    """
    if value is None or not value.strip():
        return None
    try:
        env = json.loads(value)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"env: invalid JSON: {e.msg}") from e
    if not isinstance(env, dict):
        raise MalformedInputError("env: expected a JSON object")
    return {str(k): str(v) for k, v in env.items()}


def stdio_entry(
    provider_id: str,
    config: dict[str, str],
    default_command: str,
    default_args: str,
) -> dict[str, Any]:
    """Build a stdio ``{command, args, env}`` entry."""
    entry: dict[str, Any] = {
        "command": config.get("command") or default_command,
        "args": split_args(config.get("args"), default_args),
    }
    env = parse_env(config.get("env"))
    if env is not None:
        entry["env"] = env
    return entry


def platform_name() -> str:
    """Return ``"windows"``, ``"macos"`` or ``"linux"``."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"
