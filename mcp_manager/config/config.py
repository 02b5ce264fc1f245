"""Configuration management class for mcp-manager.

Schema: database + registries + cache + sync + agents
"""

import copy
import os
from pathlib import Path
from typing import Any, TypedDict

import yaml

from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.plugins.registries import REGISTRY_TYPES, AbstractRegistry, GitRegistry
from mcp_manager.utils import is_file_url, resolve_file_path

# Environment variable overriding the config directory
CONFIG_HOME_ENV = "MCP_MANAGER_HOME"

DEFAULT_REGISTRY_URL = "https://registry.modelcontextprotocol.io"

REGISTRY_TYPE_NAMES = tuple(REGISTRY_TYPES)


class RegistryEntry(TypedDict, total=False):
    """Type definition for a registry entry."""

    name: str
    type: str
    url: str
    enabled: bool


class CacheSettings(TypedDict, total=False):
    max_age_minutes: float


class SyncSettings(TypedDict, total=False):
    interval_minutes: float
    initial_delay_seconds: float
    workers: int
    strict_identity: bool


class AgentSettings(TypedDict, total=False):
    disabled: list[str]


class ConfigData(TypedDict, total=False):
    """Type definition for the configuration structure."""

    database: str
    registries: list[RegistryEntry]
    cache: CacheSettings
    sync: SyncSettings
    agents: AgentSettings


DEFAULTS: ConfigData = {
    "registries": [
        {"name": "official", "type": "http", "url": DEFAULT_REGISTRY_URL, "enabled": True},
    ],
    "cache": {"max_age_minutes": 60},
    "sync": {
        "interval_minutes": 5,
        "initial_delay_seconds": 5,
        "workers": 1,
        "strict_identity": False,
    },
    "agents": {"disabled": []},
}


class ConfigError(Exception):
    """Exception raised for configuration validation errors.

    Can contain multiple error messages.
    """

    def __init__(self, errors: str | list[str]):
        """Initialize ConfigError.

        Args:
            errors: Single error message or list of error messages
        """
        if isinstance(errors, str):
            self.errors = [errors]
        else:
            self.errors = errors
        super().__init__(self._format_errors())

    def _format_errors(self) -> str:
        """Format errors for display."""
        if len(self.errors) == 1:
            return self.errors[0]
        else:
            error_list = "\n".join(f"  - {err}" for err in self.errors)
            return f"Configuration has {len(self.errors)} errors:\n{error_list}"


class Config:
    """Manages configuration for mcp-manager."""

    def __init__(self, config_dir: Path | None = None):
        """Initialize the Config manager.

        Args:
            config_dir: Optional custom config directory.
                       Defaults to $MCP_MANAGER_HOME, then ~/.mcp-manager
        """
        if config_dir is None:
            env_home = os.environ.get(CONFIG_HOME_ENV)
            config_dir = Path(env_home).expanduser() if env_home else Path.home() / ".mcp-manager"

        self.config_directory = Path(config_dir)
        self.config_file = self.config_directory / "config.yaml"
        self.registries_directory = self.config_directory / "registries"
        self.default_database = self.config_directory / "mcp-manager.db"

    def ensure_directories(self) -> None:
        """Create config directories if they don't exist.

        Raises:
            ConfigError: If directories cannot be created
        """
        directories = {
            "config": self.config_directory,
            "registries": self.registries_directory,
        }

        for dir_name, dir_path in directories.items():
            try:
                dir_path.mkdir(parents=True, exist_ok=True)
                message(f"Ensured {dir_name} directory exists: {dir_path}", MessageType.DEBUG, VerbosityLevel.DEBUG)
            except PermissionError as e:
                raise ConfigError(f"Permission denied creating {dir_name} directory: {dir_path}") from e
            except OSError as e:
                raise ConfigError(f"Failed to create {dir_name} directory: {e}") from e

    def exists(self) -> bool:
        """Check if the configuration file exists.

        Returns:
            True if config file exists, False otherwise
        """
        return self.config_file.exists()

    @staticmethod
    def normalize_url(url: str) -> str:
        """Normalize a URL by resolving file:// URLs to absolute paths.

        Args:
            url: The URL to normalize

        Returns:
            Normalized URL with absolute paths for file:// URLs
        """
        if is_file_url(url):
            resolved_path = resolve_file_path(url)
            return f"file://{resolved_path}"
        return url

    @staticmethod
    def validate(config: dict[str, Any]) -> list[str]:
        """Validate the configuration structure.

        Collects all validation errors before raising an exception.

        Args:
            config: The configuration dictionary to validate

        Returns:
            List of warnings (non-fatal issues)

        Raises:
            ConfigError: If the configuration is invalid, with all errors
        """
        errors: list[str] = []
        warnings: list[str] = []

        if not isinstance(config, dict):
            raise ConfigError("Configuration must be a mapping")

        known = {"database", "registries", "cache", "sync", "agents"}
        for key in config:
            if key not in known:
                warnings.append(f"Unknown configuration key '{key}' is ignored")

        # --- database ---
        if "database" in config and config["database"] is not None:
            if not isinstance(config["database"], str) or not config["database"]:
                errors.append("'database' must be a non-empty string")

        # --- registries ---
        if "registries" in config:
            if not isinstance(config["registries"], list):
                errors.append("'registries' must be a list")
            else:
                registry_names: set[str] = set()
                for idx, entry in enumerate(config["registries"]):
                    if not isinstance(entry, dict):
                        errors.append(f"Registry entry {idx} must be a dictionary")
                        continue

                    required_keys = ["name", "type", "url"]
                    missing_keys = [key for key in required_keys if key not in entry]
                    if missing_keys:
                        errors.append(f"Registry entry {idx} is missing required keys: {', '.join(missing_keys)}")

                    for key in required_keys:
                        if key not in entry:
                            continue
                        if not isinstance(entry[key], str):
                            errors.append(
                                f"Registry entry {idx} '{key}' must be a string, got {type(entry[key]).__name__}"
                            )
                        elif not entry[key] and not (key == "url" and entry.get("type") == "static"):
                            errors.append(f"Registry entry {idx} '{key}' cannot be empty")

                    name = entry.get("name")
                    if isinstance(name, str) and name:
                        if name in registry_names:
                            errors.append(f"Registry entry {idx} has duplicate name '{name}'")
                        registry_names.add(name)

                    if isinstance(entry.get("type"), str) and entry["type"] and entry["type"] not in REGISTRY_TYPE_NAMES:
                        errors.append(
                            f"Registry entry {idx} has unknown type '{entry['type']}' "
                            f"(expected one of: {', '.join(REGISTRY_TYPE_NAMES)})"
                        )

                    if "enabled" in entry and not isinstance(entry["enabled"], bool):
                        errors.append(f"Registry entry {idx} 'enabled' must be true or false")

                if not registry_names:
                    warnings.append("No registries configured; unknown providers will be auto-discovered only")

        # --- cache ---
        cache = config.get("cache")
        if cache is not None:
            if not isinstance(cache, dict):
                errors.append("'cache' must be a dictionary")
            elif "max_age_minutes" in cache and not _is_positive_number(cache["max_age_minutes"]):
                errors.append("'cache.max_age_minutes' must be a positive number")

        # --- sync ---
        sync = config.get("sync")
        if sync is not None:
            if not isinstance(sync, dict):
                errors.append("'sync' must be a dictionary")
            else:
                if "interval_minutes" in sync and not _is_positive_number(sync["interval_minutes"]):
                    errors.append("'sync.interval_minutes' must be a positive number")
                if "initial_delay_seconds" in sync and not _is_number(sync["initial_delay_seconds"], minimum=0):
                    errors.append("'sync.initial_delay_seconds' must be zero or a positive number")
                if "workers" in sync:
                    workers = sync["workers"]
                    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
                        errors.append("'sync.workers' must be an integer of at least 1")
                if "strict_identity" in sync and not isinstance(sync["strict_identity"], bool):
                    errors.append("'sync.strict_identity' must be true or false")

        # --- agents ---
        agents = config.get("agents")
        if agents is not None:
            if not isinstance(agents, dict):
                errors.append("'agents' must be a dictionary")
            elif "disabled" in agents:
                disabled = agents["disabled"]
                if not isinstance(disabled, list):
                    errors.append("'agents.disabled' must be a list")
                else:
                    for idx, name in enumerate(disabled):
                        if not isinstance(name, str) or not name:
                            errors.append(f"agents.disabled entry {idx} must be a non-empty string")

        if errors:
            raise ConfigError(errors)

        return warnings

    @staticmethod
    def with_defaults(config: dict[str, Any]) -> ConfigData:
        """Return a copy of *config* with missing sections filled in.

        A present ``registries`` list is kept as is, even when empty.
        """
        merged: dict[str, Any] = copy.deepcopy(dict(DEFAULTS))
        for key, value in config.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key].update(value)
            elif value is not None:
                merged[key] = copy.deepcopy(value)
        return merged  # type: ignore[return-value]

    def read(self) -> ConfigData:
        """Load the configuration file.

        A missing file yields the defaults.

        Returns:
            The validated configuration with defaults filled in

        Raises:
            ConfigError: If the file cannot be read, parsed or validated
        """
        if not self.exists():
            message(
                f"No configuration file at {self.config_file}; using defaults",
                MessageType.DEBUG,
                VerbosityLevel.DEBUG,
            )
            return self.with_defaults({})

        try:
            with open(self.config_file) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

        if config is None:
            config = {}

        warnings = self.validate(config)
        for warning in warnings:
            message(f"Warning: {warning}", MessageType.WARNING, VerbosityLevel.ALWAYS)

        message(f"Configuration loaded from {self.config_file}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return self.with_defaults(config)

    def write(self, config: ConfigData) -> None:
        """Write the configuration to the config file with validation.

        Args:
            config: The configuration dictionary to write

        Raises:
            ConfigError: If validation fails or file cannot be written
        """
        self.validate(dict(config))

        clean_config: dict[str, Any] = {}
        if config.get("database"):
            clean_config["database"] = config["database"]
        if "registries" in config:
            clean_config["registries"] = []
            for entry in config["registries"]:
                clean_entry: dict[str, Any] = {"name": entry["name"], "type": entry["type"], "url": entry["url"]}
                if entry.get("enabled") is False:
                    clean_entry["enabled"] = False
                clean_config["registries"].append(clean_entry)
        for key in ("cache", "sync", "agents"):
            if key in config:
                clean_config[key] = dict(config[key])

        try:
            self.ensure_directories()
            with open(self.config_file, "w") as f:
                yaml.dump(clean_config, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ConfigError(f"Failed to write configuration file: {e}") from e
        message(f"Configuration saved to {self.config_file}", MessageType.SUCCESS, VerbosityLevel.VERBOSE)

    def initialize(self, force: bool = False) -> None:
        """Write the commented default template.

        Raises:
            ConfigError: If the file exists and *force* is False, or cannot be written
        """
        if self.exists() and not force:
            raise ConfigError(f"Configuration file already exists: {self.config_file} (use --force to overwrite)")

        self.ensure_directories()
        try:
            self.config_file.write_text(self.generate_template())
        except OSError as e:
            raise ConfigError(f"Failed to write configuration file: {e}") from e
        message(f"Configuration written to {self.config_file}", MessageType.SUCCESS, VerbosityLevel.ALWAYS)

    def database_path(self, config: ConfigData) -> Path | str:
        """Return the configured database location.

        ``":memory:"`` is passed through; relative paths are taken
        relative to the config directory.
        """
        database = config.get("database")
        if not database:
            return self.default_database
        if database == ":memory:":
            return database
        path = Path(database).expanduser()
        return path if path.is_absolute() else self.config_directory / path

    def build_registries(self, config: ConfigData) -> list[AbstractRegistry]:
        """Instantiate the enabled registries in configured order."""
        registries: list[AbstractRegistry] = []
        for entry in config.get("registries") or []:
            if entry.get("enabled") is False:
                message(f"Skipping disabled registry: {entry['name']}", MessageType.DEBUG, VerbosityLevel.DEBUG)
                continue

            registry_class = REGISTRY_TYPES[entry["type"]]
            url = self.normalize_url(entry.get("url") or "")
            if registry_class is GitRegistry:
                registries.append(GitRegistry(entry["name"], url, self.registries_directory))
            else:
                registries.append(registry_class(entry["name"], url=url))
        return registries

    @staticmethod
    def generate_template() -> str:
        """Generate a commented YAML template for a new configuration.

        Returns:
            Template string suitable for writing to stdout or a file
        """
        return f"""# mcp-manager configuration

# SQLite store for providers, installations and the registry cache.
# Defaults to mcp-manager.db next to this file; ":memory:" keeps
# everything in memory for a single run.
# database: ~/.mcp-manager/mcp-manager.db

# Registries are searched in this order when an agent declares a
# provider the catalog does not know yet.
registries:
  - name: official
    type: http
    url: {DEFAULT_REGISTRY_URL}
  # - name: team
  #   type: git
  #   url: https://github.com/org/mcp-servers.git
  # - name: local
  #   type: static
  #   url: file:///path/to/providers.yaml

cache:
  # Registry listings younger than this are served without a fetch
  max_age_minutes: 60

sync:
  interval_minutes: 5
  initial_delay_seconds: 5
  workers: 1
  # Do not merge a registry entry into a same-named catalog provider
  # when their source URLs differ
  strict_identity: false

agents:
  # Agent ids to ignore: claude, claudecode, githubcopilot, openaicodex
  disabled: []
"""


def _is_number(value: Any, minimum: float | None = None) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return minimum is None or value >= minimum


def _is_positive_number(value: Any) -> bool:
    return _is_number(value) and value > 0
