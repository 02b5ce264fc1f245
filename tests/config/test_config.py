"""Tests for config/config.py - Configuration management."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from mcp_manager.config.config import DEFAULT_REGISTRY_URL, Config, ConfigError
from mcp_manager.plugins.registries import GitRegistry, HttpRegistry, StaticRegistry


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _minimal_config(**overrides):
    """Return a minimal valid config dict, with optional overrides."""
    base = {
        "registries": [
            {"name": "official", "type": "http", "url": "https://registry.example.com"},
        ],
    }
    base.update(overrides)
    return base


def _write_config(config_obj: Config, data) -> None:
    """Write raw YAML data to the config file without validation."""
    config_obj.config_directory.mkdir(parents=True, exist_ok=True)
    with open(config_obj.config_file, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


@pytest.fixture
def config(tmp_path):
    return Config(config_dir=tmp_path / "config")


# ===========================================================================
# ConfigError
# ===========================================================================
class TestConfigError:
    """Test cases for ConfigError exception."""

    def test_single_error_message(self):
        error = ConfigError("Single error")
        assert len(error.errors) == 1
        assert str(error) == "Single error"

    def test_multiple_error_messages(self):
        error = ConfigError(["First", "Second"])
        formatted = str(error)
        assert "Configuration has 2 errors" in formatted
        assert "  - First" in formatted
        assert "  - Second" in formatted


# ===========================================================================
# Config.__init__
# ===========================================================================
class TestConfigInitialization:

    def test_default_initialization(self, monkeypatch):
        monkeypatch.delenv("MCP_MANAGER_HOME", raising=False)
        config = Config()
        assert config.config_directory == Path.home() / ".mcp-manager"
        assert config.config_file == Path.home() / ".mcp-manager" / "config.yaml"
        assert config.registries_directory == Path.home() / ".mcp-manager" / "registries"

    def test_environment_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MCP_MANAGER_HOME", str(tmp_path / "env"))
        assert Config().config_directory == tmp_path / "env"

    def test_custom_config_directory(self, tmp_path):
        custom_dir = tmp_path / "custom"
        config = Config(config_dir=custom_dir)
        assert config.config_directory == custom_dir
        assert config.default_database == custom_dir / "mcp-manager.db"


# ===========================================================================
# ensure_directories
# ===========================================================================
class TestConfigEnsureDirectories:

    def test_creates_directories(self, config):
        with patch("mcp_manager.config.config.message"):
            config.ensure_directories()
        assert config.config_directory.is_dir()
        assert config.registries_directory.is_dir()

    def test_permission_error(self, config):
        with (
            patch("pathlib.Path.mkdir", side_effect=PermissionError("denied")),
            pytest.raises(ConfigError, match="Permission denied"),
        ):
            config.ensure_directories()


# ===========================================================================
# validate
# ===========================================================================
class TestConfigValidate:

    def test_minimal_config_is_valid(self):
        assert Config.validate(_minimal_config()) == []

    def test_empty_config_is_valid(self):
        assert Config.validate({}) == []

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="must be a mapping"):
            Config.validate(["registries"])

    def test_unknown_key_warns(self):
        warnings = Config.validate(_minimal_config(repos=[]))
        assert warnings == ["Unknown configuration key 'repos' is ignored"]

    def test_empty_registries_warns(self):
        warnings = Config.validate({"registries": []})
        assert "No registries configured" in warnings[0]

    def test_collects_all_registry_errors(self):
        config = {
            "registries": [
                "not a dict",
                {"name": "a", "type": "http"},
                {"name": "", "type": "ftp", "url": "x"},
                {"name": "b", "type": "http", "url": 5, "enabled": "yes"},
                {"name": "b", "type": "git", "url": "https://github.com/o/r.git"},
            ]
        }
        with pytest.raises(ConfigError) as exc_info:
            Config.validate(config)

        errors = exc_info.value.errors
        assert "Registry entry 0 must be a dictionary" in errors
        assert "Registry entry 1 is missing required keys: url" in errors
        assert "Registry entry 2 'name' cannot be empty" in errors
        assert any("unknown type 'ftp'" in e for e in errors)
        assert "Registry entry 3 'url' must be a string, got int" in errors
        assert "Registry entry 3 'enabled' must be true or false" in errors
        assert "Registry entry 4 has duplicate name 'b'" in errors

    def test_static_registry_may_have_empty_url(self):
        assert Config.validate({"registries": [{"name": "s", "type": "static", "url": ""}]}) == []

    @pytest.mark.parametrize(
        "section, error",
        [
            ({"database": ""}, "'database' must be a non-empty string"),
            ({"cache": {"max_age_minutes": 0}}, "'cache.max_age_minutes' must be a positive number"),
            ({"cache": []}, "'cache' must be a dictionary"),
            ({"sync": {"interval_minutes": -1}}, "'sync.interval_minutes' must be a positive number"),
            ({"sync": {"initial_delay_seconds": -1}}, "'sync.initial_delay_seconds' must be zero or a positive number"),
            ({"sync": {"workers": 0}}, "'sync.workers' must be an integer of at least 1"),
            ({"sync": {"workers": True}}, "'sync.workers' must be an integer of at least 1"),
            ({"sync": {"strict_identity": "no"}}, "'sync.strict_identity' must be true or false"),
            ({"agents": {"disabled": "claude"}}, "'agents.disabled' must be a list"),
            ({"agents": {"disabled": [""]}}, "agents.disabled entry 0 must be a non-empty string"),
        ],
    )
    def test_section_errors(self, section, error):
        with pytest.raises(ConfigError) as exc_info:
            Config.validate(_minimal_config(**section))
        assert exc_info.value.errors == [error]

    def test_valid_sections(self):
        config = _minimal_config(
            database=":memory:",
            cache={"max_age_minutes": 0.5},
            sync={"interval_minutes": 1, "initial_delay_seconds": 0, "workers": 4, "strict_identity": True},
            agents={"disabled": ["claude"]},
        )
        assert Config.validate(config) == []


# ===========================================================================
# read / write
# ===========================================================================
class TestConfigReadWrite:

    def test_missing_file_yields_defaults(self, config):
        data = config.read()
        assert data["registries"][0]["url"] == DEFAULT_REGISTRY_URL
        assert data["cache"]["max_age_minutes"] == 60
        assert data["sync"]["workers"] == 1
        assert data["agents"]["disabled"] == []

    def test_partial_sections_merged_with_defaults(self, config):
        _write_config(config, _minimal_config(sync={"workers": 3}))
        data = config.read()
        assert data["sync"]["workers"] == 3
        assert data["sync"]["interval_minutes"] == 5
        assert data["registries"][0]["name"] == "official"
        assert data["registries"][0]["url"] == "https://registry.example.com"

    def test_empty_file(self, config):
        config.config_directory.mkdir(parents=True)
        config.config_file.write_text("")
        assert config.read()["cache"]["max_age_minutes"] == 60

    def test_explicit_empty_registries_kept(self, config):
        _write_config(config, {"registries": []})
        with patch("mcp_manager.config.config.message"):
            assert config.read()["registries"] == []

    def test_invalid_yaml(self, config):
        config.config_directory.mkdir(parents=True)
        config.config_file.write_text("registries: [unclosed")
        with pytest.raises(ConfigError, match="Failed to parse"):
            config.read()

    def test_invalid_config(self, config):
        _write_config(config, {"sync": {"workers": 0}})
        with pytest.raises(ConfigError):
            config.read()

    def test_warnings_printed(self, config):
        _write_config(config, _minimal_config(extra=1))
        with patch("mcp_manager.config.config.message") as mock_message:
            config.read()
        printed = [c.args[0] for c in mock_message.call_args_list]
        assert "Warning: Unknown configuration key 'extra' is ignored" in printed

    def test_write_then_read(self, config):
        data = _minimal_config(sync={"workers": 2})
        data["registries"].append({"name": "off", "type": "static", "url": "", "enabled": False})
        data["registries"][0]["enabled"] = True

        with patch("mcp_manager.config.config.message"):
            config.write(data)

        raw = yaml.safe_load(config.config_file.read_text())
        assert raw["registries"][0] == {"name": "official", "type": "http", "url": "https://registry.example.com"}
        assert raw["registries"][1]["enabled"] is False
        assert raw["sync"] == {"workers": 2}
        assert config.read()["sync"]["workers"] == 2

    def test_write_invalid_rejected(self, config):
        with pytest.raises(ConfigError):
            config.write({"registries": "nope"})
        assert not config.exists()


# ===========================================================================
# initialize / template
# ===========================================================================
class TestConfigInitialize:

    def test_writes_valid_template(self, config):
        with patch("mcp_manager.config.config.message"):
            config.initialize()
        parsed = yaml.safe_load(config.config_file.read_text())
        assert Config.validate(parsed) == []
        assert parsed["registries"][0]["url"] == DEFAULT_REGISTRY_URL
        assert parsed["sync"]["strict_identity"] is False

    def test_refuses_to_overwrite(self, config):
        with patch("mcp_manager.config.config.message"):
            config.initialize()
            with pytest.raises(ConfigError, match="--force"):
                config.initialize()
            config.config_file.write_text("changed: true\n")
            config.initialize(force=True)
        assert "registries:" in config.config_file.read_text()


# ===========================================================================
# Derived settings
# ===========================================================================
class TestDerivedSettings:

    def test_database_path(self, config, tmp_path):
        assert config.database_path({}) == config.default_database
        assert config.database_path({"database": ":memory:"}) == ":memory:"
        assert config.database_path({"database": "data/store.db"}) == config.config_directory / "data" / "store.db"
        assert config.database_path({"database": str(tmp_path / "abs.db")}) == tmp_path / "abs.db"

    def test_normalize_url(self, tmp_path):
        assert Config.normalize_url("https://example.com") == "https://example.com"
        assert Config.normalize_url(str(tmp_path)) == f"file://{tmp_path.resolve()}"

    def test_build_registries(self, config, tmp_path):
        manifest = tmp_path / "providers.yaml"
        data = {
            "registries": [
                {"name": "official", "type": "http", "url": "https://registry.example.com"},
                {"name": "team", "type": "git", "url": "https://github.com/org/mcp.git"},
                {"name": "local", "type": "static", "url": str(manifest)},
                {"name": "off", "type": "http", "url": "https://off.example.com", "enabled": False},
            ]
        }

        with patch("mcp_manager.config.config.message"):
            registries = config.build_registries(data)

        assert [r.name for r in registries] == ["official", "team", "local"]
        assert isinstance(registries[0], HttpRegistry)
        assert isinstance(registries[1], GitRegistry)
        assert registries[1].local_path == config.registries_directory / "team"
        assert isinstance(registries[2], StaticRegistry)
        assert registries[2].url == f"file://{manifest.resolve()}"

    def test_build_default_registries(self, config):
        registries = config.build_registries(config.read())
        assert len(registries) == 1
        assert registries[0].url == DEFAULT_REGISTRY_URL
