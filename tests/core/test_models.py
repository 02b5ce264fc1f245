"""Tests for core/models.py - domain records."""

from mcp_manager.core.models import (
    AgentType,
    CommandResult,
    Provider,
    ProviderSummary,
    parse_timestamp,
)


class TestProvider:

    def test_tags_deduplicated_in_order(self):
        provider = Provider(id="p", name="P", tags=["b", "a", "b"])
        assert provider.tags == ["b", "a"]

    def test_from_dict_defaults_name_and_id(self):
        assert Provider.from_dict({"id": "github"}).name == "github"
        assert Provider.from_dict({"name": "github"}).id == "github"

    def test_from_dict_stringifies_config(self):
        provider = Provider.from_dict({"id": "p", "global_config": {"port": 8080}})
        assert provider.global_config == {"port": "8080"}

    def test_from_dict_ignores_wrong_field_types(self):
        provider = Provider.from_dict({"id": "p", "tags": 5, "global_config": "port=8080"})
        assert provider.tags == []
        assert provider.global_config == {}

    def test_dict_round_trip(self):
        provider = Provider(
            id="p",
            name="P",
            tags=["x"],
            global_config={"k": "v"},
            installed_at=parse_timestamp("2025-01-01T00:00:00+00:00"),
        )
        assert Provider.from_dict(provider.to_dict()) == provider


class TestProviderSummary:

    def test_id_and_name_follow_provider(self):
        summary = ProviderSummary(provider=Provider(id="reg-9f3", name="Github"), registry_name="official")
        assert summary.id == "reg-9f3"
        assert summary.name == "Github"

    def test_from_dict(self):
        summary = ProviderSummary.from_dict(
            {"provider": {"id": "a", "name": "A"}, "registry_name": "r", "download_count": 3}
        )
        assert summary.provider.id == "a"
        assert summary.download_count == 3
        assert summary.last_updated is None


class TestParseTimestamp:

    def test_naive_timestamps_are_utc(self):
        parsed = parse_timestamp("2025-01-01T00:00:00")
        assert parsed.tzinfo is not None

    def test_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None


class TestAgentType:

    def test_value_is_agent_id(self):
        assert AgentType.CLAUDE_CODE.value == "claudecode"

    def test_display_names(self):
        assert AgentType.GITHUB_COPILOT.display_name == "GitHub Copilot"
        assert AgentType.OTHER.display_name == "Other"


class TestCommandResult:

    def test_ok(self):
        assert CommandResult().ok
        assert not CommandResult(errors=["x"]).ok

    def test_merge(self):
        result = CommandResult(changed=1, items=["a"])
        result.merge(CommandResult(changed=2, errors=["e"], items=["b"]))
        assert result.changed == 3
        assert result.errors == ["e"]
        assert result.items == ["a", "b"]
