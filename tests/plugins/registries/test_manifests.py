"""Tests for plugins/registries/manifests.py."""

import json
from unittest.mock import patch

import pytest

from mcp_manager.core.errors import MalformedInputError
from mcp_manager.plugins.registries.manifests import load_manifest, provider_from_manifest, read_manifest_dir


class TestLoadManifest:

    def test_single_object(self, tmp_path):
        path = tmp_path / "a.json"
        path.write_text(json.dumps({"id": "a"}))
        assert load_manifest(path) == [{"id": "a"}]

    def test_list(self, tmp_path):
        path = tmp_path / "all.yaml"
        path.write_text("- id: a\n- id: b\n- just a string\n")
        assert load_manifest(path) == [{"id": "a"}, {"id": "b"}]

    def test_servers_wrapper(self, tmp_path):
        path = tmp_path / "all.yml"
        path.write_text("servers:\n  - id: a\n")
        assert load_manifest(path) == [{"id": "a"}]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "a.json"
        path.write_text("{")
        with pytest.raises(MalformedInputError):
            load_manifest(path)

    def test_scalar(self, tmp_path):
        path = tmp_path / "a.yaml"
        path.write_text("42\n")
        with pytest.raises(MalformedInputError, match="expected a provider object"):
            load_manifest(path)


class TestProviderFromManifest:

    def test_aliases(self):
        provider = provider_from_manifest(
            {"id": "a", "repository": "https://example.com/a", "command": "npx -y a", "tags": ["x"]}
        )
        assert provider.source_url == "https://example.com/a"
        assert provider.invocation_spec == "npx -y a"
        assert provider.tags == ["x"]

    def test_canonical_fields_win(self):
        provider = provider_from_manifest({"id": "a", "source_url": "canonical", "repository": "alias"})
        assert provider.source_url == "canonical"

    def test_camel_case_aliases(self):
        provider = provider_from_manifest({"name": "a", "sourceUrl": "s", "invocationSpec": "i"})
        assert (provider.id, provider.source_url, provider.invocation_spec) == ("a", "s", "i")


class TestReadManifestDir:

    def test_reads_in_file_name_order(self, tmp_path):
        (tmp_path / "b.json").write_text(json.dumps({"id": "b"}))
        (tmp_path / "a.yaml").write_text("id: a\n")
        (tmp_path / "notes.txt").write_text("id: ignored\n")
        (tmp_path / "sub").mkdir()

        summaries = read_manifest_dir(tmp_path, "team")

        assert [s.id for s in summaries] == ["a", "b"]
        assert {s.registry_name for s in summaries} == {"team"}

    def test_skips_broken_files_and_idless_entries(self, tmp_path):
        (tmp_path / "a.json").write_text("{")
        (tmp_path / "b.json").write_text(json.dumps([{"description": "no id"}, {"id": "b"}]))

        with patch("mcp_manager.plugins.registries.manifests.message") as mock_message:
            summaries = read_manifest_dir(tmp_path, "team")

        assert [s.id for s in summaries] == ["b"]
        mock_message.assert_called_once()
