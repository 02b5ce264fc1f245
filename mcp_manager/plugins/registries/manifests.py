"""Provider manifest files read by the git and static registries.

A manifest is a JSON or YAML file holding one provider object, a list of
them, or ``{"servers": [...]}``.
"""

import json
from pathlib import Path
from typing import Any

import yaml

from mcp_manager.core.errors import MalformedInputError
from mcp_manager.core.models import Provider, ProviderSummary
from mcp_manager.output import MessageType, VerbosityLevel, message

MANIFEST_SUFFIXES = (".json", ".yaml", ".yml")


def load_manifest(path: Path) -> list[dict[str, Any]]:
    """Load the provider objects from one manifest file.

    Raises:
        MalformedInputError: If the file cannot be parsed
    """
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise MalformedInputError(f"{path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("servers"), list):
        data = data["servers"]
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise MalformedInputError(f"{path}: expected a provider object or a list")
    return [item for item in data if isinstance(item, dict)]


def provider_from_manifest(entry: dict[str, Any]) -> Provider:
    """Build a provider from a manifest entry.

    Accepts ``repository``/``command`` as aliases of ``source_url`` and
    ``invocation_spec``.
    """
    data = dict(entry)
    data.setdefault("source_url", data.get("repository") or data.get("sourceUrl") or "")
    data.setdefault("invocation_spec", data.get("command") or data.get("invocationSpec") or "")
    return Provider.from_dict(data)


def read_manifest_dir(directory: Path, registry_name: str) -> list[ProviderSummary]:
    """Read every manifest directly inside *directory*, in file name order.

    Unparseable files are logged and skipped.
    """
    summaries = []
    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.suffix not in MANIFEST_SUFFIXES:
            continue
        try:
            entries = load_manifest(path)
        except MalformedInputError as e:
            message(f"Skipping manifest {e}", MessageType.WARNING, VerbosityLevel.VERBOSE)
            continue

        for entry in entries:
            provider = provider_from_manifest(entry)
            if not provider.id:
                continue
            summaries.append(ProviderSummary(provider=provider, registry_name=registry_name))

    return summaries
