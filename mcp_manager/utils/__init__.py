"""Utility functions for mcp-manager."""

from .discovery import (
    CONNECTOR_ENTRY_POINT_GROUP,
    discover_external_plugins,
    filter_disabled_plugins,
)
from .jsonfile import read_json_object, write_json_atomic
from .url import is_file_url, is_git_url, is_http_url, resolve_file_path

__all__ = [
    "CONNECTOR_ENTRY_POINT_GROUP",
    "discover_external_plugins",
    "filter_disabled_plugins",
    "is_file_url",
    "is_git_url",
    "is_http_url",
    "read_json_object",
    "resolve_file_path",
    "write_json_atomic",
]
