"""Connector plugin discovery utilities for mcp-manager."""

import importlib.metadata
from typing import Any

from mcp_manager.output import MessageType, VerbosityLevel, message

# Entry point group external connector packages register under
CONNECTOR_ENTRY_POINT_GROUP = "mcp_manager.connectors"


# =============================================================================
# Plugin Enable/Disable Utilities
# =============================================================================


def filter_disabled_plugins(
    plugins: dict[str, Any],
    disabled: list[str],
    plugin_type: str = "connector",
) -> dict[str, Any]:
    """Filter out disabled plugins from a plugin dictionary.

    Args:
        plugins: Dictionary of discovered plugins
        disabled: Names to drop
        plugin_type: Human-readable name for logging

    Returns:
        Filtered dictionary with disabled plugins removed
    """
    filtered = {}
    for name, info in plugins.items():
        if name in disabled:
            message(f"Skipping disabled {plugin_type}: {name}", MessageType.DEBUG, VerbosityLevel.DEBUG)
        else:
            filtered[name] = info

    return filtered


# =============================================================================
# Plugin Discovery Utilities
# =============================================================================


def discover_external_plugins(
    plugin_type: str,
    entry_point_group: str,
    base_class: type | None = None,
) -> dict[str, dict]:
    """Discover plugins registered under an entry point group.

    Args:
        plugin_type: Human-readable name for logging (e.g., "connector")
        entry_point_group: Entry point group name (e.g., "mcp_manager.connectors")
        base_class: Optional base class to validate loaded classes against

    Returns:
        Dictionary mapping plugin names to plugin info dicts:
        {
            "plugin_name": {
                "package_name": "full_package_name",
                "class": <class object>,
                "source": "entry_point"
            }
        }
    """
    plugins = {}

    try:
        eps = importlib.metadata.entry_points().select(group=entry_point_group)
    except Exception as e:
        message(
            f"Failed to discover {plugin_type} plugins via entry points: {e}",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )
        return plugins

    for ep in eps:
        try:
            loaded_class = ep.load()
        except Exception as e:
            # Skip broken plugins; built-ins still load
            message(
                f"Failed to load {plugin_type} plugin '{ep.name}': {e}",
                MessageType.WARNING,
                VerbosityLevel.VERBOSE,
            )
            continue

        if base_class is not None and not (isinstance(loaded_class, type) and issubclass(loaded_class, base_class)):
            message(
                f"Entry point '{ep.name}' does not point to a valid {plugin_type} class",
                MessageType.WARNING,
                VerbosityLevel.VERBOSE,
            )
            continue

        plugins[ep.name] = {
            "package_name": ep.value.split(":")[0] if ":" in ep.value else ep.value,
            "class": loaded_class,
            "source": "entry_point",
        }

        message(
            f"Discovered external {plugin_type} plugin: {ep.name}",
            MessageType.DEBUG,
            VerbosityLevel.DEBUG,
        )

    return plugins
