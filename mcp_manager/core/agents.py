"""Agent discovery for mcp-manager."""

from __future__ import annotations

from pathlib import Path

from mcp_manager.core.models import Agent
from mcp_manager.output import MessageType, VerbosityLevel, message
from mcp_manager.plugins.agents import BUILTIN_CONNECTORS, AbstractConnector
from mcp_manager.utils.discovery import (
    CONNECTOR_ENTRY_POINT_GROUP,
    discover_external_plugins,
    filter_disabled_plugins,
)


def discover_connector_classes(
    disabled: list[str] | None = None,
    include_external: bool = True,
) -> dict[str, type[AbstractConnector]]:
    """Discover all available connector classes.

    Built-in connectors come first; packages registering under the
    ``mcp_manager.connectors`` entry point group may add new agents or
    replace a built-in one with the same id.

    Args:
        disabled: Agent ids to leave out
        include_external: If False, only built-in connectors are returned

    Returns:
        Dictionary mapping agent ids to connector classes
    """
    plugins: dict[str, dict] = {
        cls.AGENT_ID or cls.AGENT_TYPE.value: {"class": cls, "package_name": cls.__module__, "source": "builtin"}
        for cls in BUILTIN_CONNECTORS
    }

    if include_external:
        plugins.update(
            discover_external_plugins(
                plugin_type="connector",
                entry_point_group=CONNECTOR_ENTRY_POINT_GROUP,
                base_class=AbstractConnector,
            )
        )

    if disabled:
        plugins = filter_disabled_plugins(plugins, disabled, "agent")

    return {name: info["class"] for name, info in plugins.items()}


class AgentManager:
    """Computes agents live from their connectors.

    Nothing about an agent is cached: every call inspects the host and
    re-reads the agent's files.
    """

    def __init__(
        self,
        connectors: list[AbstractConnector] | None = None,
        disabled: list[str] | None = None,
        home: Path | None = None,
        cwd: Path | None = None,
        include_external: bool = True,
    ):
        if connectors is None:
            classes = discover_connector_classes(disabled, include_external)
            connectors = [cls(home=home, cwd=cwd) for cls in classes.values()]
        elif disabled:
            connectors = [c for c in connectors if c.agent_id not in disabled]

        self._connectors: dict[str, AbstractConnector] = {}
        for connector in connectors:
            if connector.agent_id in self._connectors:
                message(
                    f"Ignoring duplicate connector for agent '{connector.agent_id}'",
                    MessageType.WARNING,
                    VerbosityLevel.VERBOSE,
                )
                continue
            self._connectors[connector.agent_id] = connector

    @property
    def connectors(self) -> list[AbstractConnector]:
        return list(self._connectors.values())

    def get_connector(self, agent_id: str) -> AbstractConnector | None:
        return self._connectors.get(agent_id)

    def detect_agents(self, include_missing: bool = False) -> list[Agent]:
        """Check every connector and return the agents found.

        A connector that fails while probing is logged and skipped.

        Args:
            include_missing: Also return agents that are not installed
        """
        agents = []
        for connector in self._connectors.values():
            try:
                present = connector.is_present()
                if not present and not include_missing:
                    continue
                agents.append(connector.to_agent())
            except OSError as e:
                message(
                    f"Failed to detect agent '{connector.agent_id}': {e}",
                    MessageType.WARNING,
                    VerbosityLevel.VERBOSE,
                )

        message(f"Detected {len(agents)} agent(s)", MessageType.DEBUG, VerbosityLevel.DEBUG)
        return agents

    def get_agent(self, agent_id: str) -> Agent | None:
        """Return the live agent record for *agent_id*, even if not installed."""
        connector = self._connectors.get(agent_id)
        return connector.to_agent() if connector is not None else None
