"""Helpers shared by the CLI command classes."""

import sys

from mcp_manager.core.models import CommandResult
from mcp_manager.output import MessageType, VerbosityLevel, message


def parse_assignments(pairs: list[str] | None) -> dict[str, str]:
    """Turn ``KEY=VALUE`` arguments into a configuration map.

    Exits with status 1 if an argument has no ``=``.
    """
    config: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep:
            message(f"Expected KEY=VALUE, got '{pair}'", MessageType.ERROR, VerbosityLevel.ALWAYS)
            sys.exit(1)
        config[key.strip()] = value
    return config


def report_result(result: CommandResult, success: str, unchanged: str | None = None) -> None:
    """Print the outcome of a command and exit 1 if it reported errors.

    Args:
        result: Result returned by the command layer
        success: Message shown when something changed
        unchanged: Message shown when nothing changed (defaults to *success*)
    """
    for error in result.errors:
        message(f"Error: {error}", MessageType.ERROR, VerbosityLevel.ALWAYS)

    if result.changed or not result.errors:
        text = success if result.changed or unchanged is None else unchanged
        message(text, MessageType.SUCCESS if result.changed else MessageType.INFO, VerbosityLevel.ALWAYS)

    if result.errors:
        sys.exit(1)


def format_config(config: dict[str, str]) -> str:
    if not config:
        return "(none)"
    return ", ".join(f"{key}={value}" for key, value in config.items())
