"""Built-in agent connectors."""

from .claude_code import ClaudeCodeConnector
from .claude_desktop import ClaudeDesktopConnector
from .codex import CodexConnector
from .connector import AbstractConnector
from .copilot import CopilotConnector

# Connectors shipped with mcp-manager, in display order
BUILTIN_CONNECTORS: list[type[AbstractConnector]] = [
    ClaudeDesktopConnector,
    ClaudeCodeConnector,
    CopilotConnector,
    CodexConnector,
]

__all__ = [
    "BUILTIN_CONNECTORS",
    "AbstractConnector",
    "ClaudeCodeConnector",
    "ClaudeDesktopConnector",
    "CodexConnector",
    "CopilotConnector",
]
