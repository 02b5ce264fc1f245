"""Keep MCP providers in sync across AI agents."""

__version__ = "0.1.0"
