"""Configuration module for mcp-manager."""

from .config import Config, ConfigData, ConfigError

__all__ = ["Config", "ConfigData", "ConfigError"]
