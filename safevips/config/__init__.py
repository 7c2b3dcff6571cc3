"""Configuration management for safevips."""

from safevips.config.manager import ConfigManager, ConfigError
from safevips.config.defaults import DEFAULT_CONFIG

__all__ = ["ConfigManager", "ConfigError", "DEFAULT_CONFIG"]
