"""Configuration manager for safevips."""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from safevips.config.defaults import (
    DEFAULT_CONFIG,
    ENUM_FIELDS,
    POSITIVE_FIELDS,
)
from safevips.enums import parse_enum

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Exception raised for configuration errors."""
    pass


class ConfigManager:
    """Manages configuration loading, validation, and access.

    This class handles loading configuration from YAML files, merging it
    over the defaults, validating option values, and providing access to
    configuration values with dot notation.

    Attributes:
        config: Dictionary containing all configuration values
        config_path: Path to the loaded configuration file

    Examples:
        >>> config = ConfigManager.load("config.yaml")
        >>> print(config.get("load.access"))
        'sequential'
        >>> print(config.get("svg.dpi"))
        300.0
    """

    def __init__(self, config: Dict[str, Any], config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config: Configuration dictionary
            config_path: Path to the configuration file (optional)
        """
        self.config = config
        self.config_path = config_path

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        create_if_missing: bool = False
    ) -> "ConfigManager":
        """Load configuration from file, falling back to defaults.

        If config_path is given it must exist unless create_if_missing is
        True, in which case the defaults are written there. Without a path,
        config.yaml is searched in standard locations and the defaults are
        used when none is found.

        Args:
            config_path: Path to configuration file (optional)
            create_if_missing: Whether to write a default config file

        Returns:
            ConfigManager instance with loaded configuration

        Raises:
            ConfigError: If configuration cannot be loaded or validated
        """
        if config_path:
            path = Path(config_path).expanduser()
        else:
            path = cls._find_config_file()

        if path and path.exists():
            logger.info(f"Loading configuration from: {path}")
            config = cls._load_yaml(path)

            # Merge with defaults (in case new fields were added)
            config = cls._merge_with_defaults(config)
        elif config_path and not create_if_missing:
            raise ConfigError(
                f"Configuration file not found: {path}\n"
                "Run with create_if_missing=True to create a new config file."
            )
        else:
            logger.debug("No configuration file found, using defaults")
            config = copy.deepcopy(DEFAULT_CONFIG)

            if create_if_missing:
                path = path or Path.home() / ".safevips" / "config.yaml"
                cls._save_yaml(config, path)
                logger.info(f"Configuration saved to: {path}")

        cls._validate_fields(config)

        return cls(config, path)

    @staticmethod
    def _find_config_file() -> Optional[Path]:
        """Search for config.yaml in standard locations.

        Search order:
        1. ~/.safevips/config.yaml (user home directory - primary location)
        2. ./config.yaml (current directory - for development/testing)

        Returns:
            Path to config file if found, None otherwise
        """
        search_paths = [
            Path.home() / ".safevips" / "config.yaml",
            Path.cwd() / "config.yaml",
        ]

        for path in search_paths:
            if path.exists():
                logger.debug(f"Found config file: {path}")
                return path

        logger.debug("No config file found in standard locations")
        return None

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML file

        Returns:
            Configuration dictionary

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        try:
            with open(path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Failed to parse YAML configuration: {path}\n"
                f"Error: {e}"
            ) from e
        except OSError as e:
            raise ConfigError(
                f"Failed to load configuration file: {path}\n"
                f"Error: {e}"
            ) from e

        # An empty file is an empty mapping
        if config is None:
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Invalid configuration file: {path}\n"
                "Configuration must be a YAML dictionary."
            )

        return config

    @staticmethod
    def _save_yaml(config: Dict[str, Any], path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            config: Configuration dictionary
            path: Path to save YAML file

        Raises:
            ConfigError: If file cannot be saved
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            with open(path, 'w') as f:
                yaml.safe_dump(
                    config,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True
                )
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(
                f"Failed to save configuration to: {path}\n"
                f"Error: {e}"
            ) from e

    @staticmethod
    def _merge_with_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
        """Merge loaded config with defaults to add any new fields.

        User config values take precedence over defaults. This only adds
        missing keys from defaults, never overwrites user values.

        Args:
            config: Loaded configuration dictionary

        Returns:
            Merged configuration with defaults
        """
        def deep_merge(base: dict, updates: dict) -> dict:
            """Recursively merge two dictionaries, with updates taking precedence."""
            result = copy.deepcopy(base)
            for key, value in updates.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value
            return result

        return deep_merge(DEFAULT_CONFIG, config)

    @staticmethod
    def _validate_fields(config: Dict[str, Any]) -> None:
        """Validate enum-valued and numeric fields.

        Args:
            config: Configuration dictionary

        Raises:
            ConfigError: If any field holds an invalid value
        """
        problems = []

        for field_path, enum_class in ENUM_FIELDS.items():
            value = ConfigManager._get_nested_value(config, field_path)
            try:
                parse_enum(enum_class, value)
            except ValueError as e:
                problems.append(f"{field_path}: {e}")

        for field_path in POSITIVE_FIELDS:
            value = ConfigManager._get_nested_value(config, field_path)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                problems.append(f"{field_path}: must be a positive number, got {value!r}")

        if problems:
            raise ConfigError(
                "Invalid configuration values:\n"
                + "\n".join(f"  - {problem}" for problem in problems)
            )

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., "svg.dpi" or "engine.library")
            default: Default value to return if key not found

        Returns:
            Configuration value or default

        Examples:
            >>> config.get("svg.dpi")
            72.0
            >>> config.get("nonexistent.key", "default_value")
            'default_value'
        """
        value = self._get_nested_value(self.config, key)
        return value if value is not None else default

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., "load.access")
            value: Value to set
        """
        self._set_nested_value(self.config, key, value)

    @staticmethod
    def _get_nested_value(config: Dict[str, Any], key: str) -> Any:
        """Get value from nested dictionary using dot notation.

        Returns:
            Value at key path, or None if not found
        """
        value = config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return None

        return value

    @staticmethod
    def _set_nested_value(config: Dict[str, Any], key: str, value: Any) -> None:
        """Set value in nested dictionary using dot notation."""
        keys = key.split(".")
        current = config

        # Navigate to the parent dictionary
        for k in keys[:-1]:
            if k not in current or not isinstance(current[k], dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def save(self, path: Optional[str] = None) -> None:
        """Save current configuration to file.

        Args:
            path: Path to save configuration (uses loaded path if not specified)

        Raises:
            ConfigError: If path is not specified and no config was loaded
        """
        save_path = Path(path) if path else self.config_path

        if not save_path:
            raise ConfigError(
                "No configuration path specified. "
                "Provide a path or load config from a file first."
            )

        self._save_yaml(self.config, save_path)
        logger.info(f"Configuration saved to: {save_path}")

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the configuration as a dictionary."""
        return copy.deepcopy(self.config)

    def __repr__(self) -> str:
        """Return string representation of configuration."""
        path_str = f" from {self.config_path}" if self.config_path else ""
        return f"<ConfigManager{path_str}>"
