"""
Configuration loader module for the contact reminder.

Provides YAML-based configuration file loading with support for:
- Loading configuration from default or custom paths
- Graceful handling of missing configuration files
- Validation of key types and value ranges
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from contact_reminder.utils import resolve_config_dir

# Default configuration file name
DEFAULT_CONFIG_FILE = "config.yaml"

# Valid configuration keys and their expected types
VALID_KEYS: dict[str, type[Any] | tuple[type[Any], ...]] = {
    # Logging options
    "verbose": bool,
    "log_dir": str,
    "log_retention_count": int,
    # Storage options
    "database_path": str,
    "settings_path": str,
    # Auth options
    "interactive_auth": bool,
    "auth_timeout": int,
    # API options
    "api_page_size": int,
    "api_batch_size": int,
    "api_max_retries": int,
    "api_initial_retry_delay": (int, float),
    "api_max_retry_delay": (int, float),
    # Note journal options
    "note_marker": str,
    "note_timestamp_format": str,
}

# People API limits for connections.list page size and getBatchGet batch size
MAX_API_PAGE_SIZE = 1000
MAX_API_BATCH_SIZE = 200

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class ConfigLoader:
    """
    YAML configuration file loader.

    Attributes:
        config_dir: Directory containing the configuration file
        config_file: Name of the configuration file

    Usage:
        loader = ConfigLoader()
        config = loader.load_and_validate()

        # Load from specific file
        config = loader.load_from_file("/path/to/config.yaml")
    """

    def __init__(
        self, config_dir: Path | None = None, config_file: str = DEFAULT_CONFIG_FILE
    ):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to ~/.contact-reminder/ or $CONTACT_REMINDER_CONFIG_DIR
            config_file: Name of the configuration file (default: config.yaml)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.config_file = config_file

    @property
    def config_path(self) -> Path:
        return self.config_dir / self.config_file

    def load(self) -> dict[str, Any]:
        """
        Load configuration from the default configuration file.

        Returns:
            Configuration values, or an empty dict if the file doesn't exist

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        return self.load_from_file(self.config_path)

    def load_from_file(self, path: Path | str) -> dict[str, Any]:
        """
        Load configuration from a specific file.

        Returns an empty dict if the file doesn't exist, allowing
        graceful operation with CLI defaults.

        Raises:
            ConfigError: If the configuration file exists but cannot be parsed
        """
        path = Path(path).expanduser()

        if not path.exists():
            logger.debug(f"Configuration file not found: {path}")
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration file: {e}") from e

        # Handle empty files
        if config is None:
            logger.debug(f"Configuration file is empty: {path}")
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(config).__name__}"
            )

        logger.debug(f"Loaded configuration from {path}")
        return config

    def validate(self, config: dict[str, Any]) -> None:
        """
        Validate configuration structure and values.

        Unknown keys are logged and ignored.

        Raises:
            ConfigError: If a known key has the wrong type or an out-of-range value
        """
        if not isinstance(config, dict):
            raise ConfigError(
                f"Configuration must be a dictionary, got {type(config).__name__}"
            )

        for key, value in config.items():
            if key not in VALID_KEYS:
                logger.warning(f"Ignoring unknown configuration key '{key}'")
                continue

            expected_type = VALID_KEYS[key]
            # bool is a subclass of int; reject it for numeric keys
            wrong_bool = isinstance(value, bool) and expected_type is not bool
            if wrong_bool or not isinstance(value, expected_type):
                if isinstance(expected_type, tuple):
                    type_name = " or ".join(t.__name__ for t in expected_type)
                else:
                    type_name = expected_type.__name__
                raise ConfigError(
                    f"Invalid type for '{key}': expected {type_name}, "
                    f"got {type(value).__name__}"
                )

        # Positive integer values
        for key in (
            "log_retention_count",
            "auth_timeout",
            "api_page_size",
            "api_batch_size",
            "api_max_retries",
        ):
            if key in config and config[key] < 1:
                raise ConfigError(f"{key} must be >= 1, got {config[key]}")

        if config.get("api_page_size", 1) > MAX_API_PAGE_SIZE:
            raise ConfigError(
                f"api_page_size must be <= {MAX_API_PAGE_SIZE}, "
                f"got {config['api_page_size']}"
            )
        if config.get("api_batch_size", 1) > MAX_API_BATCH_SIZE:
            raise ConfigError(
                f"api_batch_size must be <= {MAX_API_BATCH_SIZE}, "
                f"got {config['api_batch_size']}"
            )

        # Positive float values (delays)
        for key in ("api_initial_retry_delay", "api_max_retry_delay"):
            if key in config and config[key] <= 0:
                raise ConfigError(f"{key} must be > 0, got {config[key]}")

        for key in ("note_marker", "note_timestamp_format"):
            if key in config and not config[key].strip():
                raise ConfigError(f"{key} cannot be empty")

    def load_and_validate(self) -> dict[str, Any]:
        """
        Load configuration and validate it.

        Raises:
            ConfigError: If configuration cannot be loaded or is invalid
        """
        config = self.load()
        if config:
            self.validate(config)
        return config
