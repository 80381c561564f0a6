"""
contact_reminder.config - Configuration management module

Contains configuration loading, validation, and the default config file.
"""

from contact_reminder.config.generator import (
    generate_default_config,
    save_config_file,
)
from contact_reminder.config.loader import (
    DEFAULT_CONFIG_FILE,
    ConfigError,
    ConfigLoader,
)

__all__ = [
    "ConfigLoader",
    "ConfigError",
    "DEFAULT_CONFIG_FILE",
    "generate_default_config",
    "save_config_file",
]
