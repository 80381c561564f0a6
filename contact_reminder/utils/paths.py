"""
Locations of contact-reminder's files.

Everything lives in one configuration directory (``~/.contact-reminder`` by
default, or ``CONTACT_REMINDER_CONFIG_DIR``):

    config.yaml       optional settings (see contact_reminder.config)
    credentials.json  OAuth client secrets downloaded from Google Cloud
    token.json        stored OAuth token (owner-only permissions)
    contacts.db       SQLite cache of imported contacts
    settings.json     user preferences such as the saved group order
    logs/             daily log files

The cache and the settings file may be moved elsewhere with the
``database_path`` and ``settings_path`` configuration keys.
"""

from __future__ import annotations

import os
from pathlib import Path

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".contact-reminder"

# Environment variable for overriding config directory
CONFIG_DIR_ENV_VAR = "CONTACT_REMINDER_CONFIG_DIR"

DEFAULT_DATABASE_FILE = "contacts.db"
DEFAULT_SETTINGS_FILE = "settings.json"

# SQLite name for a private in-memory database
MEMORY_DATABASE = ":memory:"


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Resolve the configuration directory path.

    Priority:
        1. Explicit config_dir parameter (if provided)
        2. CONTACT_REMINDER_CONFIG_DIR environment variable
        3. Default directory (~/.contact-reminder)

    Args:
        config_dir: Optional explicit configuration directory path.
                   Can be a Path object or string.

    Returns:
        Resolved Path to the configuration directory (expanduser and resolve applied)
    """
    if config_dir is not None:
        return Path(config_dir).expanduser().resolve()

    env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    return DEFAULT_CONFIG_DIR.expanduser().resolve()


def resolve_store_path(
    config_dir: Path, configured: Path | str | None, default_name: str
) -> Path:
    """
    Locate the contact cache or the settings file.

    Args:
        config_dir: Resolved configuration directory
        configured: Path from the configuration file, if any. Relative paths
            are taken relative to config_dir; ``:memory:`` is kept as is.
        default_name: File name used when nothing is configured

    Returns:
        Path of the store
    """
    if not configured:
        return config_dir / default_name
    if str(configured) == MEMORY_DATABASE:
        return Path(MEMORY_DATABASE)

    path = Path(configured).expanduser()
    if not path.is_absolute():
        path = config_dir / path
    return path
