"""
Configuration file generator for the contact reminder.

Provides functionality to generate a default configuration file with
documentation for every available option.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def generate_default_config() -> str:
    """
    Generate default YAML configuration with all options documented.

    Every option is commented out, so the generated file loads as an
    empty configuration until the user edits it.

    Example:
        config_yaml = generate_default_config()
        with open("config.yaml", "w") as f:
            f.write(config_yaml)
    """
    return """# Contact Reminder Configuration
# ==============================
#
# This file sets default options for contact-reminder.
# CLI arguments will always override these values.
#
# To use this configuration:
#   1. Save as ~/.contact-reminder/config.yaml (or custom location)
#   2. Uncomment and modify options as needed
#   3. Run contact-reminder commands normally

# Logging Options
# ---------------

# Enable verbose output with detailed logging
# Default: false
# verbose: true

# Directory for log files
# Default: ~/.contact-reminder/logs
# log_dir: /path/to/logs

# Number of daily log files to keep
# Default: 10
# log_retention_count: 10


# Storage Options
# ---------------

# SQLite contact cache
# Default: ~/.contact-reminder/contacts.db
# Relative paths are taken from the configuration directory.
# database_path: /path/to/contacts.db

# Settings file holding the group display order
# Default: ~/.contact-reminder/settings.json
# settings_path: /path/to/settings.json


# Authorization
# -------------

# Open the browser sign-in flow automatically when no stored token exists.
# When false, run 'contact-reminder auth' first.
# Default: false
# interactive_auth: false

# Seconds to wait for the browser sign-in to complete
# Default: 120
# auth_timeout: 120


# Google People API
# -----------------

# Contacts fetched per page (max 1000)
# Default: 100
# api_page_size: 100

# Contacts fetched per batch request when listing a group (max 200)
# Default: 200
# api_batch_size: 200

# Retries for rate-limited or failed requests
# Default: 5
# api_max_retries: 5

# Initial and maximum delay between retries, in seconds
# Default: 1.0 and 60.0
# api_initial_retry_delay: 1.0
# api_max_retry_delay: 60.0


# Note Journal
# ------------

# Marker that starts each journal entry
# Default: "📝"
# note_marker: "📝"

# strftime format of the entry timestamp
# Default: "%Y-%m-%d %H:%M"
# note_timestamp_format: "%Y-%m-%d %H:%M"
"""


def save_config_file(
    config_path: Path, overwrite: bool = False
) -> tuple[bool, str | None]:
    """
    Save default configuration file to specified path.

    Creates parent directories if they don't exist and saves
    the configuration with secure permissions.

    Args:
        config_path: Path where the config file should be saved
        overwrite: If True, overwrite existing file. If False, fail if file exists.

    Returns:
        Tuple of (success, error_message); error_message is None on success
    """
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not overwrite:
        return (
            False,
            f"Configuration file already exists: {config_path}\n"
            "Use --force to overwrite.",
        )

    try:
        config_path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)
        config_path.write_text(generate_default_config(), encoding="utf-8")
        config_path.chmod(0o600)
    except OSError as e:
        error_msg = f"Failed to create configuration file: {e}"
        logger.error(error_msg)
        return (False, error_msg)

    logger.info(f"Created configuration file: {config_path}")
    return (True, None)
