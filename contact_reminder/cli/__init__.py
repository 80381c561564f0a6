"""CLI package for contact_reminder."""

from contact_reminder.cli.formatters import (
    format_contact_line,
    show_birthday_entries,
    show_contacts_by_group,
    show_groups,
    show_note_entries,
)
from contact_reminder.cli.main import (
    GROUP_CHOICES,
    cli,
    get_app,
    get_config_dir,
    resolve_contact,
)
from contact_reminder.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "GROUP_CHOICES",
    "cli",
    "format_contact_line",
    "get_app",
    "get_config_dir",
    "resolve_contact",
    "show_birthday_entries",
    "show_contacts_by_group",
    "show_groups",
    "show_note_entries",
]
