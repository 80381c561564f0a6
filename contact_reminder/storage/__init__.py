"""
contact_reminder.storage - Local persistence

SQLite contact cache and the JSON settings store.
"""

from contact_reminder.storage.db import ContactDatabase
from contact_reminder.storage.settings import SettingsStore

__all__ = ["ContactDatabase", "SettingsStore"]
