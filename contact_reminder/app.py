"""
Process wiring for the contact reminder.

The contact cache is opened once, here, and handed to every component
that needs it. Nothing else constructs a ContactDatabase.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from contact_reminder.api.directory import DirectoryClient
from contact_reminder.api.people_api import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_PAGE_SIZE,
    PeopleAPI,
)
from contact_reminder.auth.google_auth import DEFAULT_AUTH_TIMEOUT, GoogleAuth
from contact_reminder.storage.db import ContactDatabase
from contact_reminder.storage.settings import SettingsStore
from contact_reminder.sync.engine import SyncEngine
from contact_reminder.sync.events import EventBus
from contact_reminder.sync.group_order import GroupOrderStore
from contact_reminder.sync.notes import (
    DEFAULT_NOTE_MARKER,
    DEFAULT_TIMESTAMP_FORMAT,
    NoteJournal,
)
from contact_reminder.utils import resolve_config_dir
from contact_reminder.utils.paths import (
    DEFAULT_DATABASE_FILE,
    DEFAULT_SETTINGS_FILE,
    resolve_store_path,
)

logger = logging.getLogger(__name__)


@dataclass
class ContactReminderApp:
    """The wired components of one process."""

    config_dir: Path
    auth: GoogleAuth
    directory: DirectoryClient
    database: ContactDatabase
    settings: SettingsStore
    engine: SyncEngine
    group_order: GroupOrderStore
    journal: NoteJournal

    def close(self) -> None:
        self.engine.shutdown()
        self.database.close()


def build_app(
    config: Optional[dict[str, Any]] = None,
    config_dir: Optional[Path] = None,
) -> ContactReminderApp:
    """
    Construct and connect every component.

    Args:
        config: Validated configuration values (see ConfigLoader)
        config_dir: Configuration directory (default: resolved from env/home)

    Raises:
        MigrationFailure: If the contact cache cannot be opened or recreated
    """
    config = config or {}
    config_dir = resolve_config_dir(config_dir)

    database_path = resolve_store_path(
        config_dir, config.get("database_path"), DEFAULT_DATABASE_FILE
    )
    settings_path = resolve_store_path(
        config_dir, config.get("settings_path"), DEFAULT_SETTINGS_FILE
    )

    auth = GoogleAuth(
        config_dir=config_dir,
        auth_timeout=config.get("auth_timeout", DEFAULT_AUTH_TIMEOUT),
    )

    def api_factory(credentials: Any) -> PeopleAPI:
        return PeopleAPI(
            credentials,
            page_size=config.get("api_page_size", DEFAULT_PAGE_SIZE),
            batch_size=config.get("api_batch_size", DEFAULT_BATCH_SIZE),
            max_retries=config.get("api_max_retries", DEFAULT_MAX_RETRIES),
            initial_retry_delay=config.get(
                "api_initial_retry_delay", DEFAULT_INITIAL_RETRY_DELAY
            ),
            max_retry_delay=config.get("api_max_retry_delay", DEFAULT_MAX_RETRY_DELAY),
        )

    directory = DirectoryClient(
        auth,
        api_factory=api_factory,
        interactive=config.get("interactive_auth", False),
        note_marker=config.get("note_marker", DEFAULT_NOTE_MARKER),
        note_timestamp_format=config.get(
            "note_timestamp_format", DEFAULT_TIMESTAMP_FORMAT
        ),
    )

    database = ContactDatabase(str(database_path))
    database.initialize()
    logger.debug(f"Opened contact cache at {database_path}")

    settings = SettingsStore(settings_path)
    engine = SyncEngine(directory, database, events=EventBus())

    return ContactReminderApp(
        config_dir=config_dir,
        auth=auth,
        directory=directory,
        database=database,
        settings=settings,
        engine=engine,
        group_order=GroupOrderStore(settings),
        journal=NoteJournal(directory, engine),
    )
