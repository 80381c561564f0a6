"""
Sync engine between the contact directory and the local cache.

Owns the merged in-memory contact set. On the first fetch against an empty
cache it imports every directory contact in the background; afterwards the
cache is authoritative and the directory is not consulted again for the
contact list.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from contact_reminder.api.directory import AccessStatus, DirectoryClient
from contact_reminder.errors import NotFound, PermissionDenied
from contact_reminder.storage.db import ContactDatabase
from contact_reminder.sync.contact import ContactRecord, ReminderGroup
from contact_reminder.sync.events import (
    EVENT_CACHE_RESET,
    EVENT_CONTACT_DELETED,
    EVENT_CONTACT_SAVED,
    EVENT_GROUP_UPDATED,
    EVENT_IMPORTED,
    ChangeEvent,
    EventBus,
)
from contact_reminder.sync.group import GroupDescriptor

logger = logging.getLogger(__name__)


class ImportState(str, Enum):
    """Lifecycle of the bulk import."""

    EMPTY = "empty"
    IMPORTING = "importing"
    POPULATED = "populated"


@dataclass
class ImportResult:
    """
    Outcome of one bulk import.

    Attributes:
        imported: Number of records written to the cache
        contacts: Cache contents after the import, ordered by name
        started_at: When the import began
        finished_at: When the cache write and reload completed
    """

    imported: int = 0
    contacts: list[ContactRecord] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


class SyncEngine:
    """
    Reconciles the directory with the local cache.

    The import runs on a single background worker. At most one import is in
    flight; fetch_all calls made while it runs wait for that same import
    rather than starting another. current_contacts() never waits.

    Usage:
        engine = SyncEngine(directory, database)
        contacts = engine.fetch_all()
        engine.update_group(contacts[0].id, ReminderGroup.WEEKLY)
    """

    def __init__(
        self,
        directory: DirectoryClient,
        database: ContactDatabase,
        events: Optional[EventBus] = None,
    ):
        """
        Initialize the sync engine.

        Args:
            directory: Client for the external contact directory
            database: Initialized local cache
            events: Bus for change events (default: a private bus)
        """
        self.directory = directory
        self.database = database
        self.events = events or EventBus()

        # Guards state transitions only; never held while waiting on I/O
        # from the directory
        self._lock = threading.Lock()
        self._access_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="contact-import"
        )
        self._import_future: Optional[Future[ImportResult]] = None
        self._state = ImportState.EMPTY
        self._contacts: list[ContactRecord] = []
        self._groups: list[GroupDescriptor] = []

    def __repr__(self) -> str:
        return (
            f"SyncEngine(state={self._state.value!r}, "
            f"contacts={len(self._contacts)}, "
            f"access={self.directory.access_status.value!r})"
        )

    # =========================================================================
    # Access
    # =========================================================================

    def ensure_access(self) -> None:
        """
        Request directory access once, then require that it was granted.

        Raises:
            PermissionDenied: If access is denied
        """
        with self._access_lock:
            if self.directory.access_status is AccessStatus.NOT_DETERMINED:
                self.directory.request_access()

        if not self.directory.access_granted:
            raise PermissionDenied(
                "Access to contacts was denied. "
                "Run 'contact-reminder auth' to grant access."
            )

    # =========================================================================
    # Import
    # =========================================================================

    @property
    def import_state(self) -> ImportState:
        return self._state

    def _start_import(self) -> Optional[Future[ImportResult]]:
        """
        Return the in-flight import, starting one if the cache is empty.

        Returns:
            Future of the import, or None if the cache is already populated
        """
        with self._lock:
            if self._import_future is not None:
                logger.debug("Import already in progress, waiting for it")
                return self._import_future

            if not self.database.is_empty():
                return None

            logger.info("Contact cache is empty, importing from directory")
            self._state = ImportState.IMPORTING
            self._import_future = self._executor.submit(self._run_import)
            return self._import_future

    def _run_import(self) -> ImportResult:
        """Worker body: enumerate the directory, persist, reload."""
        result = ImportResult(started_at=datetime.now())

        try:
            summaries = self.directory.list_contacts()
            records = [ContactRecord.from_summary(summary) for summary in summaries]
            result.imported = self.database.insert_contacts(records)
            result.contacts = self.database.get_all_contacts()
        except Exception as e:
            logger.error(f"Contact import failed: {e}")
            with self._lock:
                self._state = ImportState.EMPTY
                self._import_future = None
            raise

        result.finished_at = datetime.now()
        with self._lock:
            self._contacts = list(result.contacts)
            self._state = (
                ImportState.POPULATED if result.contacts else ImportState.EMPTY
            )
            self._import_future = None

        logger.info(
            f"Imported {result.imported} contacts in "
            f"{result.duration_seconds:.1f}s"
        )
        self.publish(ChangeEvent(EVENT_IMPORTED))
        return result

    def import_all(self) -> ImportResult:
        """
        Import every directory contact into an empty cache.

        Each contact becomes a record in the default group, all written in
        one transaction. Does nothing if the cache already holds records.

        Returns:
            ImportResult of the import that ran (or was already running);
            imported is 0 when the cache was already populated

        Raises:
            PermissionDenied: If directory access is denied
            DirectoryError: If enumerating the directory fails
            StorageFailure: If the cache write fails
        """
        self.ensure_access()

        future = self._start_import()
        if future is None:
            logger.debug("Contact cache already populated, import skipped")
            return ImportResult(contacts=self._reload())
        return future.result()

    def fetch_all(self) -> list[ContactRecord]:
        """
        Load the merged contact set.

        Imports from the directory if the cache is empty; otherwise reads
        the cache only.

        Returns:
            All cached records, ordered by name

        Raises:
            PermissionDenied: If directory access is denied (nothing changes)
            DirectoryError: If an import was needed and enumeration failed
            StorageFailure: If the cache cannot be read or written
        """
        self.ensure_access()

        future = self._start_import()
        if future is not None:
            return list(future.result().contacts)
        return self._reload()

    def _reload(self) -> list[ContactRecord]:
        contacts = self.database.get_all_contacts()
        with self._lock:
            self._contacts = contacts
            if self._import_future is None:
                self._state = (
                    ImportState.POPULATED if contacts else ImportState.EMPTY
                )
        return list(contacts)

    # =========================================================================
    # Queries
    # =========================================================================

    def current_contacts(self) -> list[ContactRecord]:
        """Snapshot of the in-memory contact set. Never waits for an import."""
        with self._lock:
            return list(self._contacts)

    def get_contact(self, contact_id: str) -> ContactRecord:
        """
        Look up a cached record.

        Raises:
            NotFound: If no cached record has this id
        """
        record = self.database.get_contact(contact_id)
        if record is None:
            raise NotFound(f"Contact not found: {contact_id}")
        return record

    def contacts_by_group(self) -> dict[ReminderGroup, list[ContactRecord]]:
        """Current contacts keyed by reminder group, non-empty groups only."""
        contacts = self.current_contacts()
        grouped: dict[ReminderGroup, list[ContactRecord]] = {}
        for group in ReminderGroup:
            members = [contact for contact in contacts if contact.group is group]
            if members:
                grouped[group] = members
        return grouped

    def refresh_groups(self) -> list[GroupDescriptor]:
        """
        Rebuild the directory group list.

        Raises:
            PermissionDenied: If directory access is denied
        """
        self.ensure_access()
        groups = self.directory.list_groups()
        with self._lock:
            self._groups = list(groups)
        logger.debug(f"Refreshed {len(groups)} directory groups")
        return list(groups)

    def current_groups(self) -> list[GroupDescriptor]:
        with self._lock:
            return list(self._groups)

    # =========================================================================
    # Mutations
    # =========================================================================

    def update_group(
        self, contact_id: str, new_group: Union[ReminderGroup, str]
    ) -> list[ContactRecord]:
        """
        Move a contact to another reminder group.

        Returns:
            The reloaded contact set

        Raises:
            ValueError: If new_group is not a reminder group
            NotFound: If no cached record has this id
            PermissionDenied: If directory access is denied
        """
        if not isinstance(new_group, ReminderGroup):
            new_group = ReminderGroup.parse(new_group)
        self.ensure_access()

        self.database.update_group(contact_id, new_group)
        logger.info(f"Moved contact {contact_id} to {new_group.value}")

        contacts = self.fetch_all()
        self.publish(ChangeEvent(EVENT_GROUP_UPDATED, contact_id))
        return contacts

    def save_contact(self, record: ContactRecord) -> list[ContactRecord]:
        """
        Create or overwrite a cached record.

        Returns:
            The reloaded contact set
        """
        self.ensure_access()

        self.database.upsert_contact(record)
        logger.info(f"Saved contact {record.id}")

        contacts = self.fetch_all()
        self.publish(ChangeEvent(EVENT_CONTACT_SAVED, record.id))
        return contacts

    def delete_contact(self, contact_id: str) -> list[ContactRecord]:
        """
        Delete a cached record. The directory contact is left untouched.

        Deleting the last record does not trigger a re-import.

        Returns:
            The reloaded contact set

        Raises:
            NotFound: If no cached record has this id
        """
        if not self.database.delete_contact(contact_id):
            raise NotFound(f"Contact not found: {contact_id}")
        logger.info(f"Deleted contact {contact_id} from cache")

        contacts = self._reload()
        self.publish(ChangeEvent(EVENT_CONTACT_DELETED, contact_id))
        return contacts

    def reset(self) -> int:
        """
        Clear the cache so the next fetch re-imports from the directory.

        Waits for an in-flight import to finish first.

        Returns:
            Number of records removed
        """
        with self._lock:
            future = self._import_future
        if future is not None:
            wait([future])

        removed = self.database.clear_all_contacts()
        with self._lock:
            self._contacts = []
            self._state = ImportState.EMPTY
        logger.warning(f"Cleared {removed} contacts from cache")

        self.publish(ChangeEvent(EVENT_CACHE_RESET))
        return removed

    # =========================================================================
    # Change events
    # =========================================================================

    def subscribe(self, listener: Callable[[ChangeEvent], None]) -> None:
        self.events.subscribe(listener)

    def unsubscribe(self, listener: Callable[[ChangeEvent], None]) -> None:
        self.events.unsubscribe(listener)

    def publish(self, event: ChangeEvent) -> None:
        logger.debug(f"Publishing {event.kind} event")
        self.events.publish(event)

    # =========================================================================
    # Status
    # =========================================================================

    def get_status(self) -> dict[str, Any]:
        """
        Get engine status.

        Returns:
            Dictionary with access_status, import_state, cached_contacts
            and directory_groups
        """
        return {
            "access_status": self.directory.access_status.value,
            "import_state": self._state.value,
            "cached_contacts": self.database.get_contact_count(),
            "directory_groups": len(self.current_groups()),
        }

    def shutdown(self) -> None:
        """Stop the import worker, waiting for a running import to finish."""
        self._executor.shutdown(wait=True)
