"""
SQLite database module for the local contact cache.

Provides persistent storage for cached contact records with their reminder
groups, schema versioning with in-place migrations, and a destructive reset
when a migration cannot be applied.
"""

import logging
import sqlite3
import threading
from collections.abc import Generator, Iterable
from contextlib import contextmanager, nullcontext
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from contact_reminder.errors import MigrationFailure, NotFound, StorageFailure
from contact_reminder.sync.contact import (
    DEFAULT_REMINDER_GROUP,
    Birthday,
    ContactRecord,
    ReminderGroup,
)

logger = logging.getLogger(__name__)

# Ordered schema migrations; MIGRATIONS[n] upgrades user_version n-1 to n
MIGRATIONS: dict[int, str] = {
    1: """
    CREATE TABLE IF NOT EXISTS contacts (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        phone_number TEXT,
        birthday TEXT,
        contact_group TEXT NOT NULL DEFAULT 'Never',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_contacts_name ON contacts(name);
    """,
    2: """
    ALTER TABLE contacts ADD COLUMN directory_id TEXT;

    CREATE INDEX IF NOT EXISTS idx_contacts_directory_id ON contacts(directory_id);
    """,
}

SCHEMA_VERSION = max(MIGRATIONS)

CONTACT_COLUMNS = "id, name, phone_number, birthday, contact_group, directory_id"


class ContactDatabase:
    """
    SQLite store of cached contact records.

    Every write runs in a single transaction: it either commits completely
    or rolls back, leaving the prior state intact. sqlite3 errors surface as
    StorageFailure.

    Usage:
        db = ContactDatabase('/path/to/contacts.db')
        db.initialize()

        # Or use in-memory for testing:
        db = ContactDatabase(':memory:')
        db.initialize()
    """

    def __init__(self, db_path: str):
        """
        Initialize the database manager.

        Args:
            db_path: Path to SQLite database file, or ':memory:' for in-memory database
        """
        self.db_path = str(db_path)
        self._shared_connection: Optional[sqlite3.Connection] = None
        self._shared_lock = threading.RLock()

    @property
    def is_memory(self) -> bool:
        return self.db_path == ":memory:"

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get a database connection.

        For in-memory databases, returns a shared connection so the schema
        persists across operations. For file databases, creates a new
        connection each time.
        """
        if self.is_memory:
            if self._shared_connection is None:
                self._shared_connection = sqlite3.connect(
                    ":memory:", check_same_thread=False
                )
                self._shared_connection.row_factory = sqlite3.Row
            return self._shared_connection

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        Commits on success and rolls back on any error.

        Usage:
            with db.connection() as conn:
                conn.execute("SELECT * FROM contacts")
        """
        with self._shared_lock if self.is_memory else nullcontext():
            conn = self._get_connection()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                if not self.is_memory:
                    conn.close()

    @contextmanager
    def _storage_operation(
        self, operation_name: str
    ) -> Generator[sqlite3.Connection, None, None]:
        """Run one all-or-nothing operation, mapping sqlite3 errors to StorageFailure."""
        try:
            with self.connection() as conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"{operation_name} failed: {e}")
            raise StorageFailure(f"{operation_name} failed: {e}") from e

    # =========================================================================
    # Schema Management
    # =========================================================================

    def get_schema_version(self) -> int:
        """Read the schema version stored in PRAGMA user_version."""
        with self._storage_operation("get_schema_version") as conn:
            result: int = conn.execute("PRAGMA user_version").fetchone()[0]
            return result

    def _migrate(self) -> None:
        """
        Bring the schema up to SCHEMA_VERSION, preserving existing rows.

        Raises:
            MigrationFailure: If any step fails or the store is newer than
                this code supports
        """
        try:
            with self.connection() as conn:
                current: int = conn.execute("PRAGMA user_version").fetchone()[0]

            if current > SCHEMA_VERSION:
                raise MigrationFailure(
                    f"Database schema version {current} is newer than "
                    f"supported version {SCHEMA_VERSION}"
                )

            for version in range(current + 1, SCHEMA_VERSION + 1):
                logger.debug(f"Applying schema migration {version}")
                with self.connection() as conn:
                    # executescript commits any pending transaction first, so
                    # each step runs as its own explicit transaction
                    conn.executescript(
                        "BEGIN;\n"
                        f"{MIGRATIONS[version]}\n"
                        f"PRAGMA user_version = {version};\n"
                        "COMMIT;"
                    )
                logger.info(f"Migrated contact cache to schema version {version}")

        except sqlite3.Error as e:
            raise MigrationFailure(f"Schema migration failed: {e}") from e

    def _destroy(self) -> None:
        """Delete the store so it can be recreated from scratch."""
        if self.is_memory:
            with self._shared_lock:
                if self._shared_connection is not None:
                    self._shared_connection.close()
                    self._shared_connection = None
            return

        for suffix in ("", "-journal", "-wal", "-shm"):
            path = Path(self.db_path + suffix)
            if path.exists():
                path.unlink()

    def initialize(self) -> None:
        """
        Create or upgrade the database schema.

        If the upgrade fails the store is destroyed and recreated empty,
        which loses cached data. The next fetch re-imports from the
        directory.

        Raises:
            MigrationFailure: If the store cannot be recreated either
        """
        if not self.is_memory:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._migrate()
            return
        except MigrationFailure as e:
            logger.error(f"{e}; deleting and recreating the contact cache")

        try:
            self._destroy()
            self._migrate()
        except (MigrationFailure, OSError) as e:
            logger.critical(f"Failed to recreate contact cache: {e}")
            raise MigrationFailure(f"Failed to recreate contact cache: {e}") from e

        logger.warning("Contact cache was reset; cached data was lost")

    # =========================================================================
    # Contact Operations
    # =========================================================================

    @staticmethod
    def _to_row(record: ContactRecord) -> tuple[Any, ...]:
        return (
            record.id,
            record.name,
            record.phone_number,
            record.birthday.to_storage() if record.birthday else None,
            record.group.value,
            record.directory_id,
        )

    @staticmethod
    def _from_row(row: sqlite3.Row) -> ContactRecord:
        birthday = None
        if row["birthday"]:
            try:
                birthday = Birthday.from_storage(row["birthday"])
            except ValueError as e:
                logger.warning(f"Ignoring birthday of contact {row['id']}: {e}")

        try:
            group = ReminderGroup(row["contact_group"])
        except ValueError:
            logger.warning(
                f"Unknown group {row['contact_group']!r} for contact {row['id']}, "
                f"using {DEFAULT_REMINDER_GROUP.value}"
            )
            group = DEFAULT_REMINDER_GROUP

        return ContactRecord(
            id=row["id"],
            name=row["name"],
            phone_number=row["phone_number"],
            birthday=birthday,
            group=group,
            directory_id=row["directory_id"],
        )

    def insert_contact(self, record: ContactRecord) -> None:
        """
        Insert a new contact record.

        Raises:
            StorageFailure: If the write fails (including a duplicate id)
        """
        self.insert_contacts([record])

    def insert_contacts(self, records: Iterable[ContactRecord]) -> int:
        """
        Insert several contact records in one transaction.

        Either every record is written or none is.

        Returns:
            Number of records inserted

        Raises:
            StorageFailure: If any write fails
        """
        rows = [self._to_row(record) for record in records]
        now = _now()

        with self._storage_operation("insert_contacts") as conn:
            conn.executemany(
                f"""
                INSERT INTO contacts ({CONTACT_COLUMNS}, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,  # nosec B608 - column list is a module constant
                [row + (now, now) for row in rows],
            )
        return len(rows)

    def get_contact(self, contact_id: str) -> Optional[ContactRecord]:
        """
        Get a contact record by id.

        Returns:
            ContactRecord, or None if not found
        """
        with self._storage_operation("get_contact") as conn:
            row = conn.execute(
                f"SELECT {CONTACT_COLUMNS} FROM contacts WHERE id = ?",  # nosec B608
                (contact_id,),
            ).fetchone()
            return self._from_row(row) if row else None

    def get_all_contacts(self) -> list[ContactRecord]:
        """
        Get all contact records, ordered by name.

        Returns:
            List of all cached contact records
        """
        with self._storage_operation("get_all_contacts") as conn:
            cursor = conn.execute(
                f"SELECT {CONTACT_COLUMNS} FROM contacts "  # nosec B608
                "ORDER BY name COLLATE NOCASE, id"
            )
            return [self._from_row(row) for row in cursor.fetchall()]

    def update_contact(self, record: ContactRecord) -> None:
        """
        Overwrite the fields of an existing contact record.

        The id itself never changes.

        Raises:
            NotFound: If no record has this id
            StorageFailure: If the write fails
        """
        row = self._to_row(record)
        with self._storage_operation("update_contact") as conn:
            cursor = conn.execute(
                """
                UPDATE contacts SET
                    name = ?,
                    phone_number = ?,
                    birthday = ?,
                    contact_group = ?,
                    directory_id = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                row[1:] + (_now(), record.id),
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Contact not found: {record.id}")

    def upsert_contact(self, record: ContactRecord) -> None:
        """
        Insert a record, or overwrite it if the id already exists.

        Raises:
            StorageFailure: If the write fails
        """
        now = _now()
        with self._storage_operation("upsert_contact") as conn:
            conn.execute(
                f"""
                INSERT INTO contacts ({CONTACT_COLUMNS}, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    phone_number = excluded.phone_number,
                    birthday = excluded.birthday,
                    contact_group = excluded.contact_group,
                    directory_id = excluded.directory_id,
                    updated_at = excluded.updated_at
                """,  # nosec B608 - column list is a module constant
                self._to_row(record) + (now, now),
            )

    def update_group(self, contact_id: str, group: ReminderGroup) -> None:
        """
        Change the reminder group of a contact record.

        Raises:
            NotFound: If no record has this id
            StorageFailure: If the write fails
        """
        with self._storage_operation("update_group") as conn:
            cursor = conn.execute(
                "UPDATE contacts SET contact_group = ?, updated_at = ? WHERE id = ?",
                (group.value, _now(), contact_id),
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Contact not found: {contact_id}")

    def delete_contact(self, contact_id: str) -> bool:
        """
        Delete a contact record.

        Returns:
            True if a record was deleted, False if not found
        """
        with self._storage_operation("delete_contact") as conn:
            cursor = conn.execute("DELETE FROM contacts WHERE id = ?", (contact_id,))
            return cursor.rowcount > 0

    # =========================================================================
    # Utility Operations
    # =========================================================================

    def get_contact_count(self) -> int:
        """Get the total number of cached contact records."""
        with self._storage_operation("get_contact_count") as conn:
            result: int = conn.execute("SELECT COUNT(*) FROM contacts").fetchone()[0]
            return result

    def is_empty(self) -> bool:
        """Check whether the cache holds no records at all."""
        return self.get_contact_count() == 0

    def clear_all_contacts(self) -> int:
        """
        Delete all contact records (use with caution).

        Returns:
            Number of records deleted
        """
        with self._storage_operation("clear_all_contacts") as conn:
            cursor = conn.execute("DELETE FROM contacts")
            return cursor.rowcount

    def close(self) -> None:
        """Close the shared in-memory connection, if any."""
        with self._shared_lock:
            if self._shared_connection is not None:
                self._shared_connection.close()
                self._shared_connection = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
