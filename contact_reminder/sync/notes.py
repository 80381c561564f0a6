"""
Note journal kept in a directory contact's notes field.

The journal is one text field, newest entry first. Each entry is written as:

    <marker> <timestamp>
    <text>
    (blank line)

Appending only ever prepends; prior content stays intact below the new entry.
Only replace_all shrinks the field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from contact_reminder.errors import EmptyInput, NotFound
from contact_reminder.sync.events import (
    EVENT_NOTE_APPENDED,
    EVENT_NOTE_REPLACED,
    ChangeEvent,
)

if TYPE_CHECKING:
    from contact_reminder.api.directory import DirectoryClient
    from contact_reminder.sync.engine import SyncEngine

DEFAULT_NOTE_MARKER = "📝"
DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoteEntry:
    """
    One journal entry.

    Attributes:
        body: Entry text
        timestamp: When the entry was written; None for free-form text that
            predates the journal or a header that could not be parsed
    """

    body: str
    timestamp: Optional[datetime] = None


def ensure_note_text(text: Optional[str]) -> str:
    """
    Validate note text before any external call.

    Returns:
        The text with surrounding whitespace removed

    Raises:
        EmptyInput: If the text is missing or blank
    """
    if text is None or not text.strip():
        raise EmptyInput("Note text cannot be empty")
    return text.strip()


def compose_entry(
    text: str,
    timestamp: datetime,
    marker: str = DEFAULT_NOTE_MARKER,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> str:
    """Render a single journal entry, ready to be prepended."""
    return f"{marker} {timestamp.strftime(timestamp_format)}\n{text}\n\n"


def _parse_header(
    line: str, prefix: str, timestamp_format: str
) -> Optional[datetime]:
    if not line.startswith(prefix):
        return None
    try:
        return datetime.strptime(line[len(prefix) :].strip(), timestamp_format)
    except ValueError:
        return None


def parse_entries(
    text: Optional[str],
    marker: str = DEFAULT_NOTE_MARKER,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> list[NoteEntry]:
    """
    Split a journal field into entries, newest first.

    Entry bodies may contain blank lines; a new entry starts only at a line
    holding the marker followed by a timestamp in ``timestamp_format``. A
    marker line without a valid timestamp is ordinary body text. Text before
    the first header becomes an entry without a timestamp.
    """
    if not text:
        return []

    prefix = f"{marker} "
    entries: list[NoteEntry] = []
    timestamp: Optional[datetime] = None
    started = False
    body_lines: list[str] = []

    def flush() -> None:
        body = "\n".join(body_lines).strip("\n")
        if not started and not body.strip():
            return
        entries.append(NoteEntry(body=body, timestamp=timestamp))

    for line in text.splitlines():
        header = _parse_header(line, prefix, timestamp_format)
        if header is None:
            body_lines.append(line)
            continue
        flush()
        timestamp = header
        started = True
        body_lines = []
    flush()

    return entries


class NoteJournal:
    """
    Append-only note history for cached contacts.

    Resolves cache ids to directory contacts through the sync engine and
    writes through the directory client. Change events are published only
    after the directory confirms the write.

    Usage:
        journal = NoteJournal(directory, engine)
        journal.append_entry(record.id, "Caught up over coffee")
        for entry in journal.entries(record.id):
            print(entry.timestamp, entry.body)
    """

    def __init__(self, directory: DirectoryClient, engine: SyncEngine):
        self.directory = directory
        self.engine = engine

    def _directory_id(self, contact_id: str) -> str:
        record = self.engine.get_contact(contact_id)
        if not record.directory_id:
            raise NotFound(f"Contact {contact_id} has no directory entry")
        self.engine.ensure_access()
        return record.directory_id

    def append_entry(self, contact_id: str, text: str) -> str:
        """
        Prepend a timestamped entry to a contact's journal.

        Returns:
            The full journal text confirmed by the directory

        Raises:
            EmptyInput: If text is blank (before any lookup)
            NotFound: If the contact is not cached or missing in the directory
            PermissionDenied: If directory access is not granted
        """
        body = ensure_note_text(text)
        directory_id = self._directory_id(contact_id)

        notes = self.directory.append_note(directory_id, body)
        self.engine.publish(ChangeEvent(EVENT_NOTE_APPENDED, contact_id))
        return notes

    def replace_all(self, contact_id: str, text: str) -> str:
        """
        Overwrite a contact's whole journal. There is no undo.

        Returns:
            The journal text confirmed by the directory
        """
        directory_id = self._directory_id(contact_id)

        notes = self.directory.replace_note(directory_id, text)
        logger.warning(f"Journal for contact {contact_id} was replaced")
        self.engine.publish(ChangeEvent(EVENT_NOTE_REPLACED, contact_id))
        return notes

    def entries(self, contact_id: str) -> list[NoteEntry]:
        """Read a contact's journal entries, newest first."""
        directory_id = self._directory_id(contact_id)
        summary = self.directory.fetch_contact(directory_id)
        return parse_entries(
            summary.notes,
            marker=self.directory.note_marker,
            timestamp_format=self.directory.note_timestamp_format,
        )
