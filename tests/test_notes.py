"""
Unit tests for the note journal.

Tests entry composition and parsing, and NoteJournal against a mocked
directory client and a real in-memory cache.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from contact_reminder.api.directory import AccessStatus, DirectoryClient
from contact_reminder.api.people_api import PeopleAPI
from contact_reminder.auth.google_auth import GoogleAuth
from contact_reminder.errors import EmptyInput, NotFound, PermissionDenied
from contact_reminder.storage.db import ContactDatabase
from contact_reminder.sync.contact import ContactRecord, ContactSummary
from contact_reminder.sync.engine import SyncEngine
from contact_reminder.sync.events import (
    EVENT_NOTE_APPENDED,
    EVENT_NOTE_REPLACED,
    ChangeEvent,
)
from contact_reminder.sync.notes import (
    DEFAULT_NOTE_MARKER,
    DEFAULT_TIMESTAMP_FORMAT,
    NoteEntry,
    NoteJournal,
    compose_entry,
    ensure_note_text,
    parse_entries,
)


class TestComposeAndParse:
    """Tests for the journal text format."""

    def test_compose_entry(self):
        """Test the rendered entry layout."""
        entry = compose_entry("Called her", datetime(2024, 5, 1, 9, 30))
        assert entry == "📝 2024-05-01 09:30\nCalled her\n\n"

    def test_parse_two_entries_newest_first(self):
        """Test that the later append appears first."""
        text = compose_entry("world", datetime(2024, 5, 2, 10, 0))
        text += compose_entry("hello", datetime(2024, 5, 1, 9, 30))

        entries = parse_entries(text)

        assert entries == [
            NoteEntry("world", datetime(2024, 5, 2, 10, 0)),
            NoteEntry("hello", datetime(2024, 5, 1, 9, 30)),
        ]

    def test_parse_keeps_blank_lines_in_body(self):
        """Test that a body with an empty line stays one entry."""
        text = "📝 2024-05-01 09:30\nline one\n\nline two\n\n"

        entries = parse_entries(text)

        assert len(entries) == 1
        assert entries[0].body == "line one\n\nline two"

    def test_parse_text_before_first_marker_is_undated(self):
        """Test that text above the first marker becomes its own entry."""
        text = "Old free text\n" + compose_entry("new", datetime(2024, 5, 1, 9, 30))

        entries = parse_entries(text)

        assert entries == [
            NoteEntry("Old free text", None),
            NoteEntry("new", datetime(2024, 5, 1, 9, 30)),
        ]

    def test_older_text_below_entry_stays_in_its_body(self):
        """Test that text under an entry belongs to that entry."""
        text = compose_entry("new", datetime(2024, 5, 1, 9, 30)) + "Old free text"

        entries = parse_entries(text)

        assert len(entries) == 1
        assert entries[0].body == "new\n\nOld free text"

    def test_parse_only_legacy_text(self):
        assert parse_entries("just some notes") == [NoteEntry("just some notes")]

    def test_parse_marker_without_timestamp_is_text(self):
        """Test that a marker line without a timestamp is kept as body text."""
        entries = parse_entries("📝 sometime\nbody\n")
        assert entries == [NoteEntry("📝 sometime\nbody", None)]

    def test_note_starting_with_marker_is_not_lost(self):
        """Test that an entry whose text begins with the marker survives parsing."""
        text = compose_entry("📝 bought flowers", datetime(2024, 1, 1, 9, 0))

        entries = parse_entries(text)

        assert entries == [
            NoteEntry("📝 bought flowers", datetime(2024, 1, 1, 9, 0)),
        ]

    @pytest.mark.parametrize("text", [None, ""])
    def test_parse_empty(self, text):
        assert parse_entries(text) == []

    def test_parse_custom_marker(self):
        """Test parsing with a non-default marker and format."""
        text = compose_entry(
            "hi", datetime(2023, 1, 2), marker="#", timestamp_format="%d/%m/%Y"
        )
        entries = parse_entries(text, marker="#", timestamp_format="%d/%m/%Y")
        assert entries == [NoteEntry("hi", datetime(2023, 1, 2))]

    def test_ensure_note_text(self):
        assert ensure_note_text("  hi \n") == "hi"
        with pytest.raises(EmptyInput):
            ensure_note_text(" \t")
        with pytest.raises(EmptyInput):
            ensure_note_text(None)

    def test_empty_input_is_value_error(self):
        """Test that EmptyInput can be caught as ValueError."""
        with pytest.raises(ValueError):
            ensure_note_text("")


@pytest.fixture
def directory():
    """DirectoryClient mock with access granted."""
    client = MagicMock(spec=DirectoryClient)
    client.access_status = AccessStatus.GRANTED
    client.access_granted = True
    client.note_marker = DEFAULT_NOTE_MARKER
    client.note_timestamp_format = DEFAULT_TIMESTAMP_FORMAT
    return client


@pytest.fixture
def db():
    database = ContactDatabase(":memory:")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def engine(directory, db):
    eng = SyncEngine(directory, db)
    yield eng
    eng.shutdown()


@pytest.fixture
def journal(directory, engine):
    return NoteJournal(directory, engine)


@pytest.fixture
def events(engine):
    received = []
    engine.subscribe(received.append)
    return received


@pytest.fixture
def record(db):
    rec = ContactRecord(name="Ada", directory_id="people/c1")
    db.insert_contact(rec)
    return rec


class TestAppendEntry:
    """Tests for NoteJournal.append_entry."""

    def test_append_writes_through_directory(self, journal, directory, record, events):
        """Test that the append goes to the linked directory contact."""
        directory.append_note.return_value = "📝 2024-05-01 09:30\nhello\n\n"

        notes = journal.append_entry(record.id, "hello")

        assert notes == "📝 2024-05-01 09:30\nhello\n\n"
        directory.append_note.assert_called_once_with("people/c1", "hello")
        assert events == [ChangeEvent(EVENT_NOTE_APPENDED, record.id)]

    def test_blank_text_rejected_before_lookup(self, journal, directory, events):
        """Test that blank text fails even for an unknown contact."""
        with pytest.raises(EmptyInput):
            journal.append_entry("no-such-contact", "   ")

        directory.append_note.assert_not_called()
        assert events == []

    def test_unknown_contact(self, journal, directory):
        with pytest.raises(NotFound):
            journal.append_entry("missing", "hello")
        directory.append_note.assert_not_called()

    def test_contact_without_directory_link(self, journal, directory, db):
        """Test that a cache-only contact has no journal."""
        local = ContactRecord(name="Local")
        db.insert_contact(local)

        with pytest.raises(NotFound, match="no directory entry"):
            journal.append_entry(local.id, "hello")
        directory.append_note.assert_not_called()

    def test_directory_failure_publishes_nothing(self, journal, directory, record, events):
        """Test that no event is published when the write fails."""
        directory.append_note.side_effect = NotFound("deleted upstream")

        with pytest.raises(NotFound):
            journal.append_entry(record.id, "hello")

        assert events == []

    def test_access_requested_when_undetermined(self, journal, directory, record):
        """Test that a fresh process requests access before writing."""
        directory.access_status = AccessStatus.NOT_DETERMINED
        directory.request_access.return_value = True
        directory.append_note.return_value = "notes"

        journal.append_entry(record.id, "hello")

        directory.request_access.assert_called_once()

    def test_denied_access(self, journal, directory, record, events):
        """Test that a denied request raises PermissionDenied with no write."""
        directory.access_status = AccessStatus.DENIED
        directory.access_granted = False

        with pytest.raises(PermissionDenied):
            journal.append_entry(record.id, "hello")

        directory.append_note.assert_not_called()
        assert events == []


class TestReplaceAll:
    """Tests for NoteJournal.replace_all."""

    def test_replace(self, journal, directory, record, events):
        """Test overwriting the journal and the event that follows."""
        directory.replace_note.return_value = "fresh"

        assert journal.replace_all(record.id, "fresh") == "fresh"
        directory.replace_note.assert_called_once_with("people/c1", "fresh")
        assert events == [ChangeEvent(EVENT_NOTE_REPLACED, record.id)]

    def test_replace_with_empty_text_is_allowed(self, journal, directory, record):
        """Test that replace_all may clear the journal."""
        directory.replace_note.return_value = ""

        assert journal.replace_all(record.id, "") == ""


class TestEntries:
    """Tests for NoteJournal.entries."""

    def test_entries_parse_fetched_notes(self, journal, directory, record):
        """Test reading back two appended entries."""
        text = compose_entry("world", datetime(2024, 5, 2, 10, 0))
        text += compose_entry("hello", datetime(2024, 5, 1, 9, 30))
        directory.fetch_contact.return_value = ContactSummary(
            "people/c1", "Ada", notes=text
        )

        entries = journal.entries(record.id)

        assert [e.body for e in entries] == ["world", "hello"]
        directory.fetch_contact.assert_called_once_with("people/c1")

    def test_entries_without_notes(self, journal, directory, record):
        directory.fetch_contact.return_value = ContactSummary("people/c1", "Ada")
        assert journal.entries(record.id) == []


class TestJournalThroughDirectory:
    """Tests for NoteJournal over a real DirectoryClient and a stored biography."""

    @pytest.fixture
    def people(self):
        """People API mock that keeps the last written biography."""
        api = MagicMock(spec=PeopleAPI)
        stored = {"notes": "legacy text", "etag": 0}

        def get_contact(resource_name):
            return ContactSummary(
                resource_name,
                "Ada",
                notes=stored["notes"],
                etag=str(stored["etag"]),
            )

        def update_biography(resource_name, text, etag):
            assert etag == str(stored["etag"])
            stored["notes"] = text
            stored["etag"] += 1
            return get_contact(resource_name)

        api.get_contact.side_effect = get_contact
        api.update_biography.side_effect = update_biography
        return api

    @pytest.fixture
    def live_journal(self, people, db):
        auth = MagicMock(spec=GoogleAuth)
        auth.get_credentials.return_value = MagicMock()
        times = iter([datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 2, 9, 0)])
        client = DirectoryClient(
            auth, api_factory=lambda creds: people, clock=lambda: next(times)
        )
        eng = SyncEngine(client, db)
        yield NoteJournal(client, eng)
        eng.shutdown()

    def test_second_entry_lands_above_first(self, live_journal, record):
        """Test two appends: newest on top, both dated, old content kept below."""
        live_journal.append_entry(record.id, "hello")
        notes = live_journal.append_entry(record.id, "world")

        assert notes == (
            "📝 2024-01-02 09:00\nworld\n\n"
            "📝 2024-01-01 09:00\nhello\n\n"
            "legacy text"
        )
        assert notes.index("world") < notes.index("hello") < notes.index("legacy text")

    def test_entries_read_back_in_order(self, live_journal, record):
        """Test that the parsed view matches what was appended."""
        live_journal.append_entry(record.id, "hello")
        live_journal.append_entry(record.id, "world")

        entries = live_journal.entries(record.id)

        assert entries == [
            NoteEntry("world", datetime(2024, 1, 2, 9, 0)),
            NoteEntry("hello\n\nlegacy text", datetime(2024, 1, 1, 9, 0)),
        ]
