"""
Directory client over Google Contacts.

Wraps the People API behind the operations the organizer needs:
- A single access request per session, gating every read and write
- Group and contact enumeration
- Note journal mutations on the contact biography

Access failures surface as PermissionDenied, missing contacts as NotFound
and blank note text as EmptyInput, so callers can tell them apart.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Optional, TypeVar

from google.oauth2.credentials import Credentials

from contact_reminder.api.people_api import PeopleAPI
from contact_reminder.auth.google_auth import AuthenticationError, GoogleAuth
from contact_reminder.errors import PermissionDenied
from contact_reminder.sync.contact import ContactSummary
from contact_reminder.sync.group import GroupDescriptor
from contact_reminder.sync.notes import (
    DEFAULT_NOTE_MARKER,
    DEFAULT_TIMESTAMP_FORMAT,
    compose_entry,
    ensure_note_text,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AccessStatus(str, Enum):
    """Outcome of the directory access request."""

    NOT_DETERMINED = "not_determined"
    GRANTED = "granted"
    DENIED = "denied"


class DirectoryClient:
    """
    Adapter over the Google Contacts directory.

    Access must be requested (request_access) before any read is issued.
    A denial holds until request_access is called again.

    Usage:
        directory = DirectoryClient(GoogleAuth())
        if directory.request_access():
            groups = directory.list_groups()
            members = directory.list_contacts_in_group(groups[0].id)
            directory.append_note(members[0].resource_name, "Called today")
    """

    def __init__(
        self,
        auth: GoogleAuth,
        api_factory: Optional[Callable[[Credentials], PeopleAPI]] = None,
        interactive: bool = False,
        note_marker: str = DEFAULT_NOTE_MARKER,
        note_timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the directory client.

        Args:
            auth: Authentication manager providing OAuth credentials
            api_factory: Builds the PeopleAPI for granted credentials
                (default: PeopleAPI with default settings)
            interactive: If True, request_access may open the browser flow
                when no stored credentials exist
            note_marker: Marker that starts each note journal entry
            note_timestamp_format: strftime format for entry timestamps
            clock: Source of the current time for note timestamps
        """
        self.auth = auth
        self.api_factory = api_factory or PeopleAPI
        self.interactive = interactive
        self.note_marker = note_marker
        self.note_timestamp_format = note_timestamp_format
        self.clock = clock

        self._access_lock = threading.Lock()
        self._status = AccessStatus.NOT_DETERMINED
        self._api: Optional[PeopleAPI] = None

    @property
    def access_status(self) -> AccessStatus:
        return self._status

    @property
    def access_granted(self) -> bool:
        return self._status is AccessStatus.GRANTED

    def request_access(self) -> bool:
        """
        Request access to the directory.

        Blocks until the request completes. Concurrent callers wait for the
        same request.

        Returns:
            True if access was granted, False if it was denied
        """
        with self._access_lock:
            try:
                if self.interactive:
                    creds: Optional[Credentials] = self.auth.authenticate()
                else:
                    creds = self.auth.get_credentials()
            except (AuthenticationError, FileNotFoundError) as e:
                logger.warning(f"Directory access denied: {e}")
                creds = None

            if creds is None:
                self._api = None
                self._status = AccessStatus.DENIED
                logger.info("Directory access denied")
                return False

            self._api = self.api_factory(creds)
            self._status = AccessStatus.GRANTED
            logger.info("Directory access granted")
            return True

    def _require_access(self) -> PeopleAPI:
        if self._status is not AccessStatus.GRANTED or self._api is None:
            raise PermissionDenied(
                f"Directory access not granted (status: {self._status.value})"
            )
        return self._api

    def _call(self, operation: Callable[[PeopleAPI], T]) -> T:
        """Run a directory operation, revoking access if the directory refuses it."""
        api = self._require_access()
        try:
            return operation(api)
        except PermissionDenied:
            self._status = AccessStatus.DENIED
            self._api = None
            raise

    def list_groups(self) -> list[GroupDescriptor]:
        """
        List directory groups in the order the directory returns them.

        Raises:
            PermissionDenied: If access was not granted
        """
        return self._call(lambda api: api.list_contact_groups())

    def list_contacts(self) -> list[ContactSummary]:
        """
        Enumerate every directory contact.

        Raises:
            PermissionDenied: If access was not granted
            DirectoryError: If enumeration fails
        """
        return self._call(lambda api: api.list_contacts())

    def list_contacts_in_group(self, group_id: str) -> list[ContactSummary]:
        """
        List the members of a group, in directory member order.

        Raises:
            PermissionDenied: If access was not granted
            NotFound: If the group does not exist
        """

        def fetch_members(api: PeopleAPI) -> list[ContactSummary]:
            members = api.list_group_members(group_id)
            if not members:
                return []
            return api.batch_get_contacts(members)

        return self._call(fetch_members)

    def fetch_contact(self, contact_id: str) -> ContactSummary:
        """
        Fetch a single directory contact.

        Raises:
            PermissionDenied: If access was not granted
            NotFound: If the contact does not exist
        """
        return self._call(lambda api: api.get_contact(contact_id))

    def append_note(
        self,
        contact_id: str,
        text: str,
        timestamp: Optional[datetime] = None,
    ) -> str:
        """
        Prepend a timestamped entry to the contact's note text.

        Existing note content is kept, unchanged, below the new entry.

        Args:
            contact_id: Directory resource name of the contact
            text: Entry body
            timestamp: Entry time (default: now)

        Returns:
            The full note text as confirmed by the directory

        Raises:
            EmptyInput: If text is blank (before any directory call)
            PermissionDenied: If access was not granted
            NotFound: If the contact does not exist
        """
        body = ensure_note_text(text)

        def prepend(api: PeopleAPI) -> str:
            current = api.get_contact(contact_id)
            entry = compose_entry(
                body,
                timestamp or self.clock(),
                marker=self.note_marker,
                timestamp_format=self.note_timestamp_format,
            )
            updated = api.update_biography(
                contact_id, entry + (current.notes or ""), current.etag
            )
            return updated.notes or ""

        notes = self._call(prepend)
        logger.debug(f"Appended note entry for {contact_id}")
        return notes

    def replace_note(self, contact_id: str, text: str) -> str:
        """
        Overwrite the contact's note text unconditionally.

        Returns:
            The note text as confirmed by the directory

        Raises:
            PermissionDenied: If access was not granted
            NotFound: If the contact does not exist
        """

        def overwrite(api: PeopleAPI) -> str:
            current = api.get_contact(contact_id)
            updated = api.update_biography(contact_id, text, current.etag)
            return updated.notes or ""

        notes = self._call(overwrite)
        logger.info(f"Replaced note text for {contact_id}")
        return notes
