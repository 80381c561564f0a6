"""
Google People API wrapper for the contact directory.

Provides a high-level interface to the Google People API for:
- Listing contacts and contact groups with pagination
- Fetching single contacts and group members in batches
- Updating the biography field that holds the note journal
- Exponential backoff retry logic for rate limits
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from contact_reminder.errors import DirectoryError, NotFound, PermissionDenied
from contact_reminder.sync.contact import ContactSummary
from contact_reminder.sync.group import GroupDescriptor

# Person fields to request from the API
PERSON_FIELDS = ",".join(
    [
        "names",
        "phoneNumbers",
        "birthdays",
        "biographies",
        "metadata",
    ]
)

# Group fields to request when listing groups
GROUP_FIELDS = "name,groupType,memberCount,metadata"

# Maximum number of items per page when listing
DEFAULT_PAGE_SIZE = 100

# Maximum resource names per people.getBatchGet request (API limit)
DEFAULT_BATCH_SIZE = 200

# Upper bound on members returned by contactGroups.get
MAX_GROUP_MEMBERS = 10000

# Retry configuration defaults
DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_RETRY_DELAY = 1.0  # seconds
DEFAULT_MAX_RETRY_DELAY = 60.0  # seconds

logger = logging.getLogger(__name__)


class PeopleAPIError(DirectoryError):
    """Raised when a People API operation fails."""

    pass


class RateLimitError(PeopleAPIError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass


class PeopleAPI:
    """
    Google People API wrapper for directory reads and note writes.

    Attributes:
        credentials: Google OAuth2 credentials
        service: Google API service object

    Usage:
        api = PeopleAPI(credentials)

        # List all contacts
        contacts = api.list_contacts()

        # List groups and the members of one group
        groups = api.list_contact_groups()
        members = api.list_group_members("contactGroups/abc123")

        # Overwrite a contact's biography
        updated = api.update_biography("people/c123", "text", etag)
    """

    def __init__(
        self,
        credentials: Credentials,
        page_size: int = DEFAULT_PAGE_SIZE,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
    ):
        """
        Initialize the People API wrapper.

        Args:
            credentials: Valid Google OAuth2 credentials with contacts scope
            page_size: Number of items per page when listing (default 100)
            batch_size: Maximum contacts per batch get (default 200)
            max_retries: Maximum retry attempts for failed API calls (default 5)
            initial_retry_delay: Initial backoff delay in seconds (default 1.0)
            max_retry_delay: Maximum backoff delay in seconds (default 60.0)
        """
        self.credentials = credentials
        self.page_size = min(page_size, 1000)  # API max is 1000
        self.batch_size = min(batch_size, DEFAULT_BATCH_SIZE)
        self.max_retries = max_retries
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self._service = None

    @property
    def service(self) -> Any:
        """
        Get or create the Google API service object.

        Raises:
            PeopleAPIError: If service cannot be created
        """
        if self._service is None:
            try:
                self._service = build(
                    "people", "v1", credentials=self.credentials, cache_discovery=False
                )
                logger.debug("Created People API service")
            except Exception as e:
                logger.error(f"Failed to create People API service: {e}")
                raise PeopleAPIError(f"Failed to create API service: {e}") from e
        return self._service

    def _retry_with_backoff(
        self, operation: Callable[[], Any], operation_name: str
    ) -> Any:
        """
        Execute an operation with exponential backoff retry.

        Args:
            operation: Callable to execute
            operation_name: Name for logging purposes

        Returns:
            Result of the operation

        Raises:
            PermissionDenied: If the API refuses access (401/403)
            NotFound: If the requested resource does not exist (404)
            RateLimitError: If retries are exhausted due to rate limits
            PeopleAPIError: For other API errors
        """
        delay = self.initial_retry_delay

        for attempt in range(self.max_retries):
            try:
                return operation()

            except HttpError as e:
                status_code = e.resp.status

                if status_code in (401, 403):
                    logger.error(f"{operation_name} refused with status {status_code}")
                    raise PermissionDenied(
                        f"{operation_name} refused by the directory: {e}"
                    ) from e

                if status_code == 404:
                    raise NotFound(f"{operation_name}: resource not found") from e

                # Rate limit or quota exceeded - retry with backoff
                if status_code == 429:
                    if attempt < self.max_retries - 1:
                        logger.warning(
                            f"{operation_name} rate limited, retrying in "
                            f"{delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                        )
                        time.sleep(delay)
                        delay = min(delay * 2, self.max_retry_delay)
                        continue
                    raise RateLimitError(
                        f"Rate limit exceeded for {operation_name} "
                        f"after {self.max_retries} retries"
                    ) from e

                # Server error - retry with backoff
                if status_code >= 500 and attempt < self.max_retries - 1:
                    logger.warning(
                        f"{operation_name} server error ({status_code}), "
                        f"retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    delay = min(delay * 2, self.max_retry_delay)
                    continue

                logger.error(f"{operation_name} failed with status {status_code}: {e}")
                raise PeopleAPIError(f"{operation_name} failed: {e}") from e

        raise PeopleAPIError(f"{operation_name} failed after all retries")

    def list_contacts(self) -> list[ContactSummary]:
        """
        List all contacts of the authenticated user.

        Returns:
            ContactSummary objects in the order the API returned them

        Raises:
            PermissionDenied: If access is refused
            PeopleAPIError: If listing fails
        """
        logger.debug("Listing contacts")

        contacts: list[ContactSummary] = []
        page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "resourceName": "people/me",
                "personFields": PERSON_FIELDS,
                "pageSize": self.page_size,
            }
            if page_token:
                params["pageToken"] = page_token

            def execute_list(p: dict[str, Any] = params) -> Any:
                return self.service.people().connections().list(**p).execute()

            response = self._retry_with_backoff(execute_list, "list_contacts")

            for person in response.get("connections", []):
                if person.get("metadata", {}).get("deleted"):
                    continue
                contacts.append(ContactSummary.from_api_response(person))

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(contacts)} contacts")
        return contacts

    def get_contact(self, resource_name: str) -> ContactSummary:
        """
        Get a single contact by resource name.

        Args:
            resource_name: Contact's resource name (e.g., "people/c12345")

        Raises:
            NotFound: If the contact does not exist
            PeopleAPIError: If the request fails
        """
        logger.debug(f"Getting contact: {resource_name}")

        def execute_get() -> Any:
            return (
                self.service.people()
                .get(resourceName=resource_name, personFields=PERSON_FIELDS)
                .execute()
            )

        response = self._retry_with_backoff(
            execute_get, f"get_contact({resource_name})"
        )
        return ContactSummary.from_api_response(response)

    def batch_get_contacts(self, resource_names: list[str]) -> list[ContactSummary]:
        """
        Get several contacts, preserving the requested order.

        Resource names the API reports as missing are skipped.

        Args:
            resource_names: Contact resource names to fetch

        Returns:
            ContactSummary objects in the order of resource_names
        """
        contacts: list[ContactSummary] = []

        for i in range(0, len(resource_names), self.batch_size):
            batch = resource_names[i : i + self.batch_size]

            def execute_batch_get(names: list[str] = batch) -> Any:
                return (
                    self.service.people()
                    .getBatchGet(resourceNames=names, personFields=PERSON_FIELDS)
                    .execute()
                )

            response = self._retry_with_backoff(
                execute_batch_get, f"batch_get_contacts(batch {i // self.batch_size})"
            )

            for item in response.get("responses", []):
                person = item.get("person")
                if not person:
                    logger.warning(
                        "Skipping missing contact "
                        f"{item.get('requestedResourceName', '<unknown>')}"
                    )
                    continue
                contacts.append(ContactSummary.from_api_response(person))

        return contacts

    def update_biography(
        self, resource_name: str, text: str, etag: str
    ) -> ContactSummary:
        """
        Overwrite the biography (notes) of a contact.

        Args:
            resource_name: Contact's resource name
            text: New biography text; empty text clears it
            etag: Etag of the version being replaced

        Returns:
            The updated contact as confirmed by the API

        Raises:
            NotFound: If the contact does not exist
            PeopleAPIError: If the update fails (including etag mismatch)
        """
        if not resource_name:
            raise ValueError("resource_name is required for update")

        logger.debug(f"Updating biography: {resource_name}")

        body: dict[str, Any] = {
            "etag": etag,
            "biographies": (
                [{"value": text, "contentType": "TEXT_PLAIN"}] if text else []
            ),
        }

        def execute_update() -> Any:
            return (
                self.service.people()
                .updateContact(
                    resourceName=resource_name,
                    updatePersonFields="biographies",
                    personFields=PERSON_FIELDS,
                    body=body,
                )
                .execute()
            )

        response = self._retry_with_backoff(
            execute_update, f"update_biography({resource_name})"
        )
        logger.info(f"Updated notes for contact: {resource_name}")
        return ContactSummary.from_api_response(response)

    # ========== Contact Groups Methods ==========

    def list_contact_groups(self) -> list[GroupDescriptor]:
        """
        List all contact groups for the authenticated user.

        Returns both user-created groups and system groups (myContacts,
        starred), in the order the API returned them.

        Raises:
            PermissionDenied: If access is refused
            PeopleAPIError: If listing fails
        """
        logger.debug("Listing contact groups")

        groups: list[GroupDescriptor] = []
        page_token: str | None = None

        while True:
            params: dict[str, Any] = {
                "pageSize": self.page_size,
                "groupFields": GROUP_FIELDS,
            }
            if page_token:
                params["pageToken"] = page_token

            def execute_list(p: dict[str, Any] = params) -> Any:
                return self.service.contactGroups().list(**p).execute()

            response = self._retry_with_backoff(execute_list, "list_contact_groups")

            for group_data in response.get("contactGroups", []):
                if group_data.get("metadata", {}).get("deleted"):
                    continue
                groups.append(GroupDescriptor.from_api_response(group_data))

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(f"Listed {len(groups)} contact groups")
        return groups

    def list_group_members(self, group_resource_name: str) -> list[str]:
        """
        Get the member resource names of a contact group.

        Args:
            group_resource_name: Group's resource name (e.g., "contactGroups/abc")

        Raises:
            NotFound: If the group does not exist
        """
        logger.debug(f"Getting members of group: {group_resource_name}")

        def execute_get() -> Any:
            return (
                self.service.contactGroups()
                .get(resourceName=group_resource_name, maxMembers=MAX_GROUP_MEMBERS)
                .execute()
            )

        response = self._retry_with_backoff(
            execute_get, f"get_contact_group({group_resource_name})"
        )
        members: list[str] = response.get("memberResourceNames", [])
        return members
