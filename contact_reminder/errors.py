"""
Error kinds shared by the directory, cache and journal layers.

Callers can tell a refused directory permission apart from a missing
record and from rejected input by exception type alone.
"""


class ContactReminderError(Exception):
    """Base class for all contact_reminder failures."""

    pass


class PermissionDenied(ContactReminderError):
    """Raised when access to the contact directory was refused."""

    pass


class NotFound(ContactReminderError):
    """Raised when a contact, group or cached record does not exist."""

    pass


class EmptyInput(ContactReminderError, ValueError):
    """Raised when blank text is passed where content is required."""

    pass


class StorageFailure(ContactReminderError):
    """Raised when a cache read or write fails."""

    pass


class MigrationFailure(StorageFailure):
    """Raised when the cache schema cannot be upgraded or recreated."""

    pass


class DirectoryError(ContactReminderError):
    """Raised when a directory operation fails for any other reason."""

    pass
