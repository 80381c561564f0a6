"""
Contact data models for the contact reminder cache.

Provides:
- Birthday: month/day value with an explicit year-known flag
- ReminderGroup: how often the user wants to reach out to a contact
- ContactSummary: a contact as the directory (Google People API) reports it
- ContactRecord: a contact as the local cache stores it
"""

from __future__ import annotations

import calendar
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

# Years the directory uses in place of an unknown birth year
PLACEHOLDER_YEARS = frozenset({0, 1, 1604, 1900})

# Leap year used to validate month/day pairs without a real year
_REFERENCE_LEAP_YEAR = 2000

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_NO_YEAR_DATE = re.compile(r"^--(\d{2})-(\d{2})$")


class ReminderGroup(str, Enum):
    """Reminder cadence assigned to a cached contact."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    RARELY = "Rarely"
    NEVER = "Never"

    @classmethod
    def parse(cls, value: str) -> ReminderGroup:
        """
        Parse a group label, ignoring case.

        Raises:
            ValueError: If the label is not a known reminder group
        """
        for group in cls:
            if group.value.lower() == value.strip().lower():
                return group
        raise ValueError(
            f"Invalid reminder group '{value}'. "
            f"Must be one of: {', '.join(g.value for g in cls)}"
        )


# Default group for contacts created by bulk import
DEFAULT_REMINDER_GROUP = ReminderGroup.NEVER


@dataclass(frozen=True)
class Birthday:
    """
    A birthday whose year may or may not be meaningful.

    Attributes:
        month: Month of birth (1-12)
        day: Day of month
        year: Year of birth, only set when year_known is True
        year_known: Whether the year is real rather than a placeholder

    Usage:
        bday = Birthday.from_parts(month=6, day=3, year=1990)
        bday.format()   # "June 3, 1990"

        bday = Birthday.from_parts(month=6, day=3)
        bday.format()   # "June 3"
    """

    month: int
    day: int
    year: Optional[int] = None
    year_known: bool = False

    def __post_init__(self) -> None:
        validate_month_day(self.month, self.day)
        if self.year_known and self.year is None:
            raise ValueError("year is required when year_known is True")
        if not self.year_known and self.year is not None:
            raise ValueError("year must be None when year_known is False")
        if self.year_known and self.year is not None:
            # Feb 29 needs a leap year when the year is real
            calendar_days = calendar.monthrange(self.year, self.month)[1]
            if self.day > calendar_days:
                raise ValueError(
                    f"Day {self.day} is out of range for {self.month}/{self.year}"
                )

    @classmethod
    def from_parts(
        cls, month: int, day: int, year: Optional[int] = None
    ) -> Birthday:
        """
        Build a birthday, treating placeholder years as unknown.

        Args:
            month: Month of birth (1-12)
            day: Day of month
            year: Year of birth; None, 0 or a placeholder year means unknown
        """
        if year is None or year in PLACEHOLDER_YEARS:
            return cls(month=month, day=day)
        return cls(month=month, day=day, year=year, year_known=True)

    @classmethod
    def from_api_response(cls, birthday: dict[str, Any]) -> Optional[Birthday]:
        """
        Parse a People API birthday entry.

        Example API structure::

            {'date': {'year': 1990, 'month': 6, 'day': 3}, 'text': '...'}

        Returns:
            Birthday, or None if the entry has no usable month and day
        """
        date = birthday.get("date") or {}
        month = date.get("month")
        day = date.get("day")
        if not month or not day:
            return None
        try:
            return cls.from_parts(month=month, day=day, year=date.get("year"))
        except ValueError:
            return None

    @classmethod
    def from_storage(cls, value: str) -> Birthday:
        """
        Parse the text form written by to_storage().

        Raises:
            ValueError: If the text is not a stored birthday
        """
        match = _ISO_DATE.match(value)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return cls.from_parts(month=month, day=day, year=year)

        match = _NO_YEAR_DATE.match(value)
        if match:
            month, day = (int(part) for part in match.groups())
            return cls(month=month, day=day)

        raise ValueError(f"Invalid stored birthday: {value!r}")

    def to_storage(self) -> str:
        """Convert to ISO text, using the --MM-DD form when the year is unknown."""
        if self.year_known:
            return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
        return f"--{self.month:02d}-{self.day:02d}"

    def sort_key(self) -> tuple[int, int]:
        """Key for ordering birthdays within the calendar year."""
        return (self.month, self.day)

    def format(self) -> str:
        """Format as "June 3" or, when the year is known, "June 3, 1990"."""
        text = f"{calendar.month_name[self.month]} {self.day}"
        if self.year_known:
            return f"{text}, {self.year}"
        return text

    def __str__(self) -> str:
        return self.format()


def validate_month_day(month: int, day: int) -> None:
    """
    Check that month and day form a calendar date in some year.

    Raises:
        ValueError: If the month or day is out of range
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    max_day = calendar.monthrange(_REFERENCE_LEAP_YEAR, month)[1]
    if not 1 <= day <= max_day:
        raise ValueError(f"Day must be between 1 and {max_day}, got {day}")


@dataclass
class ContactSummary:
    """
    Directory-side view of a contact.

    Attributes:
        resource_name: Google's unique ID (e.g., "people/c12345")
        name: Display name of the contact
        phone_number: First phone number, if any
        birthday: Birthday, if the directory has one
        notes: Biography text holding the note journal
        etag: Required for updates, prevents concurrent modification conflicts
    """

    resource_name: str
    name: str
    phone_number: Optional[str] = None
    birthday: Optional[Birthday] = None
    notes: Optional[str] = None
    etag: str = ""

    @classmethod
    def from_api_response(cls, person: dict[str, Any]) -> ContactSummary:
        """
        Create a ContactSummary from a Google People API person.

        Example API response structure::

            {
                'resourceName': 'people/c12345',
                'etag': 'abc123',
                'names': [{'displayName': 'John Doe', ...}],
                'phoneNumbers': [{'value': '+1 234 567 890'}],
                'birthdays': [{'date': {'month': 6, 'day': 3}}],
                'biographies': [{'value': 'Some notes'}],
            }
        """
        names = person.get("names", [])
        primary_name = names[0] if names else {}

        name = primary_name.get("displayName", "")
        if not name:
            parts = [
                p
                for p in (primary_name.get("givenName"), primary_name.get("familyName"))
                if p
            ]
            name = " ".join(parts)

        phones = [
            p.get("value", "") for p in person.get("phoneNumbers", []) if p.get("value")
        ]

        birthday = None
        for entry in person.get("birthdays", []):
            birthday = Birthday.from_api_response(entry)
            if birthday is not None:
                break

        biographies = person.get("biographies", [])
        notes = biographies[0].get("value") if biographies else None

        return cls(
            resource_name=person.get("resourceName", ""),
            name=name,
            phone_number=phones[0] if phones else None,
            birthday=birthday,
            notes=notes,
            etag=person.get("etag", ""),
        )


def new_contact_id() -> str:
    """Generate a fresh, never reused record identifier."""
    return uuid.uuid4().hex


@dataclass
class ContactRecord:
    """
    Cached contact with its app-managed reminder group.

    The id is assigned once, at import or creation, and never changes.
    The directory stays authoritative for name, phone, birthday and notes;
    group is authoritative here only.

    Attributes:
        name: Display name captured at import time
        phone_number: First phone number captured at import time
        birthday: Birthday captured at import time
        group: Reminder cadence chosen by the user
        directory_id: Resource name of the directory contact it came from
        id: Stable cache identifier
    """

    name: str
    phone_number: Optional[str] = None
    birthday: Optional[Birthday] = None
    group: ReminderGroup = DEFAULT_REMINDER_GROUP
    directory_id: Optional[str] = None
    id: str = field(default_factory=new_contact_id)

    @classmethod
    def from_summary(
        cls,
        summary: ContactSummary,
        group: ReminderGroup = DEFAULT_REMINDER_GROUP,
    ) -> ContactRecord:
        """Build a new cache record for a directory contact."""
        return cls(
            name=summary.name or "Unknown",
            phone_number=summary.phone_number,
            birthday=summary.birthday,
            group=group,
            directory_id=summary.resource_name or None,
        )

    @property
    def has_phone(self) -> bool:
        return bool(self.phone_number and self.phone_number.strip())
