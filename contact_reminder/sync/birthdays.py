"""
Birthday views over the cached contact set.

Provides the month view (whose birthday falls in a given month), the
zodiac sign for a birth date, and a list of upcoming birthdays. All
functions are pure: they read ContactRecords and never touch storage or
the directory.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from contact_reminder.sync.contact import ContactRecord, validate_month_day


class ZodiacSign(str, Enum):
    """The twelve signs, valued by their glyph."""

    ARIES = "♈"
    TAURUS = "♉"
    GEMINI = "♊"
    CANCER = "♋"
    LEO = "♌"
    VIRGO = "♍"
    LIBRA = "♎"
    SCORPIO = "♏"
    SAGITTARIUS = "♐"
    CAPRICORN = "♑"
    AQUARIUS = "♒"
    PISCES = "♓"

    @property
    def glyph(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


# (month, day) on which each sign starts; a sign runs until the day before
# the next one starts. Capricorn wraps across the new year.
_SIGN_STARTS: list[tuple[tuple[int, int], ZodiacSign]] = [
    ((1, 20), ZodiacSign.AQUARIUS),
    ((2, 19), ZodiacSign.PISCES),
    ((3, 21), ZodiacSign.ARIES),
    ((4, 20), ZodiacSign.TAURUS),
    ((5, 21), ZodiacSign.GEMINI),
    ((6, 21), ZodiacSign.CANCER),
    ((7, 23), ZodiacSign.LEO),
    ((8, 23), ZodiacSign.VIRGO),
    ((9, 23), ZodiacSign.LIBRA),
    ((10, 23), ZodiacSign.SCORPIO),
    ((11, 22), ZodiacSign.SAGITTARIUS),
    ((12, 22), ZodiacSign.CAPRICORN),
]


def zodiac_sign(month: int, day: int) -> ZodiacSign:
    """
    Look up the zodiac sign for a birth month and day.

    Raises:
        ValueError: If month/day is not a calendar date
    """
    validate_month_day(month, day)

    sign = ZodiacSign.CAPRICORN
    for start, candidate in _SIGN_STARTS:
        if (month, day) >= start:
            sign = candidate
    return sign


def month_name(month: int) -> str:
    """English name of a month (1-12), for the month picker."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    return calendar.month_name[month]


@dataclass(frozen=True)
class BirthdayEntry:
    """
    A contact listed in a birthday view.

    Attributes:
        contact: The cached contact (always has a birthday)
        actionable: Whether a message can be composed (has a phone number)
    """

    contact: ContactRecord
    actionable: bool

    @property
    def message_url(self) -> Optional[str]:
        """sms: URL for composing a birthday message, None if not actionable."""
        if not self.actionable or not self.contact.phone_number:
            return None
        return "sms:" + self.contact.phone_number.replace(" ", "")

    @property
    def zodiac(self) -> ZodiacSign:
        birthday = self.contact.birthday
        assert birthday is not None
        return zodiac_sign(birthday.month, birthday.day)


def _entry(contact: ContactRecord) -> BirthdayEntry:
    return BirthdayEntry(contact=contact, actionable=contact.has_phone)


def month_view(
    contacts: Iterable[ContactRecord], selected_month: int
) -> list[BirthdayEntry]:
    """
    Contacts whose birthday falls in selected_month, earliest day first.

    Contacts without a phone number stay in the list, marked non-actionable.
    Contacts sharing a day keep their input order.

    Raises:
        ValueError: If selected_month is not 1-12
    """
    if not 1 <= selected_month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {selected_month}")

    matching = [
        contact
        for contact in contacts
        if contact.birthday is not None and contact.birthday.month == selected_month
    ]
    matching.sort(key=lambda contact: contact.birthday.day)  # type: ignore[union-attr]
    return [_entry(contact) for contact in matching]


def next_occurrence(month: int, day: int, today: date) -> date:
    """
    Date of the next birthday on or after today.

    Feb 29 birthdays are observed on Mar 1 in non-leap years.
    """
    occurrence = _observed_date(today.year, month, day)
    if occurrence < today:
        occurrence = _observed_date(today.year + 1, month, day)
    return occurrence


def _observed_date(year: int, month: int, day: int) -> date:
    if month == 2 and day == 29 and not calendar.isleap(year):
        return date(year, 3, 1)
    return date(year, month, day)


def upcoming(
    contacts: Iterable[ContactRecord], today: date, within_days: int = 30
) -> list[BirthdayEntry]:
    """
    Contacts with a birthday in the next within_days days, soonest first.

    A birthday falling today is included.

    Raises:
        ValueError: If within_days is negative
    """
    if within_days < 0:
        raise ValueError(f"within_days must be non-negative, got {within_days}")

    dated: list[tuple[date, ContactRecord]] = []
    for contact in contacts:
        if contact.birthday is None:
            continue
        when = next_occurrence(contact.birthday.month, contact.birthday.day, today)
        if (when - today).days <= within_days:
            dated.append((when, contact))

    dated.sort(key=lambda item: item[0])
    return [_entry(contact) for _, contact in dated]
