"""
Unit tests for the birthday views.

Tests the month view, zodiac lookup, next occurrence (including Feb 29)
and the upcoming list.
"""

from datetime import date

import pytest

from contact_reminder.sync.birthdays import (
    BirthdayEntry,
    ZodiacSign,
    month_name,
    month_view,
    next_occurrence,
    upcoming,
    zodiac_sign,
)
from contact_reminder.sync.contact import Birthday, ContactRecord


def person(name, month=None, day=None, phone="555 0100"):
    birthday = Birthday.from_parts(month, day) if month else None
    return ContactRecord(name=name, phone_number=phone, birthday=birthday)


class TestMonthView:
    """Tests for month_view."""

    def test_filters_and_sorts_by_day(self):
        """Test that only the selected month is listed, earliest day first."""
        third = person("Third", 6, 3)
        first = person("First", 6, 1)
        july = person("July", 7, 1)
        nobody = person("Nobody")

        entries = month_view([third, first, july, nobody], 6)

        assert [e.contact for e in entries] == [first, third]

    def test_same_day_keeps_input_order(self):
        """Test that ties keep their original order."""
        a = person("A", 3, 5)
        b = person("B", 3, 5)

        assert [e.contact for e in month_view([b, a], 3)] == [b, a]

    def test_contact_without_phone_is_not_actionable(self):
        """Test that missing phone numbers still list the contact."""
        entries = month_view([person("Quiet", 6, 3, phone=None)], 6)

        assert len(entries) == 1
        assert entries[0].actionable is False
        assert entries[0].message_url is None

    def test_message_url_strips_spaces(self):
        """Test the sms: URL for an actionable entry."""
        entries = month_view([person("Loud", 6, 3, phone="+1 555 0100")], 6)

        assert entries[0].actionable is True
        assert entries[0].message_url == "sms:+15550100"

    def test_empty_month(self):
        """Test a month nobody was born in."""
        assert month_view([person("A", 1, 1)], 2) == []

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_invalid_month(self, month):
        """Test that months outside 1-12 are rejected."""
        with pytest.raises(ValueError):
            month_view([], month)


class TestZodiacSign:
    """Tests for zodiac_sign."""

    @pytest.mark.parametrize(
        "month,day,expected",
        [
            (3, 21, ZodiacSign.ARIES),
            (3, 20, ZodiacSign.PISCES),
            (1, 19, ZodiacSign.CAPRICORN),
            (1, 20, ZodiacSign.AQUARIUS),
            (12, 21, ZodiacSign.SAGITTARIUS),
            (12, 22, ZodiacSign.CAPRICORN),
            (12, 31, ZodiacSign.CAPRICORN),
            (1, 1, ZodiacSign.CAPRICORN),
            (2, 29, ZodiacSign.PISCES),
            (7, 23, ZodiacSign.LEO),
        ],
    )
    def test_boundaries(self, month, day, expected):
        """Test signs on and around their start dates."""
        assert zodiac_sign(month, day) is expected

    @pytest.mark.parametrize("month,day", [(2, 30), (13, 1), (0, 10), (4, 31)])
    def test_invalid_dates(self, month, day):
        """Test that impossible dates raise ValueError."""
        with pytest.raises(ValueError):
            zodiac_sign(month, day)

    def test_glyph_and_name(self):
        """Test the display helpers."""
        assert ZodiacSign.ARIES.glyph == "♈"
        assert ZodiacSign.SAGITTARIUS.display_name == "Sagittarius"

    def test_entry_zodiac(self):
        """Test the zodiac of a birthday entry."""
        entry = BirthdayEntry(contact=person("Ram", 4, 1), actionable=True)
        assert entry.zodiac is ZodiacSign.ARIES


class TestMonthName:
    """Tests for month_name."""

    def test_names(self):
        assert month_name(1) == "January"
        assert month_name(12) == "December"

    def test_invalid(self):
        with pytest.raises(ValueError):
            month_name(13)


class TestNextOccurrence:
    """Tests for next_occurrence."""

    def test_later_this_year(self):
        assert next_occurrence(6, 3, date(2024, 5, 1)) == date(2024, 6, 3)

    def test_today_counts(self):
        assert next_occurrence(5, 1, date(2024, 5, 1)) == date(2024, 5, 1)

    def test_already_passed_rolls_over(self):
        assert next_occurrence(1, 10, date(2024, 5, 1)) == date(2025, 1, 10)

    def test_feb_29_in_leap_year(self):
        assert next_occurrence(2, 29, date(2024, 2, 1)) == date(2024, 2, 29)

    def test_feb_29_observed_march_1(self):
        """Test that Feb 29 falls on Mar 1 in non-leap years."""
        assert next_occurrence(2, 29, date(2023, 2, 1)) == date(2023, 3, 1)

    def test_feb_29_after_leap_day(self):
        """Test rolling from a leap year into a common year."""
        assert next_occurrence(2, 29, date(2024, 3, 2)) == date(2025, 3, 1)


class TestUpcoming:
    """Tests for upcoming."""

    def test_window_and_order(self):
        """Test that birthdays in the window are listed soonest first."""
        today = date(2024, 12, 20)
        soon = person("Soon", 12, 25)
        new_year = person("New Year", 1, 2)
        far = person("Far", 3, 1)
        no_date = person("None")

        entries = upcoming([far, new_year, no_date, soon], today, within_days=30)

        assert [e.contact for e in entries] == [soon, new_year]

    def test_includes_today(self):
        today = date(2024, 6, 3)
        entries = upcoming([person("Today", 6, 3)], today, within_days=0)
        assert len(entries) == 1

    def test_feb_29_in_common_year(self):
        """Test that a leap-day birthday shows up on Mar 1."""
        entries = upcoming([person("Leap", 2, 29)], date(2023, 2, 27), within_days=2)
        assert len(entries) == 1

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            upcoming([], date(2024, 1, 1), within_days=-1)
