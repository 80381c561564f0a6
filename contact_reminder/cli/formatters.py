"""CLI output formatting functions.

This module contains functions for displaying contacts, groups, birthday
views and note journals on the command line.
"""

from typing import TYPE_CHECKING

import click

from contact_reminder.sync.contact import ReminderGroup

if TYPE_CHECKING:
    from contact_reminder.sync.birthdays import BirthdayEntry
    from contact_reminder.sync.contact import ContactRecord
    from contact_reminder.sync.group import GroupDescriptor
    from contact_reminder.sync.notes import NoteEntry

# Colour per reminder cadence in the grouped contact list
GROUP_COLORS = {
    ReminderGroup.DAILY: "red",
    ReminderGroup.WEEKLY: "yellow",
    ReminderGroup.MONTHLY: "green",
    ReminderGroup.RARELY: "cyan",
    ReminderGroup.NEVER: "white",
}


def format_contact_line(contact: "ContactRecord") -> str:
    """One-line summary: id, name, phone and birthday."""
    parts = [f"{contact.id[:8]}  {contact.name}"]
    if contact.phone_number:
        parts.append(contact.phone_number)
    if contact.birthday:
        parts.append(f"born {contact.birthday.format()}")
    return "  ".join(parts)


def show_contacts_by_group(
    grouped: "dict[ReminderGroup, list[ContactRecord]]",
) -> None:
    """
    Display contacts under a heading per reminder group.

    Args:
        grouped: Non-empty groups in display order
    """
    if not grouped:
        click.echo("No contacts found.")
        return

    for group, contacts in grouped.items():
        heading = f"{group.value} ({len(contacts)})"
        click.echo(click.style(heading, fg=GROUP_COLORS[group], bold=True))
        for contact in contacts:
            click.echo(f"  {format_contact_line(contact)}")
        click.echo()


def show_groups(groups: "list[GroupDescriptor]") -> None:
    """Display directory groups as a numbered list."""
    if not groups:
        click.echo("No contact groups found.")
        return

    width = max(len(group.name) for group in groups)
    for position, group in enumerate(groups, start=1):
        kind = "system" if group.is_system_group() else "user"
        click.echo(
            f"{position:>3}. {group.name:<{width}}  "
            f"{group.member_count:>4} members  [{kind}]  {group.id}"
        )


def show_birthday_entries(title: str, entries: "list[BirthdayEntry]") -> None:
    """
    Display a birthday view.

    Entries without a phone number are shown dimmed and without a
    message link.
    """
    click.echo(click.style(title, bold=True))
    if not entries:
        click.echo("  No birthdays.")
        return

    for entry in entries:
        contact = entry.contact
        birthday = contact.birthday
        assert birthday is not None
        line = f"  {entry.zodiac.glyph} {birthday.format():<20} {contact.name}"
        if entry.actionable:
            click.echo(f"{line}  {entry.message_url}")
        else:
            click.echo(click.style(f"{line}  (no phone number)", dim=True))


def show_note_entries(entries: "list[NoteEntry]") -> None:
    """Display journal entries, newest first."""
    if not entries:
        click.echo("No notes.")
        return

    for entry in entries:
        if entry.timestamp is not None:
            click.echo(click.style(entry.timestamp.strftime("%Y-%m-%d %H:%M"), bold=True))
        else:
            click.echo(click.style("(undated)", bold=True))
        for line in entry.body.splitlines():
            click.echo(f"  {line}")
        click.echo()
