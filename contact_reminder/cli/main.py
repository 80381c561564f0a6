"""
Command-line interface for contact_reminder.

Provides CLI commands for authorization, browsing cached contacts by
reminder group, birthday views, group ordering and the note journal.

Usage:
    # Show help
    contact-reminder --help

    # Authorize access to Google Contacts
    contact-reminder auth

    # List contacts (imports on first run)
    contact-reminder contacts

    # Assign a reminder group
    contact-reminder set-group 3f2a9c1e weekly

    # Birthdays this month
    contact-reminder birthdays
"""

import sys
from datetime import date
from pathlib import Path
from typing import NoReturn

import click

from contact_reminder import __version__
from contact_reminder.app import ContactReminderApp, build_app
from contact_reminder.auth.google_auth import (
    DEFAULT_AUTH_TIMEOUT,
    AuthenticationError,
    GoogleAuth,
)
from contact_reminder.cli.formatters import (
    show_birthday_entries,
    show_contacts_by_group,
    show_groups,
    show_note_entries,
)
from contact_reminder.config.generator import save_config_file
from contact_reminder.config.loader import DEFAULT_CONFIG_FILE, ConfigError, ConfigLoader
from contact_reminder.errors import ContactReminderError, NotFound, PermissionDenied
from contact_reminder.sync.birthdays import month_name, month_view, upcoming
from contact_reminder.sync.contact import ContactRecord, ReminderGroup
from contact_reminder.utils import resolve_config_dir
from contact_reminder.utils.logging import cleanup_old_logs, get_logger, setup_logging

GROUP_CHOICES = [group.value for group in ReminderGroup]


def get_config_dir(config_dir: str | None) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_dir: Path, config_file: str | None) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / DEFAULT_CONFIG_FILE


def get_app(ctx: click.Context) -> ContactReminderApp:
    """Build the application once per invocation and close it on exit."""
    app: ContactReminderApp | None = ctx.obj.get("app")
    if app is None:
        app = build_app(ctx.obj["config"], ctx.obj["config_dir"])
        ctx.obj["app"] = app
        ctx.call_on_close(app.close)
    return app


def resolve_contact(
    app: ContactReminderApp, contact_ref: str, cached_only: bool = False
) -> ContactRecord:
    """
    Find a cached contact by full id or unique id prefix.

    Args:
        app: Application whose contacts are searched
        contact_ref: Full contact id or a unique prefix of one
        cached_only: Search the local cache as stored, without importing
            from the directory (for cache-only commands such as delete)

    Raises:
        NotFound: If nothing matches
        click.UsageError: If the prefix matches more than one contact
    """
    if cached_only:
        contacts = app.database.get_all_contacts()
    else:
        contacts = app.engine.fetch_all()
    exact = [contact for contact in contacts if contact.id == contact_ref]
    if exact:
        return exact[0]

    matches = [contact for contact in contacts if contact.id.startswith(contact_ref)]
    if not matches:
        raise NotFound(f"Contact not found: {contact_ref}")
    if len(matches) > 1:
        names = ", ".join(contact.name for contact in matches[:5])
        raise click.UsageError(
            f"Contact id '{contact_ref}' is ambiguous ({names}). Use more characters."
        )
    return matches[0]


def exit_with_error(error: Exception) -> NoReturn:
    """Report a failed command and exit with status 1."""
    logger = get_logger(__name__)
    logger.debug(f"Command failed: {error!r}")
    click.echo(click.style(f"Error: {error}", fg="red"), err=True)
    if isinstance(error, PermissionDenied):
        click.echo("Run 'contact-reminder auth' to grant access.", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="contact-reminder")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="CONTACT_REMINDER_CONFIG_DIR",
    help="Configuration directory path (default: ~/.contact-reminder).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="CONTACT_REMINDER_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
) -> None:
    """
    Contact Reminder.

    Keeps your Google Contacts sorted by how often you want to reach out,
    with birthday views and a dated note journal per contact.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(resolved_config_dir, config_file)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # Keep going with defaults so a broken file never locks the user out
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    # CLI flag takes precedence over config file
    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    log_dir = Path(config["log_dir"]) if config.get("log_dir") else None
    setup_logging(verbose=effective_verbose, log_dir=log_dir, enable_file_logging=True)
    cleanup_old_logs(log_dir=log_dir, keep_count=config.get("log_retention_count", 10))


# =============================================================================
# Auth Command
# =============================================================================


@cli.command("auth")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force re-authentication even if already authenticated.",
)
@click.pass_context
def auth_command(ctx: click.Context, force: bool) -> None:
    """
    Grant access to Google Contacts.

    Opens a browser window to complete the OAuth flow and stores
    the credentials for future use.

    Examples:

        contact-reminder auth

        # Force re-authentication
        contact-reminder auth --force
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]
    config = ctx.obj["config"]

    auth = GoogleAuth(
        config_dir=config_dir,
        auth_timeout=config.get("auth_timeout", DEFAULT_AUTH_TIMEOUT),
    )

    if not force and auth.is_authenticated():
        click.echo(click.style("Already authenticated.", fg="green"))
        click.echo("Use --force to re-authenticate.")
        return

    if force and auth.clear_credentials():
        logger.info("Discarded stored token before re-authenticating")

    click.echo("Authenticating with Google Contacts...")

    try:
        auth.authenticate(force_reauth=force)
    except FileNotFoundError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        click.echo("\nTo get started:", err=True)
        click.echo("1. Go to https://console.cloud.google.com/", err=True)
        click.echo("2. Create a project and enable the People API", err=True)
        click.echo("3. Create OAuth 2.0 credentials (Desktop application)", err=True)
        click.echo(
            f"4. Download and save as: {config_dir / 'credentials.json'}", err=True
        )
        sys.exit(1)
    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        click.echo(click.style(f"Authentication failed: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style("Successfully authenticated!", fg="green"))
    logger.info("Authentication completed")


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@click.pass_context
def status_command(ctx: click.Context) -> None:
    """
    Show authorization and cache status.

    Example:

        contact-reminder status
    """
    try:
        app = get_app(ctx)
        auth_status = app.auth.get_auth_status()
        engine_status = app.engine.get_status()
    except ContactReminderError as e:
        exit_with_error(e)

    click.echo("=== Contact Reminder Status ===\n")

    click.echo(f"Configuration directory: {auth_status['config_dir']}")
    creds_status = (
        "Found" if auth_status["credentials_exist"] else click.style("Not found", fg="red")
    )
    click.echo(f"OAuth credentials: {creds_status}")

    if auth_status["authenticated"]:
        auth_text = click.style("Authenticated", fg="green")
    elif auth_status["token_exists"]:
        auth_text = click.style("Token expired or invalid", fg="yellow")
    else:
        auth_text = click.style("Not authenticated", fg="red")
    click.echo(f"Google Contacts: {auth_text}")

    click.echo(f"Cached contacts: {engine_status['cached_contacts']}")
    click.echo(f"Saved group order: {len(app.group_order.stored_order())} groups")
    click.echo()

    if not auth_status["credentials_exist"]:
        click.echo(
            click.style("Setup required: OAuth credentials not found.", fg="yellow")
        )
        click.echo("Please download credentials from Google Cloud Console")
        click.echo(f"and save to: {auth_status['credentials_path']}")
    elif not auth_status["authenticated"]:
        click.echo(click.style("Authentication required.", fg="yellow"))
        click.echo("  Run: contact-reminder auth")
    elif engine_status["cached_contacts"] == 0:
        click.echo("Run 'contact-reminder contacts' to import your contacts.")
    else:
        click.echo(click.style("Ready!", fg="green"))


# =============================================================================
# Init-Config Command
# =============================================================================


@cli.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite existing configuration file if it exists.",
)
@click.pass_context
def init_config_command(ctx: click.Context, force: bool) -> None:
    """
    Generate a default configuration file.

    Creates a configuration file with all available options documented
    and commented out.

    Examples:

        contact-reminder init-config

        # Overwrite existing config file
        contact-reminder init-config --force
    """
    logger = get_logger(__name__)
    config_file = ctx.obj["config_file"]

    click.echo(f"Creating configuration file: {config_file}")

    success, error = save_config_file(config_file, overwrite=force)

    if success:
        click.echo(click.style("Configuration file created successfully!", fg="green"))
        click.echo(f"\nLocation: {config_file}")
        click.echo("\nNext steps:")
        click.echo("1. Edit the file to uncomment and configure desired options")
        click.echo("2. Run 'contact-reminder --help' to see available commands")
    else:
        click.echo(click.style(f"Error: {error}", fg="red"), err=True)
        logger.error(f"Failed to create configuration file: {error}")
        sys.exit(1)


# =============================================================================
# Contact Commands
# =============================================================================


@cli.command("contacts")
@click.option(
    "--group",
    "-g",
    type=click.Choice(GROUP_CHOICES, case_sensitive=False),
    help="Only show contacts in this reminder group.",
)
@click.pass_context
def contacts_command(ctx: click.Context, group: str | None) -> None:
    """
    List cached contacts by reminder group.

    The first run imports every Google contact into the "Never" group.

    Examples:

        contact-reminder contacts
        contact-reminder contacts --group weekly
    """
    try:
        app = get_app(ctx)
        app.engine.fetch_all()
    except ContactReminderError as e:
        exit_with_error(e)

    grouped = app.engine.contacts_by_group()
    if group:
        selected = ReminderGroup.parse(group)
        grouped = {g: c for g, c in grouped.items() if g is selected}

    show_contacts_by_group(grouped)


@cli.command("set-group")
@click.argument("contact_id")
@click.argument("group", type=click.Choice(GROUP_CHOICES, case_sensitive=False))
@click.pass_context
def set_group_command(ctx: click.Context, contact_id: str, group: str) -> None:
    """
    Assign a contact to a reminder group.

    CONTACT_ID may be the full id or a unique prefix, as shown by
    'contact-reminder contacts'.

    Example:

        contact-reminder set-group 3f2a9c1e weekly
    """
    try:
        app = get_app(ctx)
        contact = resolve_contact(app, contact_id)
        new_group = ReminderGroup.parse(group)
        app.engine.update_group(contact.id, new_group)
    except ContactReminderError as e:
        exit_with_error(e)

    click.echo(
        click.style(f"Moved {contact.name} to {new_group.value}.", fg="green")
    )


@cli.command("delete")
@click.argument("contact_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def delete_command(ctx: click.Context, contact_id: str, yes: bool) -> None:
    """
    Remove a contact from the local cache.

    The Google contact itself is not touched.

    Example:

        contact-reminder delete 3f2a9c1e
    """
    try:
        app = get_app(ctx)
        contact = resolve_contact(app, contact_id, cached_only=True)
    except ContactReminderError as e:
        exit_with_error(e)

    if not yes:
        click.confirm(f"Remove {contact.name} from the reminder list?", abort=True)

    try:
        app.engine.delete_contact(contact.id)
    except ContactReminderError as e:
        exit_with_error(e)

    click.echo(click.style(f"Removed {contact.name}.", fg="green"))


# =============================================================================
# Group Order Commands
# =============================================================================


@cli.command("groups")
@click.pass_context
def groups_command(ctx: click.Context) -> None:
    """
    List Google contact groups in your saved order.

    Example:

        contact-reminder groups
    """
    try:
        app = get_app(ctx)
        groups = app.engine.refresh_groups()
    except ContactReminderError as e:
        exit_with_error(e)

    show_groups(app.group_order.resolve_order(groups))


@cli.command("reorder-groups")
@click.argument("group_ids", nargs=-1, required=True)
@click.pass_context
def reorder_groups_command(ctx: click.Context, group_ids: tuple[str, ...]) -> None:
    """
    Save a new display order for contact groups.

    Pass group ids (as shown by 'contact-reminder groups') in the order
    you want them. Groups left out are listed after these.

    Example:

        contact-reminder reorder-groups contactGroups/family contactGroups/friends
    """
    try:
        app = get_app(ctx)
    except ContactReminderError as e:
        exit_with_error(e)

    app.group_order.reorder(group_ids)
    click.echo(click.style(f"Saved order of {len(group_ids)} groups.", fg="green"))


# =============================================================================
# Birthday Command
# =============================================================================


@cli.command("birthdays")
@click.option(
    "--month",
    "-m",
    type=click.IntRange(1, 12),
    help="Month to show (1-12, default: current month).",
)
@click.option(
    "--upcoming",
    "-u",
    "upcoming_days",
    type=click.IntRange(0, 366),
    help="Show birthdays in the next N days instead of a month.",
)
@click.pass_context
def birthdays_command(
    ctx: click.Context, month: int | None, upcoming_days: int | None
) -> None:
    """
    Show contacts' birthdays for a month.

    Examples:

        contact-reminder birthdays
        contact-reminder birthdays --month 6
        contact-reminder birthdays --upcoming 14
    """
    try:
        app = get_app(ctx)
        contacts = app.engine.fetch_all()
    except ContactReminderError as e:
        exit_with_error(e)

    today = date.today()
    if upcoming_days is not None:
        show_birthday_entries(
            f"Birthdays in the next {upcoming_days} days",
            upcoming(contacts, today, upcoming_days),
        )
        return

    selected = month or today.month
    show_birthday_entries(
        f"Birthdays in {month_name(selected)}", month_view(contacts, selected)
    )


# =============================================================================
# Note Commands
# =============================================================================


@cli.command("notes")
@click.argument("contact_id")
@click.pass_context
def notes_command(ctx: click.Context, contact_id: str) -> None:
    """
    Show a contact's note journal, newest first.

    Example:

        contact-reminder notes 3f2a9c1e
    """
    try:
        app = get_app(ctx)
        contact = resolve_contact(app, contact_id)
        entries = app.journal.entries(contact.id)
    except ContactReminderError as e:
        exit_with_error(e)

    click.echo(click.style(contact.name, bold=True))
    click.echo()
    show_note_entries(entries)


@cli.command("note-add")
@click.argument("contact_id")
@click.argument("text")
@click.pass_context
def note_add_command(ctx: click.Context, contact_id: str, text: str) -> None:
    """
    Add a dated entry to the top of a contact's notes.

    Example:

        contact-reminder note-add 3f2a9c1e "Caught up over coffee"
    """
    try:
        app = get_app(ctx)
        contact = resolve_contact(app, contact_id)
        app.journal.append_entry(contact.id, text)
    except ContactReminderError as e:
        exit_with_error(e)

    click.echo(click.style(f"Added note for {contact.name}.", fg="green"))


@cli.command("note-replace")
@click.argument("contact_id")
@click.argument("text")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def note_replace_command(
    ctx: click.Context, contact_id: str, text: str, yes: bool
) -> None:
    """
    Overwrite a contact's entire notes. This cannot be undone.

    Example:

        contact-reminder note-replace 3f2a9c1e "Fresh start"
    """
    try:
        app = get_app(ctx)
        contact = resolve_contact(app, contact_id)
    except ContactReminderError as e:
        exit_with_error(e)

    if not yes:
        click.confirm(
            f"This will permanently replace all notes for {contact.name}.\n"
            "Continue?",
            abort=True,
        )

    try:
        app.journal.replace_all(contact.id, text)
    except ContactReminderError as e:
        exit_with_error(e)

    click.echo(click.style(f"Replaced notes for {contact.name}.", fg="green"))


# =============================================================================
# Reset Command
# =============================================================================


@cli.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def reset_command(ctx: click.Context, yes: bool) -> None:
    """
    Clear the local contact cache.

    Reminder groups are lost; the next command re-imports all contacts
    from Google. Google contacts and notes are not touched.

    Example:

        contact-reminder reset
    """
    if not yes:
        click.confirm(
            "This will clear all reminder groups and re-import contacts on next run.\n"
            "Continue?",
            abort=True,
        )

    try:
        app = get_app(ctx)
        removed = app.engine.reset()
    except ContactReminderError as e:
        exit_with_error(e)

    click.echo(click.style(f"Cleared {removed} cached contacts.", fg="green"))
    get_logger(__name__).info("Contact cache reset")
