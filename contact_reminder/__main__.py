"""
Entry point for running contact_reminder as a module.

Usage:
    python -m contact_reminder --help
    python -m contact_reminder auth
    python -m contact_reminder contacts --group Weekly
"""

from contact_reminder.cli import cli

if __name__ == "__main__":
    cli()
