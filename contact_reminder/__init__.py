"""
contact_reminder - Personal contact organizer over Google Contacts

Keeps a local SQLite cache of directory contacts enriched with reminder
groups, birthday views and a note journal.
"""

__version__ = "0.1.0"
