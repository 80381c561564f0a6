"""contact_reminder.api - Google People API access and the directory client."""
