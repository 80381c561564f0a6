"""
contact_reminder.auth - Directory authorization

OAuth 2.0 credential management for the Google Contacts account.
"""

from contact_reminder.auth.google_auth import AuthenticationError, GoogleAuth

__all__ = ["GoogleAuth", "AuthenticationError"]
