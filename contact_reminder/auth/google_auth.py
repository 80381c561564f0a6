"""
OAuth2 authentication module for Google Contacts directory access.

Provides OAuth 2.0 authentication with support for:
- Automatic token refresh
- Secure credential storage in the configuration directory
- Graceful handling of expired tokens
"""

import json
import logging
from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from contact_reminder.utils import resolve_config_dir

# OAuth2 scopes required for Google Contacts access
SCOPES = ["https://www.googleapis.com/auth/contacts"]

# File names inside the configuration directory
CREDENTIALS_FILE = "credentials.json"
TOKEN_FILE = "token.json"

# Default auth timeout for the local OAuth redirect server (in seconds)
DEFAULT_AUTH_TIMEOUT = 120

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails or credentials are invalid."""

    pass


class GoogleAuth:
    """
    OAuth2 authentication manager for the directory account.

    Attributes:
        config_dir: Directory for storing credentials and tokens
        credentials_path: Path to OAuth client credentials file
        token_path: Path to the stored user token

    Usage:
        auth = GoogleAuth()

        # Load stored credentials without user interaction
        creds = auth.get_credentials()

        # Run the browser flow if needed
        creds = auth.authenticate()
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        auth_timeout: int = DEFAULT_AUTH_TIMEOUT,
    ):
        """
        Initialize the authentication manager.

        Args:
            config_dir: Directory for storing credentials and tokens.
                       Defaults to ~/.contact-reminder/ or $CONTACT_REMINDER_CONFIG_DIR
            auth_timeout: Seconds to wait for the OAuth redirect
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.credentials_path = self.config_dir / CREDENTIALS_FILE
        self.token_path = self.config_dir / TOKEN_FILE
        self.auth_timeout = auth_timeout

    def _ensure_config_dir(self) -> None:
        """Create the configuration directory with 700 permissions if missing."""
        if not self.config_dir.exists():
            self.config_dir.mkdir(parents=True, mode=0o700)
            logger.debug(f"Created config directory: {self.config_dir}")

    def _load_credentials(self) -> Credentials | None:
        """
        Load credentials from the token file if it exists.

        Returns:
            Credentials object if the token file exists and parses, None otherwise
        """
        if not self.token_path.exists():
            logger.debug("No token file found")
            return None

        try:
            creds: Credentials = Credentials.from_authorized_user_file(
                str(self.token_path), SCOPES
            )
            logger.debug("Loaded stored credentials")
            return creds
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Invalid token file {self.token_path}: {e}")
            return None

    def _save_credentials(self, creds: Credentials) -> None:
        """Write credentials to the token file with 600 permissions."""
        self._ensure_config_dir()
        self.token_path.write_text(creds.to_json())
        self.token_path.chmod(0o600)
        logger.debug(f"Saved credentials to {self.token_path}")

    def _refresh_credentials(self, creds: Credentials) -> bool:
        """
        Attempt to refresh expired credentials.

        Returns:
            True if refresh succeeded, False otherwise
        """
        if not creds.refresh_token:
            logger.debug("No refresh token available")
            return False

        try:
            creds.refresh(Request())
            logger.debug("Successfully refreshed credentials")
            return True
        except RefreshError as e:
            logger.warning(f"Failed to refresh credentials: {e}")
            return False

    def get_credentials(self) -> Credentials | None:
        """
        Get valid credentials if available.

        Loads and, when expired, refreshes stored credentials without user
        interaction.

        Returns:
            Valid Credentials object, or None if not available
        """
        creds = self._load_credentials()

        if creds is None:
            return None

        if creds.valid:
            return creds

        if creds.expired and creds.refresh_token and self._refresh_credentials(creds):
            self._save_credentials(creds)
            return creds

        return None

    def authenticate(self, force_reauth: bool = False) -> Credentials:
        """
        Authenticate the directory account.

        Returns existing valid credentials unless force_reauth is set;
        otherwise runs the installed-app OAuth flow in a browser.

        Args:
            force_reauth: If True, ignore existing credentials and re-authenticate

        Raises:
            AuthenticationError: If authentication fails
            FileNotFoundError: If credentials.json is not found
        """
        if not force_reauth:
            creds = self.get_credentials()
            if creds is not None:
                logger.info("Using existing credentials")
                return creds

        if not self.credentials_path.exists():
            raise FileNotFoundError(
                f"OAuth credentials file not found: {self.credentials_path}\n"
                "Please download your OAuth client credentials from "
                "Google Cloud Console and save them to this location."
            )

        logger.info("Starting OAuth flow")

        try:
            flow = InstalledAppFlow.from_client_secrets_file(
                str(self.credentials_path), SCOPES
            )
            new_creds: Credentials = flow.run_local_server(
                port=0, timeout_seconds=self.auth_timeout
            )
        except Exception as e:
            logger.error(f"Authentication failed: {e}")
            raise AuthenticationError(f"Failed to authenticate: {e}") from e

        if new_creds is None:
            raise AuthenticationError("OAuth flow did not return credentials")

        self._save_credentials(new_creds)
        logger.info("Successfully authenticated")
        return new_creds

    def is_authenticated(self) -> bool:
        """Check if valid credentials are available."""
        return self.get_credentials() is not None

    def clear_credentials(self) -> bool:
        """
        Remove stored credentials.

        Returns:
            True if credentials were removed, False if they didn't exist
        """
        if self.token_path.exists():
            self.token_path.unlink()
            logger.info("Cleared stored credentials")
            return True

        return False

    def get_auth_status(self) -> dict[str, object]:
        """
        Get authentication status.

        Returns:
            Dictionary with authenticated, token_path, token_exists,
            credentials_path, credentials_exist and config_dir
        """
        return {
            "authenticated": self.is_authenticated(),
            "token_path": str(self.token_path),
            "token_exists": self.token_path.exists(),
            "credentials_path": str(self.credentials_path),
            "credentials_exist": self.credentials_path.exists(),
            "config_dir": str(self.config_dir),
        }
