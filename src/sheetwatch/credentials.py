"""Service account credentials for Google Sheets API access."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC
from pathlib import Path

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from loguru import logger

from sheetwatch.exceptions import CredentialsError

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"


@dataclass
class Token:
    """Access token for Google API calls.

    Attributes:
        access_token: The OAuth2 access token.
        service_account_email: Email of the service account.
        expires_at: Unix timestamp when the token expires.
    """

    access_token: str
    service_account_email: str
    expires_at: float

    def is_valid(self, buffer_seconds: int = 60) -> bool:
        """Check if token is still valid with a safety buffer."""
        return time.time() < self.expires_at - buffer_seconds

    def expires_in_seconds(self) -> int:
        """Return seconds until token expires."""
        return max(0, int(self.expires_at - time.time()))


def load_service_account(path: str | Path) -> service_account.Credentials:
    """Load service account credentials from a JSON key file."""
    path = Path(path)
    if not path.exists():
        raise CredentialsError(f"Service account file not found: {path}")
    try:
        return service_account.Credentials.from_service_account_file(
            str(path), scopes=[SHEETS_SCOPE]
        )
    except (ValueError, KeyError) as e:
        raise CredentialsError(f"Invalid service account file {path}: {e}") from e


class CredentialsProvider:
    """Hands out access tokens, refreshing the service account when needed.

    Example:
        >>> provider = CredentialsProvider("/root/config/credentials.json")
        >>> token = provider.get_token()
    """

    def __init__(self, service_account_path: str | Path) -> None:
        self._path = Path(service_account_path)
        self._credentials: service_account.Credentials | None = None
        self._token: Token | None = None

    def get_token(self, force_refresh: bool = False) -> Token:
        """Return a valid token, refreshing it if expired or forced."""
        if not force_refresh and self._token and self._token.is_valid():
            return self._token

        if self._credentials is None:
            logger.info(f"Loading credentials from {self._path}")
            self._credentials = load_service_account(self._path)

        try:
            self._credentials.refresh(Request())
        except GoogleAuthError as e:
            raise CredentialsError(f"Failed to refresh access token: {e}") from e

        expiry = self._credentials.expiry
        self._token = Token(
            access_token=self._credentials.token,
            service_account_email=self._credentials.service_account_email,
            # google-auth reports expiry as naive UTC
            expires_at=expiry.replace(tzinfo=UTC).timestamp() if expiry else 0,
        )
        logger.info(
            f"Service account {self._token.service_account_email}, "
            f"token expires in {self._token.expires_in_seconds()} seconds"
        )
        return self._token
