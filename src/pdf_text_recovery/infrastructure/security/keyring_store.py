"""Keyring-backed session credential storage adapter."""

from __future__ import annotations

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from pdf_text_recovery.application.errors import DocumentAuthError
from pdf_text_recovery.application.ports import SessionCredentials, SessionTokenStore

ACCESS_TOKEN_USERNAME = "session:access_token"
API_KEY_USERNAME = "session:api_key"


class KeyringStoreError(DocumentAuthError):
    """Raised when keyring backend operation fails; surfaces as an auth failure."""


class KeyringSessionStore(SessionTokenStore):
    """Store the session access token and project API key in the OS keyring."""

    def __init__(self, service_name: str = "pdf-text-recovery") -> None:
        self._service_name = service_name

    def save(self, credentials: SessionCredentials) -> None:
        """Persist credentials; an absent API key removes a stale one."""
        access_token = credentials.access_token.strip()
        if not access_token:
            raise ValueError("access_token must not be empty")

        self._set(ACCESS_TOKEN_USERNAME, access_token)
        api_key = (credentials.api_key or "").strip()
        if api_key:
            self._set(API_KEY_USERNAME, api_key)
        else:
            self._delete(API_KEY_USERNAME)

    def load(self) -> SessionCredentials | None:
        """Load credentials or return None when no access token is stored."""
        access_token = self._get(ACCESS_TOKEN_USERNAME)
        if not access_token:
            return None
        return SessionCredentials(
            access_token=access_token,
            api_key=self._get(API_KEY_USERNAME) or None,
        )

    def clear(self) -> None:
        """Delete stored credentials; no-op if already absent."""
        self._delete(ACCESS_TOKEN_USERNAME)
        self._delete(API_KEY_USERNAME)

    def _set(self, username: str, secret: str) -> None:
        try:
            keyring.set_password(self._service_name, username, secret)
        except KeyringError as exc:
            raise KeyringStoreError(f"Failed to persist {username}.") from exc

    def _get(self, username: str) -> str | None:
        try:
            return keyring.get_password(self._service_name, username)
        except KeyringError as exc:
            raise KeyringStoreError(f"Failed to read {username}.") from exc

    def _delete(self, username: str) -> None:
        try:
            keyring.delete_password(self._service_name, username)
        except PasswordDeleteError:
            return
        except KeyringError as exc:
            raise KeyringStoreError(f"Failed to delete {username}.") from exc
