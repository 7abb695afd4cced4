"""Security infrastructure package."""

from pdf_text_recovery.infrastructure.security.keyring_store import (
    KeyringSessionStore,
    KeyringStoreError,
)

__all__ = ["KeyringSessionStore", "KeyringStoreError"]
