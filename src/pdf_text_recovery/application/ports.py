"""Application-level contracts for fetchers, strategies and credentials."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from pdf_text_recovery.domain.extraction import AttemptSuccess, RawDocumentBytes


@dataclass(frozen=True)
class SessionCredentials:
    """Access token and project API key attached to server calls."""

    access_token: str
    api_key: str | None = None


@dataclass(frozen=True)
class ExtractionRequest:
    """Input shared by every extraction strategy within one run."""

    document: RawDocumentBytes
    correlation_id: str
    max_pages: int | None = None
    server_timeout_seconds: int = 30
    options: dict[str, object] = field(default_factory=dict)


class DocumentFetcher(Protocol):
    """Port for retrieving raw document bytes."""

    async def fetch(self, source_url: str, title: str | None = None) -> RawDocumentBytes:
        """Fetch bytes; raise network, auth or not-found errors."""
        ...


class ExtractionStrategy(Protocol):
    """One way of turning PDF bytes into text."""

    @property
    def name(self) -> str:
        """Return strategy identity used in logs and audit records."""
        ...

    async def extract(self, request: ExtractionRequest) -> AttemptSuccess:
        """Return extracted text or raise a classified extraction error."""
        ...


class SessionTokenStore(Protocol):
    """Storage port for session credentials."""

    def save(self, credentials: SessionCredentials) -> None:
        """Persist credentials."""
        ...

    def load(self) -> SessionCredentials | None:
        """Load credentials if an access token is present."""
        ...

    def clear(self) -> None:
        """Delete stored credentials."""
        ...
