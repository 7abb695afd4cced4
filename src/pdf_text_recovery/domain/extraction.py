"""Domain models for one document text-extraction request."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class FailureReason(StrEnum):
    """Classified cause of a failed extraction step."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    PARSE = "parse"
    NO_TEXT = "no_text"
    SERVER = "server"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class DocumentDescriptor:
    """Caller-supplied description of the document to extract."""

    url: str
    title: str
    mime_type: str = "application/pdf"


@dataclass(frozen=True)
class RawDocumentBytes:
    """Fetched document payload and where it came from."""

    data: bytes
    source: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PageFragment:
    """One positioned text run as emitted by the PDF parser."""

    page_number: int
    text: str
    order: int

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError("page_number must be >= 1")


@dataclass(frozen=True)
class AssembledText:
    """Concatenated document text with page bookkeeping."""

    full_text: str
    page_count: int
    per_page_lengths: tuple[int, ...]

    @property
    def is_empty(self) -> bool:
        return not self.full_text


@dataclass(frozen=True)
class QualityVerdict:
    """Readability judgement for one text blob."""

    readable: bool
    word_count: int
    total_length: int


@dataclass(frozen=True)
class AttemptSuccess:
    """Extraction strategy produced text."""

    text: str
    page_count: int | None = None


@dataclass(frozen=True)
class AttemptFailure:
    """Extraction strategy failed with a classified reason."""

    reason: FailureReason
    detail: str


AttemptOutcome = AttemptSuccess | AttemptFailure


@dataclass(frozen=True)
class ExtractionAttempt:
    """Audit record of one strategy invocation."""

    strategy_name: str
    attempt_number: int
    started_at: datetime
    outcome: AttemptOutcome

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, AttemptSuccess)


@dataclass(frozen=True)
class CleaningStageResult:
    """Output of one cleaning stage and whether it was accepted."""

    stage_name: str
    output: str
    accepted: bool


@dataclass(frozen=True)
class ExtractionOutput:
    """Final answer handed back to the caller."""

    success: bool
    text: str
    correlation_id: str
    error: str | None = None
    pages: int | None = None
