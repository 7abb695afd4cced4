"""Error taxonomy for document text extraction."""

from __future__ import annotations

from pdf_text_recovery.domain.extraction import FailureReason

USER_MESSAGES: dict[FailureReason, str] = {
    FailureReason.NETWORK: (
        "Cannot connect to the PDF processing service. "
        "The service may be down or there may be a network issue."
    ),
    FailureReason.TIMEOUT: "PDF processing timed out. The document may be too large or complex.",
    FailureReason.AUTH: "Authentication failed. Please sign in again and retry.",
    FailureReason.NOT_FOUND: "The document could not be found or is empty.",
    FailureReason.PARSE: (
        "The file does not appear to be a valid PDF document. "
        "It may be corrupted or in an unsupported format."
    ),
    FailureReason.NO_TEXT: "No text could be extracted from the PDF.",
    FailureReason.SERVER: "The PDF processing service could not process this document.",
    FailureReason.UNKNOWN: "Error processing PDF document.",
}


def user_message_for(reason: FailureReason) -> str:
    """Return user-facing sentence for a failure reason."""
    return USER_MESSAGES.get(reason, USER_MESSAGES[FailureReason.UNKNOWN])


class ExtractionError(RuntimeError):
    """Base error for extraction failures."""

    reason: FailureReason = FailureReason.UNKNOWN

    @property
    def user_message(self) -> str:
        return user_message_for(self.reason)


class DocumentNetworkError(ExtractionError):
    """Raised when a fetch or service call cannot reach its target."""

    reason = FailureReason.NETWORK


class ExtractionTimeoutError(ExtractionError):
    """Raised when the watchdog or HTTP timeout fires."""

    reason = FailureReason.TIMEOUT


class DocumentAuthError(ExtractionError):
    """Raised when credentials are missing or rejected."""

    reason = FailureReason.AUTH


class DocumentNotFoundError(ExtractionError):
    """Raised when the document is missing or has an empty body."""

    reason = FailureReason.NOT_FOUND


class PdfParseError(ExtractionError):
    """Raised when bytes are not a PDF or the structure cannot be read."""

    reason = FailureReason.PARSE


class NoTextFoundError(ExtractionError):
    """Raised when parsing succeeded but yielded no extractable text."""

    reason = FailureReason.NO_TEXT


class ServerExtractionError(ExtractionError):
    """Raised when the server-side function returns an error payload."""

    reason = FailureReason.SERVER


class ExtractionRetryExhaustedError(ExtractionError):
    """Raised when every attempt in the retry budget failed."""

    def __init__(self, message: str, *, attempts: int, reason: FailureReason) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.reason = reason


class ExtractionConfigurationError(ExtractionError):
    """Raised when extraction settings cannot be resolved."""
