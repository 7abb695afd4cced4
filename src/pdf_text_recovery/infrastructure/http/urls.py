"""URL validation and Google Drive link rewriting."""

from __future__ import annotations

import re
from dataclasses import dataclass

import httpx

GOOGLE_DRIVE_HOST_MARKER = "drive.google.com"
_DIRECT_DOWNLOAD_TEMPLATE = "https://drive.google.com/uc?export=download&id={file_id}&alt=media"

_FILE_ID_PATTERN = re.compile(r"/file/d/([^/]+)")
_OPEN_ID_PATTERN = re.compile(r"\?id=([^&]+)")
_DOCS_ID_PATTERN = re.compile(r"document/d/([^/]+)")
_ANY_ID_PATTERN = re.compile(r"([a-zA-Z0-9_-]{25,})")


@dataclass(frozen=True)
class UrlValidation:
    """Outcome of PDF URL validation."""

    is_valid: bool
    message: str | None = None


@dataclass(frozen=True)
class ConvertedUrl:
    """Possibly rewritten URL and whether a rewrite happened."""

    url: str
    was_converted: bool


def is_absolute_http_url(url: str) -> bool:
    """Return whether value is an absolute http(s) URL with a host."""
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.host)


def validate_pdf_url(url: str) -> UrlValidation:
    """Check that a URL is well formed and plausibly points to a PDF."""
    if not url:
        return UrlValidation(is_valid=False, message="URL is empty")
    if not is_absolute_http_url(url):
        return UrlValidation(is_valid=False, message="Invalid URL format")

    if GOOGLE_DRIVE_HOST_MARKER in url:
        return UrlValidation(is_valid=True)

    lowered = url.lower()
    if "pdf" in lowered:
        return UrlValidation(is_valid=True)

    return UrlValidation(
        is_valid=False,
        message=(
            "URL doesn't appear to point to a PDF document. The URL should end with .pdf "
            "or be a properly formatted Google Drive link."
        ),
    )


def convert_google_drive_url(url: str) -> ConvertedUrl:
    """Rewrite Google Drive view/open links to direct download links."""
    if GOOGLE_DRIVE_HOST_MARKER not in url or "alt=media" in url:
        return ConvertedUrl(url=url, was_converted=False)

    file_match = _FILE_ID_PATTERN.search(url)
    if file_match:
        if url.endswith("/view"):
            return ConvertedUrl(url=f"{url}?alt=media", was_converted=True)
        return _direct_download(file_match.group(1))

    for pattern in (_OPEN_ID_PATTERN, _DOCS_ID_PATTERN, _ANY_ID_PATTERN):
        match = pattern.search(url)
        if match:
            return _direct_download(match.group(1))

    return ConvertedUrl(url=url, was_converted=False)


def _direct_download(file_id: str) -> ConvertedUrl:
    return ConvertedUrl(url=_DIRECT_DOWNLOAD_TEMPLATE.format(file_id=file_id), was_converted=True)
