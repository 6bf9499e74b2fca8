"""Content type detection utilities."""

from enum import Enum
from urllib.parse import urlparse

PDF_MAGIC = b"%PDF-"
_HTML_MARKERS = (b"<!doctype html", b"<html", b"<head", b"<body")


class ContentType(str, Enum):
    """Supported content types."""

    HTML = "html"
    PDF = "pdf"
    UNKNOWN = "unknown"


def detect_content_type(url: str, content_type_header: str | None = None) -> ContentType:
    """Detect content type from URL and Content-Type header.

    Detection strategy:
    1. URL pattern (*.pdf, *.html)
    2. Content-Type header
    3. Default to HTML

    Args:
        url: URL of the document
        content_type_header: Value of the response Content-Type header, if known

    Returns:
        Detected ContentType
    """
    path = urlparse(url).path.lower()

    if path.endswith(".pdf"):
        return ContentType.PDF
    if path.endswith((".html", ".htm")):
        return ContentType.HTML

    header = (content_type_header or "").lower()
    if "application/pdf" in header:
        return ContentType.PDF

    return ContentType.HTML


def sniff_content_type(content: bytes) -> ContentType:
    """Classify a response body by its leading bytes.

    A BOM or whitespace before the PDF header is tolerated. HTML is
    recognised by its usual opening tags within the first kilobyte.
    """
    head = content[:1024].lstrip(b"\xef\xbb\xbf \t\r\n")

    if head.startswith(PDF_MAGIC):
        return ContentType.PDF

    lowered = head.lower()
    if any(marker in lowered for marker in _HTML_MARKERS):
        return ContentType.HTML

    return ContentType.UNKNOWN


def looks_like_pdf(content: bytes, min_size: int = 100) -> bool:
    """Quick validity check: PDF magic number and a plausible minimum size."""
    return len(content) >= min_size and content.startswith(PDF_MAGIC)
