"""Shared pytest fixtures for extraction tests."""

import threading
import time
from collections.abc import Callable, Iterable

import fitz  # PyMuPDF
import pytest

from feed_digest_service.extraction.base import BackendName, PdfBackend

# ============================================================================
# Sample Text
# ============================================================================

PROSE = (
    "The committee reviewed the quarterly report on the state of the regional economy. "
    "It found that employment in the manufacturing sector is stable and that demand "
    "for credit by small firms continued to grow. "
    "The board will publish a full summary of the findings in the next edition of the bulletin."
)

NOISE = ("#$%&*@~" * 8)[:50]


@pytest.fixture
def prose_text() -> str:
    """Readable English prose, comfortably over every length threshold."""
    return PROSE


@pytest.fixture
def noise_text() -> str:
    """Fifty characters of symbols with no words in them."""
    return NOISE


# ============================================================================
# PDF Documents
# ============================================================================


def build_pdf(pages: Iterable[str]) -> bytes:
    """Render one text block per page into an in-memory PDF."""
    doc = fitz.open()
    for page_text in pages:
        page = doc.new_page()
        if page_text:
            page.insert_text((72, 72), page_text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def build_raw_pdf(text: str) -> bytes:
    """Hand-assemble an uncompressed single-page PDF showing ``text``."""
    content = f"BT /F1 12 Tf 72 712 Td ({text}) Tj ET".encode("latin-1")
    return (
        b"%PDF-1.4\n"
        b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
        b"2 0 obj\n<< /Type /Pages /Kids [3 0 R] /Count 1 >>\nendobj\n"
        b"3 0 obj\n<< /Type /Page /Parent 2 0 R /Contents 4 0 R >>\nendobj\n"
        b"4 0 obj\n<< /Length " + str(len(content)).encode() + b" >>\nstream\n"
        + content
        + b"\nendstream\nendobj\n"
        b"trailer\n<< /Root 1 0 R >>\n%%EOF\n"
    )


@pytest.fixture
def make_pdf() -> Callable[[Iterable[str]], bytes]:
    """Factory building real multi-page PDFs with PyMuPDF."""
    return build_pdf


@pytest.fixture
def raw_pdf_bytes() -> bytes:
    """Uncompressed PDF whose text the byte scanner can read directly."""
    return build_raw_pdf("The quarterly report describes the state of the regional economy in detail")


# ============================================================================
# Backends
# ============================================================================


class FakeBackend(PdfBackend):
    """Backend returning scripted results, one per attempt.

    Each entry of ``results`` is either the text to return or an exception to
    raise; the last entry repeats once the script runs out.
    """

    def __init__(self, name: BackendName, *results: str | None | Exception) -> None:
        self.name = name
        self.results = list(results) or [None]
        self.calls = 0

    def extract(self, pdf_bytes: bytes) -> str | None:
        result = self.results[min(self.calls, len(self.results) - 1)]
        self.calls += 1
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_backend() -> type[FakeBackend]:
    """The scripted backend class, for building backend chains in tests."""
    return FakeBackend


class ThreadCountingBackend(PdfBackend):
    """Backend that blocks for ``delay`` seconds and records peak thread overlap."""

    def __init__(self, name: BackendName = BackendName.LIBRARY_PARSE, delay: float = 0.2) -> None:
        self.name = name
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def extract(self, pdf_bytes: bytes) -> str | None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return pdf_bytes.decode("latin-1")
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def counting_backend() -> type[ThreadCountingBackend]:
    """The thread-overlap recording backend class."""
    return ThreadCountingBackend
