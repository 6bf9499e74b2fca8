"""PDF extraction backends built on PyMuPDF.

Three strategies, tried by the orchestrator in this order:

- LibraryParseBackend: pymupdf4llm whole-document conversion. Fastest, and
  handles the majority of well-formed PDFs.
- PageWalkBackend(PRIMARY_PAGE_WALK): page-by-page word extraction in content
  stream order, for documents whose layout analysis mis-renders.
- PageWalkBackend(ALTERNATE_PAGE_WALK): page-by-page block extraction in
  reading order, with ligature expansion, dehyphenation and whitespace
  normalisation toggled, for documents with unusual fonts or CMaps.

Every backend processes at most ``max_pages`` pages. PyMuPDF is not thread-safe,
so a document is only ever open in one thread at a time (``PARSER_LOCK``).
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Literal

import fitz  # PyMuPDF
import pymupdf4llm

from .base import BackendName, PdfBackend
from .exceptions import BackendParseError
from .utils import clean_text, collapse_whitespace

DEFAULT_MAX_PAGES = 100

# Held from open to close of every PyMuPDF document in the process
PARSER_LOCK = threading.Lock()


@contextmanager
def open_pdf(pdf_bytes: bytes, backend: BackendName) -> Iterator[fitz.Document]:
    """Open PDF bytes as a PyMuPDF document, closing it afterwards.

    Blocks until no other thread holds a PyMuPDF document open.

    Raises:
        BackendParseError: If the bytes are not a readable PDF or are encrypted
    """
    with PARSER_LOCK:
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            raise BackendParseError(backend.value, f"cannot open document: {e}") from e

        try:
            if doc.needs_pass:
                raise BackendParseError(backend.value, "document is encrypted")
            yield doc
        finally:
            doc.close()


class LibraryParseBackend(PdfBackend):
    """General-purpose extraction via pymupdf4llm.

    Output is markdown-flavoured text (headers, tables) cleaned with
    ``clean_text``; page separators are disabled so the text reads as one
    document.
    """

    name = BackendName.LIBRARY_PARSE

    def __init__(self, max_pages: int = DEFAULT_MAX_PAGES) -> None:
        self.max_pages = max_pages

    def extract(self, pdf_bytes: bytes) -> str | None:
        with open_pdf(pdf_bytes, self.name) as doc:
            pages = list(range(min(doc.page_count, self.max_pages)))
            if not pages:
                return None
            try:
                md_text = pymupdf4llm.to_markdown(
                    doc,
                    pages=pages,
                    page_chunks=False,
                    show_progress=False,
                )
            except Exception as e:
                raise BackendParseError(self.name.value, str(e)) from e

        text = clean_text(md_text)
        return text or None


@dataclass(frozen=True)
class PageWalkConfig:
    """Renderer configuration for one page-walk variant.

    Attributes:
        backend: Name reported on candidates from this configuration
        mode: "words" joins individual words; "blocks" joins text blocks
        flags: PyMuPDF TEXT_* extraction flags
        sort: Reorder text top-left to bottom-right instead of stream order
        normalize_whitespace: Collapse whitespace inside each page
    """

    backend: BackendName
    mode: Literal["words", "blocks"]
    flags: int
    sort: bool
    normalize_whitespace: bool


PRIMARY_PAGE_WALK = PageWalkConfig(
    backend=BackendName.RENDERED_PAGE_WALK,
    mode="words",
    flags=fitz.TEXT_PRESERVE_LIGATURES | fitz.TEXT_PRESERVE_WHITESPACE | fitz.TEXT_MEDIABOX_CLIP,
    sort=False,
    normalize_whitespace=True,
)

ALTERNATE_PAGE_WALK = PageWalkConfig(
    backend=BackendName.ALTERNATE_RENDERED_PAGE_WALK,
    mode="blocks",
    flags=fitz.TEXT_DEHYPHENATE | fitz.TEXT_MEDIABOX_CLIP,
    sort=True,
    normalize_whitespace=False,
)


class PageWalkBackend(PdfBackend):
    """Walks pages one at a time, joining the text items of each page.

    Pages are joined with blank lines; empty pages are skipped.
    """

    def __init__(self, config: PageWalkConfig = PRIMARY_PAGE_WALK, max_pages: int = DEFAULT_MAX_PAGES) -> None:
        self.config = config
        self.max_pages = max_pages
        self.name = config.backend

    def extract(self, pdf_bytes: bytes) -> str | None:
        page_texts: list[str] = []

        with open_pdf(pdf_bytes, self.name) as doc:
            for page_number in range(min(doc.page_count, self.max_pages)):
                try:
                    page_text = self._page_text(doc[page_number])
                except Exception as e:
                    raise BackendParseError(
                        self.name.value, f"page {page_number + 1}: {e}"
                    ) from e
                if page_text:
                    page_texts.append(page_text)

        text = "\n\n".join(page_texts).strip()
        return text or None

    def _page_text(self, page: fitz.Page) -> str:
        config = self.config
        items = page.get_text(config.mode, flags=config.flags, sort=config.sort)

        if config.mode == "words":
            # (x0, y0, x1, y1, word, block_no, line_no, word_no)
            text = " ".join(item[4] for item in items)
        else:
            # (x0, y0, x1, y1, text, block_no, block_type); type 1 is an image
            text = "\n".join(item[4].strip() for item in items if item[6] == 0 and item[4].strip())

        if config.normalize_whitespace:
            return collapse_whitespace(text)
        return clean_text(text)


def default_backends(max_pages: int = DEFAULT_MAX_PAGES) -> list[PdfBackend]:
    """Backends in priority order: library parse, primary walk, alternate walk."""
    return [
        LibraryParseBackend(max_pages=max_pages),
        PageWalkBackend(PRIMARY_PAGE_WALK, max_pages=max_pages),
        PageWalkBackend(ALTERNATE_PAGE_WALK, max_pages=max_pages),
    ]
