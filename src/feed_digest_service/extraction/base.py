"""Shared types for PDF extraction backends and results."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class BackendName(str, Enum):
    """Identifies the strategy that produced a candidate."""

    LIBRARY_PARSE = "library_parse"
    RENDERED_PAGE_WALK = "rendered_page_walk"
    ALTERNATE_RENDERED_PAGE_WALK = "alternate_rendered_page_walk"
    BYTE_SCANNER = "byte_scanner"
    RAW_DECODE = "raw_decode"


class Confidence(str, Enum):
    """How the final text was selected.

    ACCEPTED: a backend produced long enough, non-gibberish text.
    BEST_EFFORT: nothing cleared the quality bar; the longest candidate was used.
    """

    ACCEPTED = "accepted"
    BEST_EFFORT = "best_effort"


@dataclass(frozen=True)
class ExtractionCandidate:
    """Output of one backend attempt, prior to quality adjudication.

    ``text=None`` means the backend failed. It never means "the PDF is empty";
    backends normalise blank output to None before building a candidate.

    Attributes:
        backend: Strategy that produced this candidate
        text: Extracted text, or None on backend failure
    """

    backend: BackendName
    text: str | None = None

    @property
    def length(self) -> int:
        """Character count of ``text`` (0 when absent)."""
        return len(self.text) if self.text is not None else 0

    @property
    def succeeded(self) -> bool:
        return self.text is not None


@dataclass
class PdfExtraction:
    """Final result of one PDF extraction call.

    Attributes:
        url: Source URL of the document
        text: Selected text
        backend: Backend whose candidate was selected
        confidence: Accepted outright or returned as best-effort
        candidates: Every candidate produced during the call, in attempt order
    """

    url: str
    text: str
    backend: BackendName
    confidence: Confidence
    candidates: list[ExtractionCandidate] = field(default_factory=list)

    @property
    def is_best_effort(self) -> bool:
        return self.confidence is Confidence.BEST_EFFORT


class PdfBackend(ABC):
    """One independent strategy for turning PDF bytes into text.

    Backends are synchronous and CPU-bound; the orchestrator runs them off the
    event loop, one at a time, so concurrent extractions are not blocked.
    """

    name: BackendName

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> str | None:
        """Extract text from a PDF.

        Args:
            pdf_bytes: Raw document bytes (read-only, shared across backends)

        Returns:
            Extracted text, or None if the document yielded no text

        Raises:
            BackendParseError: If the document could not be parsed
        """
        pass
