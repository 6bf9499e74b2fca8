"""Readability classifier for extracted text.

Decides whether a backend produced genuine prose or binary/structural noise
(raw PDF syntax, undecoded font bytes, mis-mapped glyphs). No single signal
is reliable on its own, so several independent checks are applied and any
one failure marks the text as gibberish:

1. Length floor: too short to judge.
2. Binary density: control characters from undecoded streams.
3. Special-character density: symbol soup from broken font encodings.
4. PDF structural markers: object/stream syntax leaking into the text.
5. Word length: glued-together tokens with no spacing.
6. Sentence length: no sentence punctuation at all, or punctuation only.
7. Common words: no English function words.

A false "readable" verdict sends garbage downstream into summaries, while a
false "gibberish" verdict only costs another fallback attempt, so the
thresholds lean towards rejection.
"""

import re
from dataclasses import dataclass
from enum import Enum

from feed_digest_service.config import Settings


class CheckName(str, Enum):
    """Identifiers of the individual quality checks."""

    LENGTH = "length"
    BINARY_CHARS = "binary_chars"
    SPECIAL_CHARS = "special_chars"
    PDF_MARKERS = "pdf_markers"
    WORD_LENGTH = "word_length"
    SENTENCE_LENGTH = "sentence_length"
    COMMON_WORDS = "common_words"


PDF_MARKERS = (
    "obj",
    "endobj",
    "stream",
    "endstream",
    "xref",
    "trailer",
    "/Filter",
    "/FlateDecode",
    "/Length",
    "/Type",
    "/Page",
)

COMMON_WORDS = ("the", "and", "to", "of", "in", "for", "is", "on", "that", "by")

_BINARY_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_SPECIAL_CHARS = re.compile(r"[^\w\s.,;:?!()\[\]{}'\"«»“”‘’—–-]")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_COMMON_WORD_PATTERNS = {word: re.compile(rf"\b{word}\b") for word in COMMON_WORDS}


@dataclass(frozen=True)
class QualityThresholds:
    """Tunable limits for the gibberish checks."""

    min_length: int = 50
    max_binary_ratio: float = 0.05
    max_special_ratio: float = 0.30
    max_pdf_markers: int = 3
    max_avg_word_length: float = 15.0
    min_avg_sentence_words: float = 1.0
    max_avg_sentence_words: float = 50.0
    min_common_words: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> "QualityThresholds":
        return cls(
            min_length=settings.gibberish_min_length,
            max_binary_ratio=settings.gibberish_binary_ratio,
            max_special_ratio=settings.gibberish_special_ratio,
            max_pdf_markers=settings.gibberish_max_pdf_markers,
            max_avg_word_length=settings.gibberish_max_word_length,
            min_avg_sentence_words=settings.gibberish_min_sentence_words,
            max_avg_sentence_words=settings.gibberish_max_sentence_words,
            min_common_words=settings.gibberish_min_common_words,
        )


@dataclass(frozen=True)
class ExtractionVerdict:
    """Outcome of classifying one text sample.

    Attributes:
        is_gibberish: True if any check failed
        failed_checks: Every check that failed (empty for readable text)
    """

    is_gibberish: bool
    failed_checks: frozenset[CheckName] = frozenset()


class GibberishClassifier:
    """Scores text on independent heuristics and returns a binary verdict.

    Stateless apart from its thresholds: the same text always yields the same
    verdict.

    Usage:
        classifier = GibberishClassifier()
        verdict = classifier.assess(text)
        if verdict.is_gibberish:
            logger.info("rejected", failed_checks=sorted(verdict.failed_checks))
    """

    def __init__(self, thresholds: QualityThresholds | None = None) -> None:
        self.thresholds = thresholds or QualityThresholds()

    def is_gibberish(self, text: str | None) -> bool:
        """Return True if text is not readable prose."""
        return self.assess(text).is_gibberish

    def assess(self, text: str | None) -> ExtractionVerdict:
        """Run every applicable check and collect the failures.

        None and empty text fail only the length check; the ratio-based
        checks are undefined for them.

        Args:
            text: Text sample to classify

        Returns:
            ExtractionVerdict listing all failed checks
        """
        if not text:
            return ExtractionVerdict(is_gibberish=True, failed_checks=frozenset({CheckName.LENGTH}))

        failed: set[CheckName] = set()
        t = self.thresholds
        length = len(text)

        if length < t.min_length:
            failed.add(CheckName.LENGTH)

        if len(_BINARY_CHARS.findall(text)) > length * t.max_binary_ratio:
            failed.add(CheckName.BINARY_CHARS)

        if len(_SPECIAL_CHARS.findall(text)) > length * t.max_special_ratio:
            failed.add(CheckName.SPECIAL_CHARS)

        if count_structural_markers(text) > t.max_pdf_markers:
            failed.add(CheckName.PDF_MARKERS)

        if average_word_length(text) > t.max_avg_word_length:
            failed.add(CheckName.WORD_LENGTH)

        sentence_words = average_sentence_words(text)
        if sentence_words > t.max_avg_sentence_words or sentence_words < t.min_avg_sentence_words:
            failed.add(CheckName.SENTENCE_LENGTH)

        if len(common_words_found(text)) < t.min_common_words:
            failed.add(CheckName.COMMON_WORDS)

        return ExtractionVerdict(is_gibberish=bool(failed), failed_checks=frozenset(failed))


def count_structural_markers(text: str) -> int:
    """Count distinct PDF keywords appearing in structural context.

    A marker counts only when it is present as ``/marker``, ``marker>>`` or
    ``<<marker``, so prose mentioning "stream" or "trailer" is not penalised.
    """
    return sum(
        1
        for marker in PDF_MARKERS
        if marker in text
        and (f"/{marker}" in text or f"{marker}>>" in text or f"<<{marker}" in text)
    )


def average_word_length(text: str) -> float:
    words = text.split()
    if not words:
        return 0.0
    return sum(len(word) for word in words) / len(words)


def average_sentence_words(text: str) -> float:
    """Mean number of words per ``.!?``-delimited segment."""
    segments = _SENTENCE_SPLIT.split(text)
    return sum(len(segment.split()) for segment in segments) / len(segments)


def common_words_found(text: str) -> set[str]:
    """Return the common English words present as whole words (case-insensitive)."""
    lowered = text.lower()
    return {word for word, pattern in _COMMON_WORD_PATTERNS.items() if pattern.search(lowered)}


_default_classifier = GibberishClassifier()


def is_gibberish(text: str | None) -> bool:
    """Classify text with the default thresholds."""
    return _default_classifier.is_gibberish(text)
