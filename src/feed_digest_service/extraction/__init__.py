"""Content extraction module.

Provides extraction of clean text from feed item content, linked article
pages and PDF documents, with quality assessment of PDF output.

Usage:
    from feed_digest_service.extraction import ExtractionPipeline, PipelineConfig

    pipeline = ExtractionPipeline(PipelineConfig(pdf_strategy="byte_scanner"))

    outcome = await pipeline.extract_pdf("https://example.com/report.pdf")
    print(outcome.status, outcome.content)
"""

from .backends import LibraryParseBackend, PageWalkBackend, default_backends
from .base import BackendName, Confidence, ExtractionCandidate, PdfBackend, PdfExtraction
from .byte_scanner import PdfByteScanner, RawDecodeBackend
from .content_type import ContentType, detect_content_type, looks_like_pdf, sniff_content_type
from .exceptions import (
    BackendParseError,
    ContentTooLargeError,
    ExtractionError,
    FetchError,
)
from .html_extractor import ArticleContent, ArticleContentExtractor, extract_pdf_urls
from .html_normalizer import normalize
from .pdf_extractor import PdfExtractorConfig, PdfTextExtractor
from .pipeline import ExtractionPipeline, ExtractionStatus, ItemExtraction, PdfOutcome, PipelineConfig
from .quality import CheckName, ExtractionVerdict, GibberishClassifier, QualityThresholds, is_gibberish
from .retry import with_retry
from .simple_extractor import SimplePdfExtractor
from .utils import clean_text, normalize_whitespace

__all__ = [
    # Base types
    "BackendName",
    "Confidence",
    "ExtractionCandidate",
    "PdfBackend",
    "PdfExtraction",
    # Content types
    "ContentType",
    "detect_content_type",
    "looks_like_pdf",
    "sniff_content_type",
    # Backends
    "LibraryParseBackend",
    "PageWalkBackend",
    "PdfByteScanner",
    "RawDecodeBackend",
    "default_backends",
    # Extractors
    "ArticleContent",
    "ArticleContentExtractor",
    "PdfExtractorConfig",
    "PdfTextExtractor",
    "SimplePdfExtractor",
    "extract_pdf_urls",
    # Pipeline
    "ExtractionPipeline",
    "ExtractionStatus",
    "ItemExtraction",
    "PdfOutcome",
    "PipelineConfig",
    # Quality
    "CheckName",
    "ExtractionVerdict",
    "GibberishClassifier",
    "QualityThresholds",
    "is_gibberish",
    # Exceptions
    "ExtractionError",
    "FetchError",
    "ContentTooLargeError",
    "BackendParseError",
    # Utilities
    "clean_text",
    "normalize",
    "normalize_whitespace",
    "with_retry",
]
