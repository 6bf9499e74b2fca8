"""Extraction pipeline used by feed refresh and reprocessing."""

import asyncio
import time
from concurrent.futures import Executor
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

import httpx

from feed_digest_service.config import Settings, settings
from feed_digest_service.logging_config import get_logger

from .base import BackendName, Confidence
from .content_type import ContentType, detect_content_type
from .html_extractor import ArticleContentExtractor, extract_pdf_urls
from .html_normalizer import normalize
from .pdf_extractor import PdfExtractorConfig, PdfTextExtractor
from .quality import GibberishClassifier
from .simple_extractor import SimplePdfExtractor, is_placeholder

logger = get_logger(__name__)

PdfStrategy = Literal["multi_backend", "byte_scanner"]


class ExtractionStatus(str, Enum):
    """Extraction status values."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PipelineConfig:
    """Configuration for extraction pipeline.

    Design Decision: Strategy switch instead of chained fallbacks
    - ``multi_backend`` runs the quality-checked parser chain
    - ``byte_scanner`` runs the dependency-free scanner only (placeholders
      are stored verbatim, as the feed-refresh path expects)

    Attributes:
        pdf_strategy: Which PDF extractor handles documents
        pdf_document_timeout_seconds: Deadline for one PDF, fetch included
        article_fetch_timeout_seconds: HTTP timeout for linked article pages
        user_agent: User-Agent header for article and scanner requests
        extractor: Configuration for the multi-backend extractor
    """

    pdf_strategy: PdfStrategy = "multi_backend"
    pdf_document_timeout_seconds: float = 300.0
    article_fetch_timeout_seconds: float = 10
    user_agent: str = "FeedDigest/1.0 (RSS Feed Aggregator)"
    extractor: PdfExtractorConfig = field(default_factory=PdfExtractorConfig)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        return cls(
            pdf_strategy=settings.pdf_strategy,
            pdf_document_timeout_seconds=settings.pdf_document_timeout_seconds,
            article_fetch_timeout_seconds=settings.article_fetch_timeout_seconds,
            user_agent=settings.extraction_user_agent,
            extractor=PdfExtractorConfig.from_settings(settings),
        )


@dataclass
class PdfOutcome:
    """Result of extracting one PDF, ready to be stored.

    Attributes:
        url: Document URL
        status: COMPLETED when text (possibly best-effort) was produced
        content: Extracted text; for the scanner strategy a failed
            extraction keeps its placeholder here
        confidence: ACCEPTED or BEST_EFFORT (None on failure)
        backend: Backend that produced the text (None on failure)
        error: Human-readable failure reason
    """

    url: str
    status: ExtractionStatus
    content: str | None = None
    confidence: Confidence | None = None
    backend: BackendName | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is ExtractionStatus.COMPLETED


@dataclass
class ItemExtraction:
    """Everything extracted for one feed item.

    Attributes:
        content: The item's own HTML content as plain text
        extended_content: Text of the linked article page
        pdf_urls: PDFs found in the item content and the article, in order
        pdfs: One outcome per entry of ``pdf_urls``
    """

    content: str | None = None
    extended_content: str | None = None
    pdf_urls: list[str] = field(default_factory=list)
    pdfs: list[PdfOutcome] = field(default_factory=list)


class ExtractionPipeline:
    """Orchestrates text extraction for feed items and their documents.

    Flow for one item:
    1. Normalise the item's HTML content
    2. Fetch the linked article (or treat the link itself as a PDF, when its
       URL, Content-Type or body says so)
    3. Collect PDF links from the item content and the article
    4. Extract each PDF in turn, each bounded by the per-document deadline

    Usage:
        pipeline = ExtractionPipeline()
        item = await pipeline.process_item(entry.link, entry.content_html)
        for pdf in item.pdfs:
            print(pdf.url, pdf.status, pdf.confidence)
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        executor: Executor | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize pipeline with configuration.

        Args:
            config: Pipeline configuration (built from application settings if None)
            executor: Executor for CPU-bound PDF parsing (single shared worker if None)
            transport: Optional httpx transport shared by all extractors
        """
        self.config = config or PipelineConfig.from_settings(settings)
        self.pdf_extractor = PdfTextExtractor(self.config.extractor, executor=executor, transport=transport)
        self.simple_extractor = SimplePdfExtractor(
            timeout_seconds=self.config.extractor.timeout_seconds,
            user_agent=self.config.user_agent,
            transport=transport,
        )
        self.article_extractor = ArticleContentExtractor(
            timeout_seconds=self.config.article_fetch_timeout_seconds,
            user_agent=self.config.user_agent,
            transport=transport,
        )
        self.classifier = GibberishClassifier(self.config.extractor.quality)

    async def extract_pdf(self, url: str) -> PdfOutcome:
        """Extract text from one PDF using the configured strategy.

        Never raises. Exceeding ``pdf_document_timeout_seconds`` cancels the
        extraction and yields a FAILED outcome.
        """
        start_time = time.perf_counter()
        timeout = self.config.pdf_document_timeout_seconds

        try:
            if self.config.pdf_strategy == "byte_scanner":
                outcome = await asyncio.wait_for(self._extract_with_scanner(url), timeout=timeout)
            else:
                outcome = await asyncio.wait_for(self._extract_with_backends(url), timeout=timeout)
        except TimeoutError:
            logger.warning("pipeline.pdf.timeout", url=url, timeout_seconds=timeout)
            return PdfOutcome(
                url=url,
                status=ExtractionStatus.FAILED,
                error=f"Extraction timed out after {timeout}s",
            )
        except Exception as e:
            logger.exception("pipeline.pdf.error", url=url)
            return PdfOutcome(url=url, status=ExtractionStatus.FAILED, error=str(e))

        logger.info(
            "pipeline.pdf.completed",
            url=url,
            strategy=self.config.pdf_strategy,
            status=outcome.status.value,
            confidence=outcome.confidence.value if outcome.confidence else None,
            length=len(outcome.content) if outcome.content else 0,
            elapsed_ms=round((time.perf_counter() - start_time) * 1000, 1),
        )
        return outcome

    async def process_item(self, link: str | None, content_html: str | None) -> ItemExtraction:
        """Extract the text of a feed item, its linked article and any PDFs.

        Args:
            link: The item's link (may point directly at a PDF)
            content_html: The item's HTML content or description

        Returns:
            ItemExtraction with one PdfOutcome per discovered PDF
        """
        result = ItemExtraction(content=normalize(content_html))
        pdf_urls = extract_pdf_urls(content_html, link or "")

        if link:
            if detect_content_type(link) is ContentType.PDF:
                pdf_urls.insert(0, link)
            else:
                article = await self.article_extractor.fetch(link)
                if article.is_pdf:
                    pdf_urls.insert(0, link)
                else:
                    result.extended_content = article.content
                    pdf_urls.extend(article.pdf_urls)

        result.pdf_urls = list(dict.fromkeys(pdf_urls))
        if result.pdf_urls:
            logger.info("pipeline.item.pdfs_found", link=link, count=len(result.pdf_urls))

        # Sequential: one document's pages in memory at a time
        for pdf_url in result.pdf_urls:
            result.pdfs.append(await self.extract_pdf(pdf_url))

        return result

    async def _extract_with_backends(self, url: str) -> PdfOutcome:
        extraction = await self.pdf_extractor.extract_with_details(url)
        if extraction is None:
            return PdfOutcome(
                url=url,
                status=ExtractionStatus.FAILED,
                error="No text could be extracted",
            )

        return PdfOutcome(
            url=url,
            status=ExtractionStatus.COMPLETED,
            content=extraction.text,
            confidence=extraction.confidence,
            backend=extraction.backend,
        )

    async def _extract_with_scanner(self, url: str) -> PdfOutcome:
        text = await self.simple_extractor.extract(url)
        if is_placeholder(text):
            return PdfOutcome(url=url, status=ExtractionStatus.FAILED, content=text, error=text)

        confidence = Confidence.BEST_EFFORT if self.classifier.is_gibberish(text) else Confidence.ACCEPTED
        return PdfOutcome(
            url=url,
            status=ExtractionStatus.COMPLETED,
            content=text,
            confidence=confidence,
            backend=BackendName.BYTE_SCANNER,
        )
