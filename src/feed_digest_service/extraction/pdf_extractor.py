"""Multi-backend PDF text extraction with quality-checked fallback."""

import asyncio
import time
from collections.abc import Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field

import httpx

from feed_digest_service.config import Settings
from feed_digest_service.logging_config import get_logger

from .backends import DEFAULT_MAX_PAGES, default_backends
from .base import Confidence, ExtractionCandidate, PdfBackend, PdfExtraction
from .exceptions import ContentTooLargeError, FetchError
from .quality import GibberishClassifier, QualityThresholds
from .retry import with_retry

logger = get_logger(__name__)

# Default home for blocking parser work; one worker so PyMuPDF never runs on
# two threads, and a timed-out parse finishes before the next one starts
PARSER_EXECUTOR = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf-parser")


@dataclass
class PdfExtractorConfig:
    """Configuration for PdfTextExtractor.

    Attributes:
        max_pages: Maximum pages processed per document
        min_content_length: Candidates must be longer than this to be accepted
        retry_attempts: Attempts per backend (including the first)
        retry_base_delay_ms: Linear backoff unit between attempts
        timeout_seconds: HTTP timeout for the document download
        max_content_size_mb: Downloads larger than this are rejected
        user_agent: User-Agent header for requests
        quality: Gibberish classifier thresholds
    """

    max_pages: int = DEFAULT_MAX_PAGES
    min_content_length: int = 100
    retry_attempts: int = 3
    retry_base_delay_ms: int = 1000
    timeout_seconds: float = 30
    max_content_size_mb: int = 50
    user_agent: str = "FeedDigest/1.0 (RSS Feed Aggregator)"
    quality: QualityThresholds = field(default_factory=QualityThresholds)

    @property
    def max_content_size_bytes(self) -> int:
        return self.max_content_size_mb * 1024 * 1024

    @classmethod
    def from_settings(cls, settings: Settings) -> "PdfExtractorConfig":
        return cls(
            max_pages=settings.pdf_max_pages,
            min_content_length=settings.pdf_min_content_length,
            retry_attempts=settings.extraction_retry_attempts,
            retry_base_delay_ms=settings.extraction_retry_base_delay_ms,
            timeout_seconds=settings.extraction_timeout_seconds,
            max_content_size_mb=settings.extraction_max_content_size_mb,
            user_agent=settings.extraction_user_agent,
            quality=QualityThresholds.from_settings(settings),
        )


class PdfTextExtractor:
    """Fetches a PDF and drives extraction backends in priority order.

    Flow:
    1. Fetch the document bytes (failure is terminal: None)
    2. Run each backend in turn, each wrapped in ``with_retry``
    3. Return the first candidate longer than ``min_content_length`` that the
       classifier accepts
    4. Otherwise return the longest candidate as best-effort
    5. None when every backend failed

    Design Decision: Sequential backends
    - Only one backend's decoded pages are held in memory at a time
    - Early exit on the first acceptable result
    - Concurrency comes from running many ``extract`` calls at once; the
      extractor keeps no per-call state on the instance

    Blocking parser work runs in ``executor``, by default the process-wide
    single-worker ``PARSER_EXECUTOR``. Many ``extract`` calls can be in flight
    at once, but their backend runs are serialised.
    """

    def __init__(
        self,
        config: PdfExtractorConfig | None = None,
        executor: Executor | None = None,
        backends: Sequence[PdfBackend] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize extractor.

        Args:
            config: Extractor configuration (uses defaults if None)
            executor: Executor for CPU-bound backends (``PARSER_EXECUTOR`` if None)
            backends: Backends in priority order (library parse, primary page
                walk, alternate page walk if None)
            transport: Optional httpx transport (used to stub the network in tests)
        """
        self.config = config or PdfExtractorConfig()
        self.classifier = GibberishClassifier(self.config.quality)
        self.backends = list(backends) if backends is not None else default_backends(self.config.max_pages)
        self._executor = executor or PARSER_EXECUTOR
        self._transport = transport

    async def extract(self, url: str) -> str | None:
        """Extract readable text from the PDF at ``url``.

        Never raises. Returns None when the download fails or no backend
        produced any text.
        """
        result = await self.extract_with_details(url)
        return result.text if result else None

    async def extract_with_details(self, url: str) -> PdfExtraction | None:
        """Like ``extract`` but also reports backend, confidence and candidates."""
        start_time = time.perf_counter()
        logger.info("pdf.extract.start", url=url)

        try:
            pdf_bytes = await self.fetch(url)
        except FetchError as e:
            logger.warning("pdf.extract.fetch_failed", url=url, error=str(e), status_code=e.status_code)
            return None

        try:
            result = await self.extract_from_bytes(pdf_bytes, url)
        except Exception:
            logger.exception("pdf.extract.unexpected_error", url=url)
            return None

        logger.info(
            "pdf.extract.completed",
            url=url,
            backend=result.backend.value if result else None,
            confidence=result.confidence.value if result else None,
            length=len(result.text) if result else 0,
            elapsed_ms=round((time.perf_counter() - start_time) * 1000, 1),
        )
        return result

    async def extract_from_bytes(self, pdf_bytes: bytes, url: str = "") -> PdfExtraction | None:
        """Run the backend chain over already-downloaded bytes.

        Args:
            pdf_bytes: Raw PDF document
            url: Source URL (for logging and the result)

        Returns:
            PdfExtraction, or None if every backend failed
        """
        candidates: list[ExtractionCandidate] = []

        for backend in self.backends:
            candidate = await self._run_backend(backend, pdf_bytes, url)
            candidates.append(candidate)

            if not candidate.succeeded:
                continue

            if self._is_acceptable(candidate, url):
                return PdfExtraction(
                    url=url,
                    text=candidate.text,
                    backend=candidate.backend,
                    confidence=Confidence.ACCEPTED,
                    candidates=candidates,
                )

        return self._select_best_effort(candidates, url)

    async def fetch(self, url: str) -> bytes:
        """Download the document.

        Raises:
            FetchError: On network errors, non-2xx responses or an empty body
            ContentTooLargeError: If the body exceeds the configured size
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                follow_redirects=True,
                headers={
                    "User-Agent": self.config.user_agent,
                    "Accept": "application/pdf,*/*",
                },
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(f"Timeout fetching {url}: {e}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Request error fetching {url}: {e}") from e

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code} fetching {url}",
                status_code=response.status_code,
            )

        content = response.content
        if not content:
            raise FetchError(f"Empty response body from {url}", status_code=response.status_code)

        if len(content) > self.config.max_content_size_bytes:
            raise ContentTooLargeError(
                f"Content size {len(content)} exceeds limit {self.config.max_content_size_bytes}",
                status_code=response.status_code,
            )

        logger.debug("pdf.extract.fetched", url=url, size=len(content))
        return content

    async def _run_backend(self, backend: PdfBackend, pdf_bytes: bytes, url: str) -> ExtractionCandidate:
        """Run one backend with retry, converting failure into an absent candidate."""
        loop = asyncio.get_running_loop()

        async def attempt() -> str | None:
            return await loop.run_in_executor(self._executor, backend.extract, pdf_bytes)

        try:
            text = await with_retry(
                attempt,
                max_attempts=self.config.retry_attempts,
                base_delay_ms=self.config.retry_base_delay_ms,
                description=f"pdf.backend.{backend.name.value}",
            )
        except Exception as e:
            logger.warning("pdf.extract.backend_failed", url=url, backend=backend.name.value, error=str(e))
            return ExtractionCandidate(backend=backend.name, text=None)

        if text is not None and not text.strip():
            text = None

        candidate = ExtractionCandidate(backend=backend.name, text=text)
        logger.debug(
            "pdf.extract.backend_result",
            url=url,
            backend=backend.name.value,
            length=candidate.length,
        )
        return candidate

    def _is_acceptable(self, candidate: ExtractionCandidate, url: str) -> bool:
        if candidate.length <= self.config.min_content_length:
            logger.info(
                "pdf.extract.backend_rejected",
                url=url,
                backend=candidate.backend.value,
                reason="too_short",
                length=candidate.length,
            )
            return False

        verdict = self.classifier.assess(candidate.text)
        if verdict.is_gibberish:
            logger.info(
                "pdf.extract.backend_rejected",
                url=url,
                backend=candidate.backend.value,
                reason="gibberish",
                failed_checks=sorted(check.value for check in verdict.failed_checks),
                length=candidate.length,
            )
            return False

        return True

    def _select_best_effort(self, candidates: list[ExtractionCandidate], url: str) -> PdfExtraction | None:
        """Pick the longest candidate when none passed the quality checks."""
        present = [c for c in candidates if c.succeeded]
        if not present:
            logger.error("pdf.extract.all_backends_failed", url=url, backends=len(candidates))
            return None

        # max() keeps the earliest (highest-priority) backend on ties
        best = max(present, key=lambda c: c.length)
        logger.warning(
            "pdf.extract.best_effort",
            url=url,
            backend=best.backend.value,
            length=best.length,
        )
        return PdfExtraction(
            url=url,
            text=best.text,
            backend=best.backend,
            confidence=Confidence.BEST_EFFORT,
            candidates=candidates,
        )
