"""Scanner-only PDF extraction for the feed-refresh path.

Unlike PdfTextExtractor this path has no parser dependencies in the loop and
never returns None: every outcome, including failures, is a string the
caller stores verbatim. Bracketed placeholder values mark low-confidence or
failed extractions.
"""

import asyncio

import httpx

from feed_digest_service.logging_config import get_logger

from .byte_scanner import PLACEHOLDERS, PdfByteScanner
from .content_type import looks_like_pdf

logger = get_logger(__name__)


def download_failed_placeholder(status_code: int) -> str:
    return f"[PDF could not be downloaded - HTTP {status_code}]"


def invalid_pdf_placeholder(url: str) -> str:
    return f"[Invalid PDF content from {url}]"


def extraction_failed_placeholder(message: str) -> str:
    return f"[PDF extraction failed: {message or 'unknown error'}]"


_PLACEHOLDER_PREFIXES = (
    "[PDF could not be downloaded - ",
    "[Invalid PDF content from ",
    "[PDF extraction failed: ",
)


def is_placeholder(text: str | None) -> bool:
    """True if ``text`` is a failure or low-confidence marker rather than document text."""
    if not text:
        return False
    return text in PLACEHOLDERS or (text.startswith(_PLACEHOLDER_PREFIXES) and text.endswith("]"))


class SimplePdfExtractor:
    """Fetch a PDF and run the byte scanner over it.

    Usage:
        extractor = SimplePdfExtractor()
        text = await extractor.extract("https://example.com/report.pdf")
    """

    def __init__(
        self,
        timeout_seconds: float = 30,
        user_agent: str = "FeedDigest/1.0 (RSS Feed Aggregator)",
        scanner: PdfByteScanner | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self.scanner = scanner or PdfByteScanner()
        self._transport = transport

    async def extract(self, url: str) -> str:
        """Download and scan a PDF.

        Args:
            url: URL of the PDF

        Returns:
            Extracted text or a placeholder describing what went wrong
        """
        try:
            logger.info("pdf.simple.fetch", url=url)
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(url)

            if not response.is_success:
                logger.warning("pdf.simple.download_failed", url=url, status_code=response.status_code)
                return download_failed_placeholder(response.status_code)

            pdf_bytes = response.content
            if not looks_like_pdf(pdf_bytes):
                logger.warning("pdf.simple.invalid_pdf", url=url, size=len(pdf_bytes))
                return invalid_pdf_placeholder(url)

            # Scanning a large file is CPU-bound; keep the event loop responsive
            text = await asyncio.to_thread(self.scanner.scan, pdf_bytes)
            logger.info("pdf.simple.completed", url=url, size=len(pdf_bytes), length=len(text))
            return text
        except Exception as e:
            logger.warning("pdf.simple.failed", url=url, error=str(e))
            return extraction_failed_placeholder(str(e))
