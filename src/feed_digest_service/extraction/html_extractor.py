"""Article page content extraction and PDF link discovery."""

from dataclasses import dataclass, field
from urllib.parse import urljoin, urlparse

import httpx
import trafilatura
from bs4 import BeautifulSoup

from feed_digest_service.logging_config import get_logger

from .content_type import ContentType, detect_content_type, sniff_content_type
from .html_normalizer import normalize
from .utils import clean_text

logger = get_logger(__name__)

# Tried in order when trafilatura finds no main content
CONTENT_SELECTORS = (
    "article",
    "main",
    ".content",
    "#content",
    ".post-content",
    ".article-content",
    ".entry-content",
    ".post",
)

BOILERPLATE_SELECTORS = "script, style, nav, header, footer, aside"


@dataclass
class ArticleContent:
    """Readable text of a linked article and the PDFs it references.

    Attributes:
        content: Paragraph-structured plain text, or None if unavailable
        pdf_urls: Absolute URLs of linked PDFs, in document order
        is_pdf: The link served a PDF document rather than a page
    """

    content: str | None = None
    pdf_urls: list[str] = field(default_factory=list)
    is_pdf: bool = False


def extract_pdf_urls(html: str | None, base_url: str) -> list[str]:
    """Find links to PDF documents in an HTML page.

    Any anchor whose ``href`` contains ".pdf" counts. Relative links are
    resolved against ``base_url``; duplicates are dropped, first one wins.

    Args:
        html: HTML page or fragment
        base_url: URL the HTML was retrieved from

    Returns:
        Absolute PDF URLs ([] when html is empty or unparseable)
    """
    if not html:
        return []

    try:
        soup = BeautifulSoup(html, "html.parser")
        pdf_urls: list[str] = []

        for anchor in soup.select('a[href*=".pdf"]'):
            href = str(anchor.get("href", "")).strip()
            if not href:
                continue
            absolute_url = urljoin(base_url, href)
            if urlparse(absolute_url).scheme not in ("http", "https"):
                continue
            if absolute_url not in pdf_urls:
                pdf_urls.append(absolute_url)

        return pdf_urls
    except Exception as e:
        logger.warning("html.pdf_links.failed", base_url=base_url, error=str(e))
        return []


class ArticleContentExtractor:
    """Extract the readable body of an article page.

    Design Decision: Two-tier extraction strategy
    - Primary: trafilatura (boilerplate-aware main content detection)
    - Fallback: common content containers (article, main, .post-content...),
      then the whole page minus navigation/script/footer elements

    The fallback result keeps paragraph structure by passing the selected
    element's markup through ``normalize``.
    """

    def __init__(
        self,
        timeout_seconds: float = 10,
        user_agent: str = "FeedDigest/1.0 (RSS Feed Aggregator)",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self._transport = transport

    async def fetch(self, url: str) -> ArticleContent:
        """Fetch an article page and extract its text and PDF links.

        Never raises: any failure yields an empty ArticleContent. A link that
        turns out to serve a PDF (by final URL, Content-Type or magic bytes)
        yields ``is_pdf=True`` and no content.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml",
                },
                transport=self._transport,
            ) as client:
                response = await client.get(url)

            if not response.is_success:
                logger.warning("html.fetch.failed", url=url, status_code=response.status_code)
                return ArticleContent()

            final_url = str(response.url)
            if _is_pdf_response(response):
                logger.info("html.fetch.pdf_response", url=final_url)
                return ArticleContent(is_pdf=True)

            html = response.text
            logger.debug("html.fetch.received", url=final_url, length=len(html))

            pdf_urls = extract_pdf_urls(html, final_url)
            if pdf_urls:
                logger.info("html.pdf_links.found", url=final_url, count=len(pdf_urls))

            return ArticleContent(content=self.extract_main_content(html, final_url), pdf_urls=pdf_urls)
        except Exception as e:
            logger.warning("html.fetch.error", url=url, error=str(e))
            return ArticleContent()

    def extract_main_content(self, html: str, url: str | None = None) -> str | None:
        """Extract the main text of a page.

        Args:
            html: Full HTML page
            url: Page URL (helps trafilatura with metadata and link handling)

        Returns:
            Plain text with one paragraph per line, or None if nothing was found
        """
        extracted = trafilatura.extract(
            html,
            url=url,
            include_comments=False,
            include_tables=True,
            include_images=False,
            include_links=False,
            output_format="txt",
            favor_recall=True,
        )
        if extracted and extracted.strip():
            return clean_text(extracted)

        fallback = self._extract_with_selectors(html)
        return fallback or None

    def _extract_with_selectors(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")

        for selector in CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is not None:
                return normalize(str(element)) or ""

        for element in soup.select(BOILERPLATE_SELECTORS):
            element.decompose()

        return normalize(str(soup)) or ""


def _is_pdf_response(response: httpx.Response) -> bool:
    declared = detect_content_type(str(response.url), response.headers.get("content-type"))
    return declared is ContentType.PDF or sniff_content_type(response.content) is ContentType.PDF
