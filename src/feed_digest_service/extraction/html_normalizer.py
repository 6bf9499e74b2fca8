"""HTML to paragraph-structured plain text.

Feed items arrive with bodies that are sometimes plain text and sometimes
HTML fragments of varying quality. ``normalize`` turns either into plain text
with one paragraph per line, and never loses data: if the markup cannot be
processed the original string is returned as-is.
"""

import re

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from feed_digest_service.logging_config import get_logger

logger = get_logger(__name__)

_TAG_PATTERN = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)

BLOCK_TAGS = frozenset(
    {"div", "p", "br", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "li", "blockquote", "pre"}
)

# Elements whose text content is never reader-visible prose
_SKIPPED_TAGS = frozenset({"script", "style", "noscript", "template"})

_PARAGRAPH_BREAK = "\n"


def looks_like_html(content: str) -> bool:
    """Check whether content contains anything resembling a tag."""
    return bool(_TAG_PATTERN.search(content))


def normalize(html: str | None) -> str | None:
    """Convert HTML into plain text, one paragraph per line.

    Args:
        html: HTML fragment/document, plain text, or None

    Returns:
        None for None input; the input unchanged when it contains no tags or
        cannot be parsed; otherwise newline-separated paragraphs.

    Example:
        >>> normalize("<p>Hello</p><p>World</p>")
        'Hello\\nWorld'
    """
    if html is None:
        return None

    if not looks_like_html(html):
        return html

    try:
        soup = BeautifulSoup(html, "html.parser")
        tokens: list[str] = []
        _walk(soup, tokens)
    except Exception as e:
        logger.warning("html.normalize.failed", error=str(e), length=len(html))
        return html

    lines = (line.strip() for line in " ".join(tokens).split(_PARAGRAPH_BREAK))
    return "\n".join(line for line in lines if line)


def _walk(node: Tag, tokens: list[str]) -> None:
    """Depth-first walk collecting text tokens and paragraph breaks."""
    for child in node.children:
        if isinstance(child, NavigableString):
            # Comments, doctypes, CDATA and processing instructions
            if isinstance(child, PreformattedString):
                continue
            text = child.strip()
            if text:
                tokens.append(text)
        elif isinstance(child, Tag):
            if child.name in _SKIPPED_TAGS:
                continue
            _walk(child, tokens)
            if child.name in BLOCK_TAGS:
                tokens.append(_PARAGRAPH_BREAK)
