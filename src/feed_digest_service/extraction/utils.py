"""Text cleaning utilities shared by the extraction backends."""

import re
import unicodedata

# C0 controls except tab/LF/CR, plus DEL and C1 controls
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_HYPHEN_BREAK = re.compile(r"([a-z])- ([a-z])", re.IGNORECASE)
_SENTENCE_BREAK = re.compile(r"\.\s+([A-Z])")


def clean_text(text: str | None) -> str:
    """Clean and normalize extracted text.

    - Normalizes Unicode
    - Removes control characters
    - Normalizes whitespace and line endings

    Args:
        text: Raw extracted text

    Returns:
        Cleaned text ("" for None)
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFC", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")

    # Remove control characters except newlines and tabs
    text = "".join(char for char in text if unicodedata.category(char) != "Cc" or char in "\n\t")

    text = normalize_whitespace(text)

    return text.strip()


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace in text.

    - Replaces multiple spaces with single space
    - Replaces multiple newlines with double newline (paragraph break)
    - Removes trailing whitespace from lines

    Args:
        text: Text to normalize

    Returns:
        Text with normalized whitespace
    """
    text = text.replace("\t", " ")

    lines = [line.rstrip() for line in text.split("\n")]
    text = "\n".join(lines)

    text = re.sub(r" +", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)

    return text


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space."""
    return re.sub(r"\s+", " ", text).strip()


def reflow_text(text: str) -> str:
    """Rebuild paragraphs from text that lost its line structure.

    PDF text operators carry no reliable line or paragraph information, so
    the text is flattened and paragraphs are re-inserted at sentence ends.

    - Collapses whitespace
    - Joins words split by a hyphenated line break ("extrac- tion")
    - Starts a new paragraph after a period followed by a capital letter
    - Strips control characters

    Args:
        text: Flattened or partially flattened text

    Returns:
        Reflowed text
    """
    text = collapse_whitespace(text)
    text = _HYPHEN_BREAK.sub(r"\1\2", text)
    text = _SENTENCE_BREAK.sub(r".\n\n\1", text)
    text = re.sub(r"\n[ \t]+", "\n", text)
    text = _CONTROL_CHARS.sub("", text)
    return text.strip()
