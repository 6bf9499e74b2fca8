"""Dependency-free PDF text scavenger working directly on raw bytes.

Used when no PDF library is available or trusted for a document. Instead of
parsing the object graph, the scanner pattern-matches the places where PDF
producers leave text behind and pools everything it finds:

1. Text objects (``BT ... ET``) and their string operands
2. Uncompressed content streams (``stream ... endstream``)
3. Long parenthesised strings anywhere in the file
4. Object streams (``N M obj << ... >> stream ... endstream``)
5. ToUnicode CMaps (``beginbfchar ... endbfchar``)

The result is low-fidelity but never raises: callers always get a string,
possibly one of the placeholder values below, which are meaningful content
for the persistence layer rather than errors.
"""

import re
import zlib

from feed_digest_service.logging_config import get_logger

from .base import BackendName, PdfBackend
from .utils import reflow_text

logger = get_logger(__name__)

LIMITED_EXTRACTION_PLACEHOLDER = "[PDF content available but text extraction was limited]"
FAILED_EXTRACTION_PLACEHOLDER = "[PDF content extraction failed]"
PLACEHOLDERS = frozenset({LIMITED_EXTRACTION_PLACEHOLDER, FAILED_EXTRACTION_PLACEHOLDER})

MAX_SCAN_BYTES = 10_000_000
MAX_OUTPUT_CHARS = 500_000
MIN_USEFUL_CHARS = 50

# Dictionaries between "obj" and "stream" are bounded to keep matching linear
_MAX_DICT_CHARS = 4096
_HEADER_LOOKBEHIND = 2048
_STREAM_SAMPLE_CHARS = 1000

_TEXT_BLOCK = re.compile(r"BT(.*?)ET", re.S)
_LITERAL = re.compile(r"\(((?:[^)\\]|\\.)++)\)", re.S)
_LITERAL_ANY_LENGTH = re.compile(r"\(((?:[^)\\]|\\.)*+)\)", re.S)
_LITERAL_STANDALONE = re.compile(r"\(([^)\\]{10,}+(?:\\.[^)\\]*+)*+)\)", re.S)
_LITERAL_LAST_RESORT = re.compile(r"\(([^)\\]{3,}+(?:\\.[^)\\]*+)*+)\)", re.S)
_HEX = re.compile(r"<([0-9A-Fa-f]+)>")
_HEX_ANY_LENGTH = re.compile(r"<([0-9A-Fa-f]*)>")
_HEX_LAST_RESORT = re.compile(r"<([0-9A-Fa-f]{6,})>")
_STREAM = re.compile(r"stream[\r\n]+(.*?)endstream", re.S)
_OBJECT_STREAM = re.compile(
    rf"\d+\s+\d+\s+obj[\r\n]+<<.{{0,{_MAX_DICT_CHARS}}}?>>[\r\n]+stream[\r\n]+(.*?)endstream",
    re.S,
)
_TO_UNICODE_CMAP = re.compile(
    rf"/ToUnicode\s+<<.{{0,{_MAX_DICT_CHARS}}}?>>\s+stream[\r\n]+(.*?)endstream",
    re.S,
)
_BFCHAR_BLOCK = re.compile(r"beginbfchar\s+(.*?)endbfchar", re.S)
_BFCHAR_PAIR = re.compile(r"<([0-9A-Fa-f]+)>\s*<([0-9A-Fa-f]+)>")
_ENCODED_STREAM_FILTER = re.compile(
    r"/(?:DCTDecode|FlateDecode|LZWDecode|ASCII85Decode|ASCIIHexDecode|JPXDecode|CCITTFaxDecode|JBIG2Decode)",
    re.I,
)
_FLATE_STREAM = re.compile(
    rf"<<((?:(?!endobj).){{0,{_MAX_DICT_CHARS}}}?)>>\s*stream\r?\n(.*?)endstream",
    re.S,
)
_ESCAPE = re.compile(r"\\([0-7]{1,3}|[nrtbf\\()]|\r\n|[\r\n])")
_ALPHANUMERIC = re.compile(r"[a-zA-Z0-9]")

_METADATA_PATTERNS = (
    re.compile(r"^Adobe", re.I),
    re.compile(r"^PDF", re.I),
    re.compile(r"^Acrobat", re.I),
    re.compile(r"^uuid:", re.I),
    re.compile(r"^\d+\s+\d+\s+obj"),
    re.compile(r"^endobj"),
    re.compile(r"^xref"),
    re.compile(r"^trailer"),
    re.compile(r"^startxref"),
    re.compile(r"^%%EOF"),
)

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "\\": "\\",
    "(": "(",
    ")": ")",
}

# Residual PDF syntax removed after reflow, applied in order
_SYNTAX_CLEANUP = (
    (re.compile(r"\b(?:endobj|endstream|startxref|xref|trailer)\b"), ""),
    (re.compile(r"[ \t]+\d+[ \t]+"), " "),
    (re.compile(r"[ \t]+obj[ \t]+"), " "),
    (re.compile(r"\(cid:\d+\)"), ""),
    (re.compile(r"[ \t]*\d+[ \t]+Tf\b[ \t]*"), " "),
    (re.compile(r"[ \t]*\d+(?:\.\d+)?[ \t]+\d+(?:\.\d+)?[ \t]+Td\b[ \t]*"), " "),
    (re.compile(r"[ \t]*\d+(?:\.\d+)?[ \t]+g\b[ \t]*"), " "),
    (re.compile(r"[ \t]*\b(?:BT|ET)\b[ \t]*"), " "),
)


def _is_printable(code: int) -> bool:
    return 32 <= code <= 126 or code in (9, 10, 13)


def printable_ratio(text: str) -> float:
    """Fraction of characters that are printable ASCII, tab, LF or CR."""
    if not text:
        return 0.0
    return sum(1 for char in text if _is_printable(ord(char))) / len(text)


def is_probably_text(text: str) -> bool:
    """True when more than 80% of the characters are printable ASCII."""
    return printable_ratio(text) > 0.8


def is_likely_metadata(text: str) -> bool:
    """True for producer strings, XMP ids and file-structure keywords."""
    return any(pattern.search(text) for pattern in _METADATA_PATTERNS)


def decode_literal(raw: str) -> str:
    """Resolve the escape sequences of a PDF literal string.

    Octal escapes become the corresponding character; ``\\n \\r \\t \\b \\f
    \\\\ \\( \\)`` become their literal forms; a backslash before a line break
    is a line continuation and is dropped.
    """

    def replace(match: re.Match[str]) -> str:
        escape = match.group(1)
        if escape[0] in "01234567":
            return chr(int(escape, 8))
        if escape[0] in "\r\n":
            return ""
        return _SIMPLE_ESCAPES[escape]

    return _ESCAPE.sub(replace, raw)


def hex_to_text(hex_digits: str) -> str:
    """Decode a hex string byte by byte, keeping printable ASCII and tab/LF/CR.

    A trailing odd digit is ignored.
    """
    chars = []
    for i in range(0, len(hex_digits) - 1, 2):
        code = int(hex_digits[i : i + 2], 16)
        if _is_printable(code):
            chars.append(chr(code))
    return "".join(chars)


def unicode_hex_to_text(hex_digits: str) -> str:
    """Decode a CMap destination value as Unicode code point(s).

    Values made of whole 16-bit units are UTF-16BE (covering ligatures and
    surrogate pairs); anything else is read as a single code point.
    """
    if len(hex_digits) % 4 == 0:
        return bytes.fromhex(hex_digits).decode("utf-16-be", errors="ignore")
    code = int(hex_digits, 16)
    return chr(code) if code <= 0x10FFFF else ""


def _collect_strings(content: str, literal: re.Pattern[str], hex_pattern: re.Pattern[str], min_length: int) -> list[str]:
    """Extract decoded literal and hex strings that look like text."""
    strings: list[str] = []

    for match in literal.finditer(content):
        text = decode_literal(match.group(1))
        if text.strip() and len(text) >= min_length and is_probably_text(text):
            strings.append(text.strip())

    for match in hex_pattern.finditer(content):
        if not match.group(1):
            continue
        text = hex_to_text(match.group(1))
        if text.strip() and len(text) >= min_length and is_probably_text(text):
            strings.append(text.strip())

    return strings


def _is_likely_binary_stream(header: str, body: str) -> bool:
    """Detect image/compressed streams by their filter or their byte profile."""
    if _ENCODED_STREAM_FILTER.search(header) or _ENCODED_STREAM_FILTER.search(body):
        return True
    return printable_ratio(body[:_STREAM_SAMPLE_CHARS]) < 0.3


def _stream_header(pdf: str, stream_start: int) -> str:
    """Return the object dictionary text preceding a ``stream`` keyword."""
    window = pdf[max(0, stream_start - _HEADER_LOOKBEHIND) : stream_start]
    obj_index = window.rfind("obj")
    return window[obj_index:] if obj_index >= 0 else window


def _scan_text_blocks(pdf: str) -> list[str]:
    strings: list[str] = []
    for match in _TEXT_BLOCK.finditer(pdf):
        if match.group(1):
            strings.extend(_collect_strings(match.group(1), _LITERAL, _HEX, min_length=2))
    return strings


def _scan_content_streams(pdf: str) -> list[str]:
    strings: list[str] = []
    for match in _STREAM.finditer(pdf):
        body = match.group(1)
        if not body or _is_likely_binary_stream(_stream_header(pdf, match.start()), body):
            continue
        strings.extend(_collect_strings(body, _LITERAL, _HEX, min_length=2))
    return strings


def _scan_standalone_strings(pdf: str) -> list[str]:
    strings: list[str] = []
    for match in _LITERAL_STANDALONE.finditer(pdf):
        text = decode_literal(match.group(1))
        if text.strip() and len(text) > 10 and is_probably_text(text) and not is_likely_metadata(text):
            strings.append(text.strip())
    return strings


def _scan_object_streams(pdf: str) -> list[str]:
    strings: list[str] = []
    for match in _OBJECT_STREAM.finditer(pdf):
        if match.group(1):
            strings.extend(
                _collect_strings(match.group(1), _LITERAL_ANY_LENGTH, _HEX_ANY_LENGTH, min_length=0)
            )
    return strings


def _scan_cmaps(pdf: str) -> list[str]:
    strings: list[str] = []
    for cmap in _TO_UNICODE_CMAP.finditer(pdf):
        for block in _BFCHAR_BLOCK.finditer(cmap.group(1)):
            for pair in _BFCHAR_PAIR.finditer(block.group(1)):
                text = unicode_hex_to_text(pair.group(2))
                if text.strip() and is_probably_text(text):
                    strings.append(text.strip())
    return strings


def _scan_all_possible_text(pdf: str) -> list[str]:
    """Last-resort pass: any string with a reasonable share of alphanumerics."""
    strings: list[str] = []

    candidates = [decode_literal(m.group(1)) for m in _LITERAL_LAST_RESORT.finditer(pdf)]
    candidates += [hex_to_text(m.group(1)) for m in _HEX_LAST_RESORT.finditer(pdf)]

    for text in candidates:
        if len(text.strip()) > 3 and len(_ALPHANUMERIC.findall(text)) > len(text) * 0.3:
            strings.append(text.strip())

    return strings


def postprocess(strings: list[str]) -> str:
    """Pool extracted strings into one cleaned text.

    Drops single characters and duplicates (first occurrence wins), joins with
    spaces, reflows paragraphs and strips residual PDF syntax tokens.
    """
    pooled = list(dict.fromkeys(s for s in strings if len(s) > 1))
    text = reflow_text(" ".join(pooled))

    for pattern, replacement in _SYNTAX_CLEANUP:
        text = pattern.sub(replacement, text)

    lines = [re.sub(r" {2,}", " ", line).strip() for line in text.split("\n")]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


class PdfByteScanner(PdfBackend):
    """Pattern-based text scavenger over raw PDF bytes.

    Usage:
        scanner = PdfByteScanner()
        text = scanner.scan(pdf_bytes)  # never raises, never None

    As a backend (``extract``), placeholder results are reported as None so an
    orchestrator can tell "no text found" from real content.
    """

    name = BackendName.BYTE_SCANNER

    def scan(self, pdf_bytes: bytes) -> str:
        """Extract whatever text can be found in the raw bytes.

        Args:
            pdf_bytes: Raw PDF document

        Returns:
            Extracted text (at most 500,000 characters) or a placeholder string
        """
        try:
            pdf = pdf_bytes[:MAX_SCAN_BYTES].decode("latin-1")

            strings: list[str] = []
            strings.extend(_scan_text_blocks(pdf))
            strings.extend(_scan_content_streams(pdf))
            strings.extend(_scan_standalone_strings(pdf))
            strings.extend(_scan_object_streams(pdf))
            strings.extend(_scan_cmaps(pdf))

            text = postprocess(strings)
            if len(text) >= MIN_USEFUL_CHARS:
                return text[:MAX_OUTPUT_CHARS]

            logger.debug("pdf.scan.last_resort", pooled_strings=len(strings), length=len(text))
            fallback = postprocess(_scan_all_possible_text(pdf))
            if len(fallback) >= MIN_USEFUL_CHARS:
                return fallback[:MAX_OUTPUT_CHARS]

            return LIMITED_EXTRACTION_PLACEHOLDER
        except Exception as e:
            logger.error("pdf.scan.failed", error=str(e), size=len(pdf_bytes))
            return FAILED_EXTRACTION_PLACEHOLDER

    def extract(self, pdf_bytes: bytes) -> str | None:
        text = self.scan(pdf_bytes)
        return None if text in PLACEHOLDERS else text


class RawDecodeBackend(PdfBackend):
    """Inflates Flate-compressed content streams and reads their text operators.

    Most producers compress page content, which the byte scanner skips. This
    backend decompresses each ``/FlateDecode`` stream with zlib (tolerating
    truncated data) and runs the text-object scan over the decoded operators.
    """

    name = BackendName.RAW_DECODE

    def __init__(self, max_streams: int = 2000) -> None:
        self.max_streams = max_streams

    def extract(self, pdf_bytes: bytes) -> str | None:
        pdf = pdf_bytes[:MAX_SCAN_BYTES].decode("latin-1")
        strings: list[str] = []

        for index, match in enumerate(_FLATE_STREAM.finditer(pdf)):
            if index >= self.max_streams:
                break
            header, body = match.groups()
            if "/FlateDecode" not in header or _is_image_header(header):
                continue
            decoded = _inflate(body.encode("latin-1"))
            if decoded:
                strings.extend(_scan_text_blocks(decoded.decode("latin-1")))

        text = postprocess(strings)
        return text[:MAX_OUTPUT_CHARS] if text else None


def _is_image_header(header: str) -> bool:
    return "/Image" in header or "/DCTDecode" in header or "/JPXDecode" in header


def _inflate(data: bytes) -> bytes:
    """Decompress zlib data; corrupt streams yield empty bytes."""
    decompressor = zlib.decompressobj()
    try:
        return decompressor.decompress(data)
    except zlib.error:
        return b""
