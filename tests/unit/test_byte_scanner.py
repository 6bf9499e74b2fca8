"""Tests for the raw-byte PDF text scanner."""

import zlib
from unittest.mock import patch

import pytest

from feed_digest_service.extraction.base import BackendName
from feed_digest_service.extraction.byte_scanner import (
    FAILED_EXTRACTION_PLACEHOLDER,
    LIMITED_EXTRACTION_PLACEHOLDER,
    PLACEHOLDERS,
    PdfByteScanner,
    RawDecodeBackend,
    decode_literal,
    hex_to_text,
    is_likely_metadata,
    is_probably_text,
    postprocess,
    unicode_hex_to_text,
)


class TestDecoding:
    """Test suite for PDF string decoding helpers."""

    def test_octal_escapes(self) -> None:
        assert decode_literal(r"Hello\040World") == "Hello World"
        assert decode_literal(r"caf\351") == "café"

    def test_simple_escapes(self) -> None:
        assert decode_literal(r"a\(b\) c\\d") == "a(b) c\\d"
        assert decode_literal(r"one\ntwo\tthree") == "one\ntwo\tthree"

    def test_line_continuation_dropped(self) -> None:
        assert decode_literal("split \\\nacross lines") == "split across lines"

    def test_hex_keeps_printable_bytes(self) -> None:
        """Test that non-printable bytes are dropped from hex strings."""
        assert hex_to_text("48656C6C6F") == "Hello"
        assert hex_to_text("48000169") == "Hi"

    def test_hex_ignores_trailing_odd_digit(self) -> None:
        assert hex_to_text("4869F") == "Hi"

    def test_unicode_hex(self) -> None:
        """Test that CMap destinations decode as code points, ligatures included."""
        assert unicode_hex_to_text("0041") == "A"
        assert unicode_hex_to_text("FB01") == "ﬁ"
        assert unicode_hex_to_text("00660069") == "fi"
        assert unicode_hex_to_text("41") == "A"


class TestHeuristics:
    """Test suite for text and metadata heuristics."""

    def test_probably_text(self) -> None:
        assert is_probably_text("Ordinary words")
        assert not is_probably_text("\x80\x81\x82\x83abc")

    @pytest.mark.parametrize(
        "text",
        ["Adobe Acrobat Pro 11", "PDF-XChange", "uuid:1234-5678", "12 0 obj", "%%EOF"],
    )
    def test_metadata_detected(self, text: str) -> None:
        assert is_likely_metadata(text)

    def test_prose_is_not_metadata(self) -> None:
        assert not is_likely_metadata("Quarterly report on the regional economy")


class TestPostprocess:
    """Test suite for pooling and cleanup."""

    def test_deduplicates_in_order(self) -> None:
        assert postprocess(["alpha", "beta", "alpha", "x"]) == "alpha beta"

    def test_merges_hyphenated_breaks(self) -> None:
        assert postprocess(["extrac-", "tion works"]) == "extraction works"

    def test_paragraph_after_sentence(self) -> None:
        assert postprocess(["First sentence.", "Second one"]) == "First sentence.\n\nSecond one"

    def test_strips_syntax_tokens(self) -> None:
        """Test that residual operators are removed but prose words survive."""
        text = postprocess(["Real text", "endobj", "BT", "(cid:12)", "GET requests"])

        assert "endobj" not in text
        assert "(cid:12)" not in text
        assert "BT" not in text.split()
        assert "Real text" in text
        assert "GET requests" in text


class TestPdfByteScanner:
    """Test suite for PdfByteScanner.scan()."""

    def test_extracts_text_object(self, raw_pdf_bytes: bytes) -> None:
        """Test that text shown inside BT/ET is recovered."""
        text = PdfByteScanner().scan(raw_pdf_bytes)

        assert "quarterly report describes the state of the regional economy" in text
        assert text not in PLACEHOLDERS

    def test_skips_compressed_streams(self) -> None:
        """Test that filtered streams are not scanned as text."""
        pdf = (
            b"%PDF-1.4\n1 0 obj\n<< /Length 40 /Filter /FlateDecode >>\nstream\n"
            b"(Hidden sentence inside a compressed stream body)\n"
            b"endstream\nendobj\n%%EOF\n"
        )

        scanner = PdfByteScanner()
        with patch(
            "feed_digest_service.extraction.byte_scanner._scan_standalone_strings",
            return_value=[],
        ), patch(
            "feed_digest_service.extraction.byte_scanner._scan_object_streams",
            return_value=[],
        ), patch(
            "feed_digest_service.extraction.byte_scanner._scan_all_possible_text",
            return_value=[],
        ):
            text = scanner.scan(pdf)

        assert text == LIMITED_EXTRACTION_PLACEHOLDER

    def test_limited_placeholder_when_nothing_found(self) -> None:
        """Test that a document without readable strings yields the limited placeholder."""
        assert PdfByteScanner().scan(b"%PDF-1.4\n" + b"\x00\x01" * 200) == LIMITED_EXTRACTION_PLACEHOLDER

    def test_empty_input(self) -> None:
        assert PdfByteScanner().scan(b"") == LIMITED_EXTRACTION_PLACEHOLDER

    def test_failed_placeholder_on_internal_error(self, raw_pdf_bytes: bytes) -> None:
        """Test that unexpected errors never escape scan()."""
        with patch(
            "feed_digest_service.extraction.byte_scanner._scan_text_blocks",
            side_effect=RuntimeError("regex blew up"),
        ):
            assert PdfByteScanner().scan(raw_pdf_bytes) == FAILED_EXTRACTION_PLACEHOLDER

    def test_last_resort_pass(self) -> None:
        """Test that short scattered strings are pooled when the main pass finds little."""
        words = "Annual review of lending practices across all member banks in the region".split()
        pdf = b"%PDF-1.4\n" + b" ".join(f"({word})".encode() for word in words)

        text = PdfByteScanner().scan(pdf)

        assert "lending practices" in text

    def test_output_is_capped(self) -> None:
        sentence = "Word " * 40
        pdf = b"%PDF-1.4\n" + b"\n".join(
            f"BT ({sentence}{i}) Tj ET".encode() for i in range(500)
        )

        with patch("feed_digest_service.extraction.byte_scanner.MAX_OUTPUT_CHARS", 1000):
            text = PdfByteScanner().scan(pdf)

        assert len(text) == 1000

    def test_extract_reports_placeholders_as_absent(self, raw_pdf_bytes: bytes) -> None:
        scanner = PdfByteScanner()

        assert scanner.name is BackendName.BYTE_SCANNER
        assert scanner.extract(b"") is None
        assert scanner.extract(raw_pdf_bytes)


class TestScanStrategies:
    """Test suite for the object-stream, CMap and standalone-string scans."""

    def test_cmap_destinations_reach_output(self) -> None:
        """Test that multi-character ToUnicode destinations are recovered as words."""
        # Arrange
        words = ["Monetary", "policy", "statement", "for", "the", "third", "quarter", "of", "fiscal", "year"]
        pairs = "\n".join(
            f"<{code:02X}> <{word.encode('utf-16-be').hex().upper()}>" for code, word in enumerate(words, start=1)
        )
        cmap = f"begincmap\n{len(words)} beginbfchar\n{pairs}\nendbfchar\nendcmap\n".encode()
        pdf = (
            b"%PDF-1.4\n3 0 obj\n<< /Type /Font /Subtype /Type0 /ToUnicode << /Length "
            + str(len(cmap)).encode()
            + b" >> stream\n"
            + cmap
            + b"endstream >>\nendobj\n%%EOF\n"
        )

        # Act
        with patch(
            "feed_digest_service.extraction.byte_scanner._scan_content_streams",
            return_value=[],
        ):
            text = PdfByteScanner().scan(pdf)

        # Assert
        assert text == "Monetary policy statement for the third quarter of fiscal year"

    def test_object_stream_short_literals(self) -> None:
        """Test that short strings in a mostly binary object stream are kept."""
        words = "Rates were held at the current level as inflation eased to its target".split()
        literals = " ".join(f"({word})" for word in words).encode()
        pdf = (
            b"%PDF-1.5\n7 0 obj\n<< >>\nstream\n"
            + b"\x00" * 400
            + literals
            + b"\nendstream\nendobj\n%%EOF\n"
        )

        text = PdfByteScanner().scan(pdf)

        assert "Rates were held at the current level as inflation eased to its target" in text

    def test_standalone_metadata_strings_dropped(self, raw_pdf_bytes: bytes) -> None:
        """Test that producer and XMP id strings never reach the output."""
        info = (
            b"5 0 obj\n<< /Producer (Adobe PDF Library 15.0) "
            b"/Creator (Acrobat PDFMaker 21 for Word) "
            b"/DocumentID (uuid:6f1e4c2a-9d3b-4e5f-8a7b-1c2d3e4f5a6b) >>\nendobj\n"
        )
        pdf = raw_pdf_bytes.replace(b"trailer", info + b"trailer")

        text = PdfByteScanner().scan(pdf)

        assert "quarterly report describes the state of the regional economy" in text
        assert "Adobe" not in text
        assert "Acrobat" not in text
        assert "uuid" not in text


class TestRawDecodeBackend:
    """Test suite for the Flate-inflating backend."""

    def test_reads_compressed_content_stream(self) -> None:
        content = zlib.compress(b"BT /F1 12 Tf (Compressed text survives inflation here) Tj ET")
        pdf = (
            b"%PDF-1.4\n4 0 obj\n<< /Length "
            + str(len(content)).encode()
            + b" /Filter /FlateDecode >>\nstream\n"
            + content
            + b"\nendstream\nendobj\n%%EOF\n"
        )

        text = RawDecodeBackend().extract(pdf)

        assert text is not None
        assert "Compressed text survives inflation here" in text

    def test_skips_images_and_corrupt_streams(self) -> None:
        pdf = (
            b"%PDF-1.4\n5 0 obj\n<< /Subtype /Image /Filter /FlateDecode >>\nstream\n"
            + zlib.compress(b"BT (Not text at all) Tj ET")
            + b"\nendstream\nendobj\n"
            b"6 0 obj\n<< /Filter /FlateDecode >>\nstream\nnot zlib data\nendstream\nendobj\n"
        )

        assert RawDecodeBackend().extract(pdf) is None
