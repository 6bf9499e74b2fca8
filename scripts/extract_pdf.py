#!/usr/bin/env python
"""Standalone PDF extraction diagnostics.

Runs the extraction backends against one document and reports what each
backend produced, how the quality checks judged it, and which text would be
stored.

Usage:
    # Extract from a URL with the multi-backend extractor
    uv run python scripts/extract_pdf.py https://example.com/report.pdf

    # Extract from a local file
    uv run python scripts/extract_pdf.py --file ./report.pdf

    # Use the scanner-only strategy and save the full text
    uv run python scripts/extract_pdf.py https://example.com/report.pdf \\
        --strategy byte_scanner --output report.txt

Note: Always use 'uv run python' to ensure dependencies are available.
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

from feed_digest_service.config import settings
from feed_digest_service.extraction import (
    ExtractionPipeline,
    GibberishClassifier,
    PdfExtraction,
    PdfExtractorConfig,
    PdfTextExtractor,
    PipelineConfig,
)
from feed_digest_service.logging_config import configure_logging

PREVIEW_CHARS = 500


def print_extraction(extraction: PdfExtraction | None, classifier: GibberishClassifier) -> None:
    """Print a per-backend summary followed by a preview of the chosen text."""
    if extraction is None:
        print("\n✗ No backend produced any text")
        return

    print(f"\n{'Backend':<30} | {'Length':>8} | Failed checks")
    print(f"{'-'*80}")
    for candidate in extraction.candidates:
        if not candidate.succeeded:
            print(f"{candidate.backend.value:<30} | {'---':>8} | (backend failed)")
            continue
        verdict = classifier.assess(candidate.text)
        failed = ", ".join(sorted(check.value for check in verdict.failed_checks)) or "none"
        print(f"{candidate.backend.value:<30} | {candidate.length:>8} | {failed}")

    print(f"{'-'*80}")
    print(f"Selected: {extraction.backend.value} ({extraction.confidence.value})")
    print_preview(extraction.text)


def print_preview(text: str) -> None:
    print(f"\n=== Content Preview (first {PREVIEW_CHARS} chars of {len(text)}) ===")
    print(text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else ""))


async def run_extraction(url: str | None, file: Path | None, strategy: str) -> str | None:
    """Run one extraction and return the text that would be stored."""
    extractor_config = PdfExtractorConfig.from_settings(settings)
    classifier = GibberishClassifier(extractor_config.quality)

    if file is not None:
        extractor = PdfTextExtractor(extractor_config)
        extraction = await extractor.extract_from_bytes(file.read_bytes(), str(file))
        print_extraction(extraction, classifier)
        return extraction.text if extraction else None

    assert url is not None
    if strategy == "multi_backend":
        extractor = PdfTextExtractor(extractor_config)
        extraction = await extractor.extract_with_details(url)
        print_extraction(extraction, classifier)
        return extraction.text if extraction else None

    pipeline_config = PipelineConfig.from_settings(settings)
    pipeline_config.pdf_strategy = "byte_scanner"
    outcome = await ExtractionPipeline(pipeline_config).extract_pdf(url)
    print(f"\nStatus: {outcome.status.value}")
    if outcome.error:
        print(f"  → {outcome.error}")
    if outcome.content:
        print_preview(outcome.content)
    return outcome.content if outcome.succeeded else None


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Extract text from a PDF and report backend results")
    parser.add_argument("url", nargs="?", help="URL of the PDF to extract")
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Extract from a local PDF file instead of a URL",
    )
    parser.add_argument(
        "--strategy",
        choices=["multi_backend", "byte_scanner"],
        default=settings.pdf_strategy,
        help=f"Extraction strategy for URLs (default: {settings.pdf_strategy})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the full extracted text to this file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )

    args = parser.parse_args()

    if (args.url is None) == (args.file is None):
        parser.error("provide exactly one of URL or --file")

    if args.file is not None and not args.file.exists():
        print(f"Error: File not found: {args.file}")
        sys.exit(1)

    configure_logging(log_level=args.log_level, json_logs=settings.json_logs)

    try:
        start_time = time.perf_counter()
        text = asyncio.run(run_extraction(args.url, args.file, args.strategy))
        print(f"\nCompleted in {time.perf_counter() - start_time:.2f} seconds")

        if text and args.output is not None:
            args.output.write_text(text, encoding="utf-8")
            print(f"Full content saved to: {args.output}")

        sys.exit(0 if text else 1)

    except KeyboardInterrupt:
        print("\n\nExtraction interrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"\n\nError running extraction: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
