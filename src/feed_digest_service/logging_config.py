"""Structured logging configuration using structlog.

Extraction runs inside feed-refresh and reprocessing jobs that may handle
hundreds of documents per run, so every log line carries its context as
key/value pairs (url, backend, length, failed_checks) instead of being
interpolated into a message string.

Usage:
    from feed_digest_service.logging_config import configure_logging, get_logger

    # Once, at process startup
    configure_logging(log_level="INFO")

    # In module code
    logger = get_logger(__name__)
    logger.info("pdf.extract.start", url=url)
"""

import logging
import sys
from typing import Any

import structlog

# Chatty third-party loggers that would otherwise flood DEBUG output
_NOISY_LOGGERS = ("httpx", "httpcore", "trafilatura")


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structured logging for the service.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: If True, emit one JSON object per line (for log shipping).
                   If False, use human-readable console output.

    Processor Pipeline:
    1. Add log level
    2. Add logger name
    3. Add timestamp (ISO8601 UTC)
    4. Add callsite info (file, function, line)
    5. Render as console or JSON
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Route stdlib logging through the same stream so library warnings interleave
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]

    if json_logs:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured structlog logger (BoundLogger)

    Usage:
        logger = get_logger(__name__)
        logger.warning("pdf.extract.best_effort", url=url, backend="rendered_page_walk")

    Note: Returns Any to avoid complex structlog type annotations.
    The actual type is structlog.stdlib.BoundLogger.
    """
    return structlog.get_logger(name)
