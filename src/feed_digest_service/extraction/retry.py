"""Bounded retry with linear backoff for async operations."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from feed_digest_service.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay_ms: int = 1000,
    description: str = "operation",
) -> T:
    """Run an async operation, retrying on failure with linear backoff.

    Attempts run strictly one after another. After failed attempt ``n`` the
    caller's task sleeps ``base_delay_ms * n`` milliseconds (1s, 2s, 3s, ...
    with the defaults); there is no sleep after the final attempt.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Total number of attempts (not retries)
        base_delay_ms: Delay unit in milliseconds
        description: Label used in log events

    Returns:
        The operation's result from the first successful attempt

    Raises:
        ValueError: If max_attempts < 1
        Exception: The last attempt's error, unchanged, once attempts are exhausted
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            logger.warning(
                "retry.attempt_failed",
                operation=description,
                attempt=attempt,
                max_attempts=max_attempts,
                error=str(e),
            )
            if attempt < max_attempts:
                await asyncio.sleep(base_delay_ms * attempt / 1000)

    assert last_error is not None
    raise last_error
