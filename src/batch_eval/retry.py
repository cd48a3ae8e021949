"""
Per-record attempt loop with linear backoff.

Every failed attempt is written to the batch error log.  The loop stops on
the first success, when ``max_retries`` retries have been spent, or when the
batch has been paused; in the last two cases it raises ExhaustedRetries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .errors import ExhaustedRetries, RequestError
from .state import BatchState

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Backoff helpers
# ---------------------------------------------------------------------------

def linear_backoff(attempt: int, base_seconds: float) -> float:
    """
    Return the wait before the next attempt.

    Args:
        attempt: Number of attempts that have failed so far (1-based).
        base_seconds: Backoff unit.

    Returns:
        ``base_seconds × attempt`` seconds.
    """
    return base_seconds * attempt


def should_retry(attempt: int, max_retries: int, cancelled: bool) -> bool:
    """
    Decide whether a failed record gets another attempt.

    Args:
        attempt: Number of attempts that have failed so far (1-based).
        max_retries: Retries allowed after the first attempt.
        cancelled: Whether the batch has been paused.

    Returns:
        ``True`` if another attempt should be made.
    """
    return not cancelled and attempt <= max_retries


# ---------------------------------------------------------------------------
# Retry loop
# ---------------------------------------------------------------------------

async def call_with_retry(
    index: int,
    call: Callable[[], Awaitable[T]],
    state: BatchState,
    max_retries: int,
    backoff_base_seconds: float,
) -> T:
    """
    Await ``call()`` until it succeeds or the retry budget is spent.

    Only RequestError subclasses are retried; anything else propagates.

    Args:
        index: Record position, used as the error-log key.
        call: Zero-argument coroutine function performing one attempt.
        state: Batch aggregates (error log and pause flag).
        max_retries: Retries allowed after the first attempt.
        backoff_base_seconds: Linear backoff unit.

    Returns:
        The value of the first successful attempt.

    Raises:
        ExhaustedRetries: When no further attempt is allowed.
    """
    attempt = 0
    while True:
        try:
            return await call()
        except RequestError as exc:
            attempt += 1
            message = str(exc)
            state.record_error(index, message)
            logger.warning(
                "Row %d attempt %d/%d failed: %s",
                index + 1,
                attempt,
                max_retries + 1,
                message[:200],
            )

            if not should_retry(attempt, max_retries, state.cancelled):
                raise ExhaustedRetries(index, attempt, message) from exc

            delay = linear_backoff(attempt, backoff_base_seconds)
            if delay > 0:
                await asyncio.sleep(delay)

            # Pause raised during the backoff: no new attempt.
            if state.cancelled:
                logger.info("Row %d: batch paused, no further attempts.", index + 1)
                raise ExhaustedRetries(index, attempt, message) from exc
