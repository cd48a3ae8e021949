"""
FIFO-fair concurrency limiter.

At most ``limit`` tasks run at once.  Callers beyond the limit queue in
arrival order and are admitted one by one as slots free up.

Design notes:
- A freed slot is handed straight to the head waiter instead of being
  returned to the pool, so a newcomer cannot overtake a queued task and the
  running count never dips and re-rises between a release and an admission.
- A waiter cancelled while queued is dropped from the queue.  If the slot
  had already been handed to it, the slot is passed on.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    """Admit at most ``limit`` concurrent tasks, first come first served."""

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1 (got {limit})")
        self._limit = limit
        self._running = 0
        self._waiters: deque[asyncio.Future] = deque()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def running(self) -> int:
        """Tasks currently holding a slot."""
        return self._running

    @property
    def waiting(self) -> int:
        """Tasks queued for a slot."""
        return sum(1 for fut in self._waiters if not fut.done())

    # ------------------------------------------------------------------
    # Slot management
    # ------------------------------------------------------------------

    async def _acquire(self) -> None:
        if self._running < self._limit and not self._waiters:
            self._running += 1
            return

        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        logger.debug(
            "Slot wait: running=%d waiting=%d", self._running, len(self._waiters)
        )
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # Slot was handed over just before the cancellation landed.
                self._release()
            elif fut in self._waiters:
                self._waiters.remove(fut)
            raise

    def _release(self) -> None:
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                # Hand-off: the running count stays the same.
                fut.set_result(None)
                return
        self._running -= 1

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, task: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``task`` once a slot is available and return its result.

        Args:
            task: Zero-argument coroutine function.

        Returns:
            Whatever ``task()`` returns.  Exceptions propagate after the slot
            is released.
        """
        await self._acquire()
        try:
            return await task()
        finally:
            self._release()

    def __repr__(self) -> str:
        return (
            f"ConcurrencyLimiter(limit={self._limit}, running={self._running}, "
            f"waiting={self.waiting})"
        )

