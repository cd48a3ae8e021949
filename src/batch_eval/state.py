"""
Shared per-batch aggregates.

One BatchState is owned by one orchestrator run.  Counter and error-log
mutations happen under a lock so that progress can be read, and the pause
signal raised, from a thread other than the event loop's.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class StateSnapshot:
    """Point-in-time copy of the aggregates."""

    total: int
    completed: int
    prompt_tokens: int
    completion_tokens: int
    error_count: int
    cancelled: bool
    progress: int


def compute_progress(completed: int, total: int) -> int:
    """
    Percentage of terminal tasks, rounded half-up and clamped to [0, 100].

    An empty batch reports 100.
    """
    if total <= 0:
        return 100
    pct = int(math.floor(completed / total * 100 + 0.5))
    return max(0, min(100, pct))


class BatchState:
    """Counters, error log and cancellation flag for a single batch."""

    def __init__(self, total: int = 0) -> None:
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._total = total
        self._completed = 0
        self._prompt_tokens = 0
        self._completion_tokens = 0
        self._errors: dict[int, str] = {}

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def reset(self, total: int) -> None:
        """Start a fresh batch of ``total`` records.  Keeps a raised pause."""
        with self._lock:
            self._total = total
            self._completed = 0
            self._prompt_tokens = 0
            self._completion_tokens = 0
            self._errors = {}

    def record_completion(self) -> int:
        """Count one terminal task; returns the new progress percentage."""
        with self._lock:
            if self._completed < self._total:
                self._completed += 1
            return compute_progress(self._completed, self._total)

    def add_usage(self, prompt_tokens: int, completion_tokens: int) -> None:
        with self._lock:
            self._prompt_tokens += int(prompt_tokens or 0)
            self._completion_tokens += int(completion_tokens or 0)

    def record_error(self, index: int, message: str) -> None:
        """Store ``message`` as the latest error for ``index``."""
        with self._lock:
            self._errors[index] = message

    def request_cancel(self) -> None:
        """Raise the pause flag.  It is never cleared for the rest of the run."""
        self._cancel.set()

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def total(self) -> int:
        return self._total

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def progress(self) -> int:
        with self._lock:
            return compute_progress(self._completed, self._total)

    @property
    def prompt_tokens(self) -> int:
        with self._lock:
            return self._prompt_tokens

    @property
    def completion_tokens(self) -> int:
        with self._lock:
            return self._completion_tokens

    @property
    def errors(self) -> dict[int, str]:
        """Copy of the error log, ordered by record index."""
        with self._lock:
            return dict(sorted(self._errors.items()))

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return StateSnapshot(
                total=self._total,
                completed=self._completed,
                prompt_tokens=self._prompt_tokens,
                completion_tokens=self._completion_tokens,
                error_count=len(self._errors),
                cancelled=self._cancel.is_set(),
                progress=compute_progress(self._completed, self._total),
            )
