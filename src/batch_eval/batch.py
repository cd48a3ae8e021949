"""
Batch orchestration: admission, per-record attempts, progress, cost, pause.

Data flow per record:
  render prompt → limiter admission → request (with retry) → parse → merge
  result → count completion → report progress.

Key behaviours:
- At most ``config.concurrency`` requests are in flight; queued records are
  admitted in input order.
- A record that fails on every attempt becomes an invalid row
  (``ERROR: <message>``); other records are unaffected.
- ``cancel()`` is the pause signal.  Records admitted afterwards are left as
  they were and are not counted; requests already on the wire are awaited.
- Token usage accumulates per successful request; cost is computed once when
  every task has settled.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Sequence

from .config import ERROR_DISPLAY_LIMIT, BatchConfig
from .errors import ConfigurationError, ExhaustedRetries
from .executor import ChatCompletion, execute_chat_request_async
from .limiter import ConcurrencyLimiter
from .parser import build_error_record, build_result_record
from .pricing import estimate_cost
from .retry import call_with_retry
from .state import BatchState
from .template import build_prompt_context, render_template

logger = logging.getLogger(__name__)

STATUS_DONE = "done"
STATUS_PAUSED = "paused"

# async (user_prompt) -> ChatCompletion
RequestFn = Callable[[str], Awaitable[ChatCompletion]]
# (progress_pct, completed, total) -> None
ProgressCallback = Callable[[int, int, int], None]


@dataclass
class BatchSummary:
    """Token and cost totals of one run."""

    records_processed: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    prompt_cost_usd: float = 0.0
    completion_cost_usd: float = 0.0
    estimated_cost_usd: float = 0.0


@dataclass
class BatchOutcome:
    """Everything a finished (or paused) run hands back.

    Attributes:
        status: ``'done'`` or ``'paused'``.
        results: One row per input record, in input order.  Rows whose task
            never ran are the original records.
        summary: Token and cost totals.
        message: Human-readable final message.
        errors: Record index → last error message.
    """

    status: str
    results: list[dict[str, Any]]
    summary: BatchSummary
    message: str
    errors: dict[int, str] = field(default_factory=dict)

    @property
    def paused(self) -> bool:
        return self.status == STATUS_PAUSED

    def error_lines(self, limit: int = ERROR_DISPLAY_LIMIT) -> list[str]:
        return format_error_log(self.errors, limit)


def format_error_log(
    errors: Mapping[int, str],
    limit: int = ERROR_DISPLAY_LIMIT,
) -> list[str]:
    """
    Render the first ``limit`` error-log entries for display.

    Args:
        errors: Record index → error message.
        limit: Maximum number of lines returned.

    Returns:
        Lines of the form ``Row <index + 1>: <message>``, by record index.
    """
    lines = [f"Row {index + 1}: {message}" for index, message in sorted(errors.items())]
    return lines[:limit]


def build_final_message(status: str, summary: BatchSummary) -> str:
    if status == STATUS_PAUSED:
        return "Paused."
    return (
        f"Done: processed {summary.records_processed} rows. "
        f"Estimated cost ~${summary.estimated_cost_usd:.4f} USD"
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class BatchOrchestrator:
    """
    Run every record through the model under a concurrency limit.

    Example:
        >>> orchestrator = BatchOrchestrator(BatchConfig(concurrency=5))
        >>> outcome = asyncio.run(orchestrator.run(records))
        >>> print(outcome.message)

    Thread Safety:
        ``cancel()`` and ``state`` may be used from any thread.  ``run()``
        must not be called concurrently on the same instance.
    """

    def __init__(
        self,
        config: BatchConfig,
        request_fn: RequestFn | None = None,
        progress_callback: ProgressCallback | None = None,
        state: BatchState | None = None,
    ) -> None:
        """
        Args:
            config: Run configuration.
            request_fn: Replacement for the HTTP call, awaited with the
                rendered user prompt.  Defaults to a chat-completion request
                built from ``config``.
            progress_callback: Called with ``(progress_pct, completed, total)``
                once at start and after every settled record.  Records
                skipped after a pause are not counted, so a paused run
                stops short of 100.
            state: Aggregates to write into; a fresh one by default.
        """
        self._config = config
        self._request_fn = request_fn
        self._progress_callback = progress_callback
        self._state = state or BatchState()
        self._executor: ThreadPoolExecutor | None = None
        self._api_key: str | None = None

    @property
    def config(self) -> BatchConfig:
        return self._config

    @property
    def state(self) -> BatchState:
        return self._state

    def cancel(self) -> None:
        """Pause the batch: no new admissions, no new retries."""
        if not self._state.cancelled:
            logger.info("Pause requested; in-flight requests will finish.")
        self._state.request_cancel()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, records: Sequence[Mapping[str, Any]]) -> BatchOutcome:
        """
        Process ``records`` and wait for every task to settle.

        Args:
            records: Input rows, in order.  The sequence is not modified.

        Returns:
            BatchOutcome with one result row per record.

        Raises:
            ConfigurationError: Invalid configuration or no records.  Raised
                before any request is made.
        """
        config = self._config
        config.validate(require_api_key=self._request_fn is None)
        self._api_key = config.resolve_api_key()
        if not records:
            raise ConfigurationError("No records to process.")

        total = len(records)
        results: list[dict[str, Any]] = [dict(record) for record in records]
        limiter = ConcurrencyLimiter(config.concurrency)
        self._state.reset(total)

        logger.info(
            "Batch start: %d records, model=%s, concurrency=%d, max_retries=%d",
            total,
            config.model,
            config.concurrency,
            config.max_retries,
        )
        self._notify(0)

        if self._request_fn is None:
            self._executor = ThreadPoolExecutor(
                max_workers=config.concurrency,
                thread_name_prefix="batch_eval_worker",
            )
        try:
            await asyncio.gather(*(
                limiter.run(self._make_task(index, record, results))
                for index, record in enumerate(records)
            ))
        except BaseException:
            # Leaving early: drop queued calls without blocking the loop.
            self._shutdown_executor(wait=False)
            raise
        self._shutdown_executor(wait=True)

        return self._build_outcome(results)

    def _shutdown_executor(self, wait: bool) -> None:
        if self._executor is None:
            return
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        self._executor = None

    def _make_task(
        self,
        index: int,
        record: Mapping[str, Any],
        results: list[dict[str, Any]],
    ) -> Callable[[], Awaitable[None]]:
        async def task() -> None:
            await self._process_record(index, record, results)

        return task

    async def _process_record(
        self,
        index: int,
        record: Mapping[str, Any],
        results: list[dict[str, Any]],
    ) -> None:
        config = self._config
        state = self._state

        if state.cancelled:
            logger.debug("Row %d skipped: batch paused.", index + 1)
            return

        prompt = render_template(
            config.user_prompt,
            build_prompt_context(record, config.text_column),
        )

        async def attempt() -> ChatCompletion:
            completion = await self._request(prompt)
            state.add_usage(completion.prompt_tokens, completion.completion_tokens)
            return completion

        try:
            completion = await call_with_retry(
                index,
                attempt,
                state,
                max_retries=config.max_retries,
                backoff_base_seconds=config.backoff_base_seconds,
            )
        except ExhaustedRetries as exc:
            logger.error("%s", exc)
            results[index] = build_error_record(record, exc.last_error, config.result_key)
        else:
            results[index] = build_result_record(record, completion.content, config.result_key)

        progress = state.record_completion()
        self._notify(progress)

    async def _request(self, user_prompt: str) -> ChatCompletion:
        if self._request_fn is not None:
            return await self._request_fn(user_prompt)
        config = self._config
        return await execute_chat_request_async(
            self._api_key,
            config.model,
            user_prompt,
            system_prompt=config.system_prompt,
            temperature=config.temperature,
            endpoint=config.endpoint,
            timeout=config.request_timeout_seconds,
            executor=self._executor,
        )

    def _notify(self, progress: int) -> None:
        if self._progress_callback is None:
            return
        snapshot = self._state.snapshot()
        self._progress_callback(progress, snapshot.completed, snapshot.total)

    def _build_outcome(self, results: list[dict[str, Any]]) -> BatchOutcome:
        snapshot = self._state.snapshot()
        cost = estimate_cost(
            self._config.model,
            snapshot.prompt_tokens,
            snapshot.completion_tokens,
        )
        summary = BatchSummary(
            records_processed=len(results),
            prompt_tokens=snapshot.prompt_tokens,
            completion_tokens=snapshot.completion_tokens,
            prompt_cost_usd=cost["prompt_usd"],
            completion_cost_usd=cost["completion_usd"],
            estimated_cost_usd=cost["total_usd"],
        )
        status = STATUS_PAUSED if snapshot.cancelled else STATUS_DONE
        message = build_final_message(status, summary)
        logger.info(
            "Batch %s: %d/%d settled, %d with errors",
            status,
            snapshot.completed,
            snapshot.total,
            snapshot.error_count,
        )
        return BatchOutcome(
            status=status,
            results=results,
            summary=summary,
            message=message,
            errors=self._state.errors,
        )


# ---------------------------------------------------------------------------
# Convenience wrappers
# ---------------------------------------------------------------------------

def run_batch(
    records: Sequence[Mapping[str, Any]],
    config: BatchConfig,
    request_fn: RequestFn | None = None,
    progress_callback: ProgressCallback | None = None,
) -> BatchOutcome:
    """
    Synchronous entry point: run a whole batch on a fresh event loop.

    Args:
        records: Input rows.
        config: Run configuration.
        request_fn: Optional replacement for the HTTP call.
        progress_callback: Optional progress hook.

    Returns:
        BatchOutcome of the run.
    """
    orchestrator = BatchOrchestrator(
        config,
        request_fn=request_fn,
        progress_callback=progress_callback,
    )
    return asyncio.run(orchestrator.run(records))


def print_batch_summary(outcome: BatchOutcome, limit: int = ERROR_DISPLAY_LIMIT) -> None:
    """Print the end-of-run report: message, tokens, cost and errors."""
    summary = outcome.summary
    sep = "=" * 60
    print(f"\n{sep}")
    print("BATCH PAUSED" if outcome.paused else "BATCH COMPLETE")
    print(f"  {outcome.message}")
    print(f"  Rows:              {summary.records_processed:,}")
    print(f"  Prompt tokens:     {summary.prompt_tokens:,}")
    print(f"  Completion tokens: {summary.completion_tokens:,}")
    print(f"  Estimated cost:    ${summary.estimated_cost_usd:.4f} USD "
          f"(in ${summary.prompt_cost_usd:.4f} / out ${summary.completion_cost_usd:.4f})")

    if outcome.errors:
        print(f"\n  Errors ({len(outcome.errors)}):")
        for line in outcome.error_lines(limit):
            print(f"    {line}")
        hidden = len(outcome.errors) - limit
        if hidden > 0:
            print(f"    ... and {hidden} more")
    print(f"{sep}\n")
