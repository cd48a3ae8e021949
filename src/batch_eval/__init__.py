"""
src/batch_eval - Bounded-concurrency LLM batch evaluation engine.

Module layout
-------------
config.py    - BatchConfig, output paths, re-exported defaults and price table
errors.py    - BatchEvalError hierarchy (configuration, request, exhaustion)
template.py  - {{ key }} prompt rendering, {{submission}} alias, prompt preview
parser.py    - loose JSON recovery, chat-completion body helpers, result rows
executor.py  - request construction, one chat-completion call (sync + async)
limiter.py   - FIFO-fair concurrency limiter
state.py     - per-batch counters, error log, pause flag, progress
retry.py     - per-record attempt loop with linear backoff
pricing.py   - per-model token cost estimate
batch.py     - BatchOrchestrator, BatchOutcome, run_batch, summary report
runner.py    - command-line entry point

Public interface
----------------
Run a batch:
    run_batch(records, config)
    await BatchOrchestrator(config).run(records)

Pause a running batch (any thread):
    orchestrator.cancel()

Building blocks:
    render_template(template, record)
    parse_json_loose(text)
    execute_chat_request(api_key, model, user_prompt, ...)
    ConcurrencyLimiter(limit)
    estimate_cost(model, prompt_tokens, completion_tokens)
"""

from .batch import (
    BatchOrchestrator,
    BatchOutcome,
    BatchSummary,
    format_error_log,
    print_batch_summary,
    run_batch,
)
from .config import BatchConfig
from .errors import (
    BatchEvalError,
    ConfigurationError,
    EndpointError,
    ExhaustedRetries,
    RequestError,
    TransportError,
)
from .executor import ChatCompletion, execute_chat_request, execute_chat_request_async
from .limiter import ConcurrencyLimiter
from .parser import ParseResult, parse_json_loose
from .pricing import estimate_cost
from .state import BatchState
from .template import preview_prompt, render_template

__all__ = [
    # Orchestration
    "BatchOrchestrator",
    "BatchOutcome",
    "BatchSummary",
    "BatchState",
    "BatchConfig",
    "run_batch",
    "format_error_log",
    "print_batch_summary",
    # Building blocks
    "render_template",
    "preview_prompt",
    "parse_json_loose",
    "ParseResult",
    "execute_chat_request",
    "execute_chat_request_async",
    "ChatCompletion",
    "ConcurrencyLimiter",
    "estimate_cost",
    # Errors
    "BatchEvalError",
    "ConfigurationError",
    "RequestError",
    "EndpointError",
    "TransportError",
    "ExhaustedRetries",
]
