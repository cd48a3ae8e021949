"""
Command-line runner: load a CSV, evaluate every row, print and export results.

Usage (from project root):
    python -m src.batch_eval.runner --input submissions.csv --concurrency 5
    python -m src.batch_eval.runner --sample --preview

Ctrl-C pauses the batch: no new rows are admitted, requests already in
flight finish, and whatever completed is still exported.

Exit codes: 0 done, 1 configuration or input error, 2 paused.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from src.records import (
    build_preview_frame,
    display_columns,
    export_csv,
    export_json,
    guess_text_column,
    load_records,
    load_sample_records,
)

from .batch import BatchOrchestrator, BatchOutcome, print_batch_summary
from .config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_CSV_EXPORT,
    DEFAULT_JSON_EXPORT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL,
    DEFAULT_RESULT_KEY,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    DEFAULT_USER_PROMPT,
    MAX_CONCURRENCY,
    MAX_RETRIES_LIMIT,
    PREVIEW_ROWS,
    SUPPORTED_MODELS,
    BatchConfig,
)
from .errors import ConfigurationError
from .template import preview_prompt

logger = logging.getLogger(__name__)

EXIT_DONE = 0
EXIT_CONFIG_ERROR = 1
EXIT_PAUSED = 2


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.batch_eval.runner",
        description="Evaluate every row of a CSV with an LLM and parse the output as JSON.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=Path, help="CSV file with a header row.")
    source.add_argument("--sample", action="store_true", help="Use the built-in 3-row sample.")

    parser.add_argument("--api-key", default=None,
                        help="API key (default: OPENAI_API_KEY environment variable).")
    parser.add_argument("--model", default=DEFAULT_MODEL,
                        help=f"Model id (priced: {', '.join(SUPPORTED_MODELS)}).")
    parser.add_argument("--endpoint", default=None, help="Override the chat-completion URL.")
    parser.add_argument("--system-prompt", default=DEFAULT_SYSTEM_PROMPT)

    prompt = parser.add_mutually_exclusive_group()
    prompt.add_argument("--prompt", default=None, help="User prompt template.")
    prompt.add_argument("--prompt-file", type=Path, default=None,
                        help="File holding the user prompt template.")

    parser.add_argument("--temperature", type=float, default=DEFAULT_TEMPERATURE)
    parser.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY,
                        help=f"Requests in flight (1-{MAX_CONCURRENCY}).")
    parser.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES,
                        help=f"Retries per row after the first attempt (0-{MAX_RETRIES_LIMIT}).")
    parser.add_argument("--result-column", default=DEFAULT_RESULT_KEY)
    parser.add_argument("--text-column", default=None,
                        help="Column used as {{submission}} (default: guessed).")
    parser.add_argument("--output-csv", type=Path, default=DEFAULT_CSV_EXPORT)
    parser.add_argument("--output-json", type=Path, default=DEFAULT_JSON_EXPORT)
    parser.add_argument("--preview", action="store_true",
                        help="Print the rendered prompt for the first row and exit.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
    return parser


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def build_config(args: argparse.Namespace, text_column: str | None) -> BatchConfig:
    """Turn parsed arguments into a BatchConfig (runner limits applied)."""
    if args.prompt_file is not None:
        user_prompt = args.prompt_file.read_text(encoding="utf-8")
    elif args.prompt is not None:
        user_prompt = args.prompt
    else:
        user_prompt = DEFAULT_USER_PROMPT

    config = BatchConfig(
        api_key=args.api_key,
        model=args.model,
        user_prompt=user_prompt,
        system_prompt=args.system_prompt or None,
        temperature=args.temperature,
        concurrency=_clamp(args.concurrency, 1, MAX_CONCURRENCY),
        max_retries=_clamp(args.max_retries, 0, MAX_RETRIES_LIMIT),
        result_key=args.result_column,
        text_column=text_column,
    )
    if args.endpoint:
        config.endpoint = args.endpoint
    return config


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

def _print_progress(progress: int, completed: int, total: int) -> None:
    print(f"\r  Progress: {progress:3d}%  ({completed}/{total})", end="", flush=True)
    if completed >= total:
        print()


async def _run_with_pause_signal(
    orchestrator: BatchOrchestrator,
    records: list[dict],
) -> BatchOutcome:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel)
    except NotImplementedError:
        # Platforms without loop signal handlers: Ctrl-C aborts instead.
        logger.debug("SIGINT handler unavailable; pause via Ctrl-C disabled.")
        return await orchestrator.run(records)
    try:
        return await orchestrator.run(records)
    finally:
        loop.remove_signal_handler(signal.SIGINT)


def main(argv: list[str] | None = None) -> int:
    """
    Run the CLI.

    Args:
        argv: Argument list (defaults to ``sys.argv[1:]``).

    Returns:
        Process exit code.
    """
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.sample:
            records, columns = load_sample_records()
            print(f"Loaded sample: {len(records)} rows. Columns: {', '.join(columns)}")
        else:
            records, columns = load_records(args.input)
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}")
        return EXIT_CONFIG_ERROR

    text_column = args.text_column or guess_text_column(columns) or None
    if text_column and text_column not in columns:
        print(f"ERROR: text column '{text_column}' not found. Columns: {', '.join(columns)}")
        return EXIT_CONFIG_ERROR

    try:
        config = build_config(args, text_column)
    except OSError as exc:
        print(f"ERROR: cannot read prompt file: {exc}")
        return EXIT_CONFIG_ERROR

    if args.preview:
        print(f"Text column: {text_column or '(whole row as JSON)'}")
        print("Prompt preview (row 1):")
        print(preview_prompt(config.user_prompt, records, text_column) or "(no rows)")
        return EXIT_DONE

    sep = "=" * 60
    print(f"\n{sep}")
    print(f"BATCH EVALUATION: {len(records)} rows")
    print(f"  Model:       {config.model}")
    print(f"  Text column: {text_column or '(whole row as JSON)'}")
    print(f"  Concurrency: {config.concurrency}   Max retries: {config.max_retries}")
    print("  Press Ctrl-C to pause.")
    print(f"{sep}\n")

    orchestrator = BatchOrchestrator(config, progress_callback=_print_progress)
    try:
        outcome = asyncio.run(_run_with_pause_signal(orchestrator, records))
    except ConfigurationError as exc:
        print(f"ERROR: {exc}")
        return EXIT_CONFIG_ERROR

    print_batch_summary(outcome)

    columns_out = display_columns(columns, config.result_key)
    print(build_preview_frame(outcome.results, columns_out, PREVIEW_ROWS).to_string(index=False))
    print()

    export_csv(outcome.results, args.output_csv, columns=columns_out)
    export_json(outcome.results, args.output_json)

    return EXIT_PAUSED if outcome.paused else EXIT_DONE


if __name__ == "__main__":
    sys.exit(main())
