"""
Response parsing and result-row assembly.

No I/O occurs here; all functions are pure transformations of strings/dicts
to support easy unit testing.

Design notes:
- parse_json_loose never raises.  Failures are returned as a tagged
  ParseResult so a model that answers in prose simply yields an invalid row.
- Markdown code fences are only stripped when the text starts with one;
  the trailing fence is removed together with it.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping

from .config import PROMOTED_FIELDS, VALID_COLUMN
from .template import to_json_text

EMPTY_INPUT = "empty_input"
UNPARSEABLE_OUTPUT = "unparseable_output"

_LEADING_FENCE = re.compile(r"^```[a-zA-Z]*\n?")
_TRAILING_FENCE = re.compile(r"```\s*$")


@dataclass(frozen=True)
class ParseResult:
    """Outcome of :func:`parse_json_loose`.

    Attributes:
        ok: True when a JSON value was recovered.
        value: The recovered value (only meaningful when ``ok``).
        kind: ``None`` on success, else ``'empty_input'`` or
            ``'unparseable_output'``.
        error: Parser error message on failure.
    """

    ok: bool
    value: Any = None
    kind: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any) -> "ParseResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: str, error: str) -> "ParseResult":
        return cls(ok=False, kind=kind, error=error)


# ---------------------------------------------------------------------------
# Loose JSON recovery
# ---------------------------------------------------------------------------

def strip_code_fences(text: str) -> str:
    """
    Remove a wrapping Markdown code fence (```` ```json ... ``` ````).

    Args:
        text: Raw model output.

    Returns:
        Trimmed text without the fence markers.
    """
    stripped = (text or "").strip()
    if stripped.startswith("```"):
        stripped = _LEADING_FENCE.sub("", stripped)
        stripped = _TRAILING_FENCE.sub("", stripped)
    return stripped.strip()


def parse_json_loose(text: str | None) -> ParseResult:
    """
    Recover a JSON value from free-form model text.

    Tries, in order: the fence-stripped text as a whole, then the slice from
    the first ``{`` to the last ``}``.

    Args:
        text: Raw model output.

    Returns:
        ParseResult.  Blank input → ``empty_input``; both attempts failing →
        ``unparseable_output`` with the last decoder message.
    """
    if text is None or not str(text).strip():
        return ParseResult.failure(EMPTY_INPUT, "empty")

    stripped = strip_code_fences(str(text))
    try:
        return ParseResult.success(json.loads(stripped))
    except json.JSONDecodeError as exc:
        last_error = str(exc)

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start >= 0 and end > start:
        try:
            return ParseResult.success(json.loads(stripped[start:end + 1]))
        except json.JSONDecodeError as exc:
            last_error = str(exc)

    return ParseResult.failure(UNPARSEABLE_OUTPUT, last_error)


# ---------------------------------------------------------------------------
# Chat-completion body helpers
# ---------------------------------------------------------------------------

def extract_message_content(response_json: Mapping[str, Any]) -> str:
    """
    Extract ``choices[0].message.content`` from a chat-completion body.

    Missing or null content yields ``""``; the reply is still a success.
    """
    choices = response_json.get("choices") or []
    if not choices:
        return ""
    message = (choices[0] or {}).get("message") or {}
    content = message.get("content")
    return "" if content is None else str(content)


def get_prompt_tokens(response_json: Mapping[str, Any]) -> int:
    """Return ``usage.prompt_tokens``, or 0 if unavailable."""
    usage = response_json.get("usage") or {}
    return int(usage.get("prompt_tokens") or 0)


def get_completion_tokens(response_json: Mapping[str, Any]) -> int:
    """Return ``usage.completion_tokens``, or 0 if unavailable."""
    usage = response_json.get("usage") or {}
    return int(usage.get("completion_tokens") or 0)


# ---------------------------------------------------------------------------
# Result rows
# ---------------------------------------------------------------------------

def json_column(result_key: str) -> str:
    """Name of the column holding the re-serialized parsed value."""
    return f"{result_key}_json"


def build_result_record(
    record: Mapping[str, Any],
    raw_output: str,
    result_key: str,
) -> dict[str, Any]:
    """
    Merge a model reply into a copy of ``record``.

    Always stores the raw output under ``result_key``.  When the output parses
    as JSON, ``eval.valid`` is True, ``<result_key>_json`` holds the compact
    re-serialization, and ``score`` / ``decision`` keys of an object value are
    promoted to ``eval.score`` / ``eval.decision``.

    Args:
        record: Original row.
        raw_output: Model reply text.
        result_key: Column name for the raw output.

    Returns:
        New dict; ``record`` is not modified.
    """
    parsed = parse_json_loose(raw_output)
    result: dict[str, Any] = {**record, result_key: raw_output}

    if not parsed.ok:
        result[VALID_COLUMN] = False
        result[json_column(result_key)] = ""
        return result

    result[VALID_COLUMN] = True
    result[json_column(result_key)] = to_json_text(parsed.value)
    if isinstance(parsed.value, dict):
        for field, column in PROMOTED_FIELDS.items():
            if field in parsed.value:
                result[column] = parsed.value[field]
    return result


def build_error_record(
    record: Mapping[str, Any],
    message: str,
    result_key: str,
) -> dict[str, Any]:
    """Return the invalid row written after every attempt failed."""
    return {**record, result_key: f"ERROR: {message}", VALID_COLUMN: False}
