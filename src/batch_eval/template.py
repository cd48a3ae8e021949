"""
Prompt template rendering.

Placeholders use double braces, ``{{ column }}``, with optional whitespace
inside the braces.  ``{{json}}`` inserts the whole record as compact JSON.
Unknown keys and None values render as the empty string; rendering never
raises.  No I/O occurs here.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([^}]+)\s*\}\}")

# Reserved placeholder names
JSON_KEY = "json"
SUBMISSION_KEY = "submission"


def to_json_text(value: Any) -> str:
    """Serialize ``value`` as compact JSON (no spaces after separators)."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def stringify_value(value: Any) -> str:
    """
    Return the string form of a record value for prompt substitution.

    Booleans follow JSON spelling (``true`` / ``false``) so that rows loaded
    from CSV and rows built in code render the same way.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_template(template: str, record: Mapping[str, Any]) -> str:
    """
    Substitute every ``{{ key }}`` placeholder from ``record``.

    Args:
        template: Prompt template string.
        record: Column name → value mapping for one row.

    Returns:
        Rendered prompt.  Unknown keys resolve to ``""``.
    """

    def _substitute(match: re.Match) -> str:
        key = match.group(1).strip()
        if key == JSON_KEY:
            return to_json_text(dict(record))
        return stringify_value(record.get(key))

    return PLACEHOLDER_PATTERN.sub(_substitute, template or "")


def build_prompt_context(
    record: Mapping[str, Any],
    text_column: str | None = None,
) -> dict[str, Any]:
    """
    Return the record extended with the ``submission`` alias.

    ``submission`` holds the configured text column's value, or the whole
    record as JSON when no text column is configured.  The alias is added on
    top of the record, so a real ``submission`` column is shadowed.

    Args:
        record: Original row.
        text_column: Column that carries the text to evaluate, if any.

    Returns:
        New dict; ``record`` is not modified.
    """
    if text_column:
        submission = stringify_value(record.get(text_column))
    else:
        submission = to_json_text(dict(record))
    return {**record, SUBMISSION_KEY: submission}


def preview_prompt(
    template: str,
    records: list[Mapping[str, Any]],
    text_column: str | None = None,
) -> str:
    """
    Render ``template`` against the first record (empty if none).

    Uses the same context as a batch run, so without a text column
    ``{{submission}}`` previews as the whole record in JSON, which is what
    the request will carry.
    """
    if not template or not records:
        return ""
    return render_template(template, build_prompt_context(records[0], text_column))
