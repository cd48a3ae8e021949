"""
Result export (CSV and JSON) and table display helpers.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd

from src.batch_eval.config import (
    DECISION_COLUMN,
    PREVIEW_ROWS,
    SCORE_COLUMN,
    VALID_COLUMN,
)
from src.batch_eval.parser import json_column


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def to_cell(value: Any) -> str:
    """
    Coerce any cell value to display text.

    None → ``""``; booleans → ``true`` / ``false``; strings and numbers →
    ``str()``; anything else (dicts, lists) → compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return str(value)


def display_columns(columns: Sequence[str], result_key: str) -> list[str]:
    """
    Input columns followed by the result columns, without duplicates.

    Args:
        columns: Columns of the loaded file.
        result_key: Column receiving the raw model output.

    Returns:
        Ordered column list for tables and exports.
    """
    extras = [
        result_key,
        json_column(result_key),
        VALID_COLUMN,
        SCORE_COLUMN,
        DECISION_COLUMN,
    ]
    return list(dict.fromkeys([*columns, *extras]))


def build_preview_frame(
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
    limit: int = PREVIEW_ROWS,
) -> pd.DataFrame:
    """Return the first ``limit`` rows as a DataFrame of display strings."""
    data = [
        {col: to_cell(row.get(col)) for col in columns}
        for row in list(rows)[:limit]
    ]
    return pd.DataFrame(data, columns=list(columns))


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def export_csv(
    rows: Sequence[Mapping[str, Any]],
    output_path: Path,
    columns: Sequence[str] | None = None,
) -> Path | None:
    """
    Write result rows to CSV.

    Args:
        rows: Result rows (records with result columns merged in).
        output_path: Destination file; parent directories are created.
        columns: Column order; defaults to first-seen order across rows.

    Returns:
        ``output_path``, or ``None`` when there is nothing to export.
    """
    if not rows:
        print("No results to export.")
        return None

    df = pd.DataFrame([dict(row) for row in rows], dtype=object)
    if columns is not None:
        ordered = [c for c in columns if c in df.columns]
        ordered += [c for c in df.columns if c not in ordered]
        df = df[ordered]

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    print(f"Exported {len(df)} rows to {output_path}")
    return output_path


def export_json(
    rows: Sequence[Mapping[str, Any]],
    output_path: Path,
) -> Path | None:
    """
    Write result rows to a JSON array (2-space indent).

    Returns:
        ``output_path``, or ``None`` when there is nothing to export.
    """
    if not rows:
        print("No results to export.")
        return None

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as fh:
        json.dump([dict(row) for row in rows], fh, indent=2, ensure_ascii=False, default=str)
    print(f"Exported {len(rows)} rows to {output_path}")
    return output_path
