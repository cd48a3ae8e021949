"""
Record loading: CSV files, the built-in sample dataset, and text-column
detection.

Every cell is read as a string; empty cells stay ``""`` rather than NaN so
that prompts render exactly what the file contains.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import pandas as pd

SAMPLE_CSV = (
    "id,submission,author\n"
    "1,We propose a digital transformation toolkit for SMEs including "
    "low-cost ERP and training.,Team A\n"
    "2,A blockchain traceability platform for transparency in agricultural "
    "supply chains.,Team B\n"
    "3,An AI-based SaaS to optimize energy consumption in the textile "
    "industry.,Team C\n"
)

# Questionnaire-style headers that almost always hold the free-text answer
STRONG_TEXT_HINTS = [
    "solution title",
    "solution overview",
    "briefly describe",
    "please describe",
    "what is your solution",
    "what are the unique",
    "what is the desired impact",
]

# Exact (case-insensitive) column names commonly used for the text body
GENERIC_TEXT_COLUMNS = [
    "submission",
    "content",
    "text",
    "description",
    "body",
    "abstract",
    "summary",
]


def _frame_to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    return df.to_dict(orient="records")


def read_records_csv(source: str | Path | io.StringIO) -> tuple[list[dict[str, Any]], list[str]]:
    """
    Parse a header-row CSV into records.

    Args:
        source: File path or text buffer.

    Returns:
        Tuple of (records, column names in file order).  A file with no
        content yields ``([], [])``.
    """
    try:
        df = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return [], []
    return _frame_to_records(df), [str(c) for c in df.columns]


def load_records(path: str | Path) -> tuple[list[dict[str, Any]], list[str]]:
    """
    Load records from a CSV file and report what was found.

    Args:
        path: CSV file with a header row.

    Returns:
        Tuple of (records, column names).

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV not found: {path}")
    records, columns = read_records_csv(path)
    print(f"Loaded {len(records)} rows from {path.name}. "
          f"Columns: {', '.join(columns) if columns else '(none)'}")
    return records, columns


def load_sample_records() -> tuple[list[dict[str, Any]], list[str]]:
    """Return the three-row sample dataset as (records, columns)."""
    return read_records_csv(io.StringIO(SAMPLE_CSV))


def guess_text_column(columns: list[str]) -> str:
    """
    Pick the column most likely to hold the text to evaluate.

    Order of preference: a header containing one of ``STRONG_TEXT_HINTS``,
    then an exact ``GENERIC_TEXT_COLUMNS`` name, then the first non-blank
    header.  Matching is case-insensitive; the original spelling is returned.

    Args:
        columns: Header names in file order.

    Returns:
        Chosen column name, or ``""`` when there are no columns.
    """
    if not columns:
        return ""
    lower = [(c or "").lower() for c in columns]

    for hint in STRONG_TEXT_HINTS:
        for i, name in enumerate(lower):
            if hint in name:
                return columns[i]

    for generic in GENERIC_TEXT_COLUMNS:
        if generic in lower:
            return columns[lower.index(generic)]

    for name in columns:
        if (name or "").strip():
            return name
    return columns[0]
