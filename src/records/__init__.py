"""
src/records - Tabular input and output for the batch evaluator.

Module layout
-------------
loader.py  - CSV / sample loading, text-column detection
export.py  - CSV and JSON export, cell coercion, display columns, preview table

Public interface
----------------
Load input rows:
    load_records(path)
    load_sample_records()
    guess_text_column(columns)

Export and display results:
    export_csv(rows, path)
    export_json(rows, path)
    display_columns(columns, result_key)
    to_cell(value)
"""

from .export import (
    build_preview_frame,
    display_columns,
    export_csv,
    export_json,
    to_cell,
)
from .loader import (
    guess_text_column,
    load_records,
    load_sample_records,
    read_records_csv,
)

__all__ = [
    # Loading
    "load_records",
    "load_sample_records",
    "read_records_csv",
    "guess_text_column",
    # Export and display
    "export_csv",
    "export_json",
    "display_columns",
    "build_preview_frame",
    "to_cell",
]
