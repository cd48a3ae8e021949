"""
Unit tests for src/records (loading, text-column detection, export, display).
"""

from __future__ import annotations

import io
import json

import pandas as pd
import pytest

from src.records import (
    build_preview_frame,
    display_columns,
    export_csv,
    export_json,
    guess_text_column,
    load_records,
    load_sample_records,
    read_records_csv,
    to_cell,
)


# ---------------------------------------------------------------------------
# Class: loading
# ---------------------------------------------------------------------------

class TestLoading:

    def test_sample_dataset(self):
        records, columns = load_sample_records()
        assert columns == ["id", "submission", "author"]
        assert len(records) == 3
        assert records[0]["id"] == "1"
        assert records[2]["author"] == "Team C"
        assert records[1]["submission"].startswith("A blockchain traceability platform")

    def test_cells_are_strings_and_blanks_stay_empty(self):
        records, _ = read_records_csv(io.StringIO("id,note\n1,\n2,NA\n"))
        assert records == [{"id": "1", "note": ""}, {"id": "2", "note": "NA"}]

    def test_blank_lines_are_skipped(self):
        records, _ = read_records_csv(io.StringIO("id,text\n1,a\n\n2,b\n\n"))
        assert [r["id"] for r in records] == ["1", "2"]

    def test_empty_source(self):
        assert read_records_csv(io.StringIO("")) == ([], [])

    def test_load_from_path(self, tmp_path, capsys):
        path = tmp_path / "rows.csv"
        path.write_text("id,body\n1,hello\n", encoding="utf-8")
        records, columns = load_records(path)
        assert records == [{"id": "1", "body": "hello"}]
        assert columns == ["id", "body"]
        assert "Loaded 1 rows from rows.csv" in capsys.readouterr().out

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_records(tmp_path / "nope.csv")


# ---------------------------------------------------------------------------
# Class: guess_text_column
# ---------------------------------------------------------------------------

class TestGuessTextColumn:

    def test_strong_hint_wins(self):
        columns = ["id", "Text", "Please describe your project in detail"]
        assert guess_text_column(columns) == "Please describe your project in detail"

    def test_generic_name_case_insensitive(self):
        assert guess_text_column(["id", "Description", "owner"]) == "Description"

    def test_generic_names_in_priority_order(self):
        assert guess_text_column(["summary", "content"]) == "content"

    def test_generic_requires_exact_name(self):
        assert guess_text_column(["", "textual"]) == "textual"

    def test_falls_back_to_first_non_blank(self):
        assert guess_text_column(["  ", "id", "score"]) == "id"

    def test_no_columns(self):
        assert guess_text_column([]) == ""

    def test_sample_guess(self):
        _, columns = load_sample_records()
        assert guess_text_column(columns) == "submission"


# ---------------------------------------------------------------------------
# Class: display helpers
# ---------------------------------------------------------------------------

class TestDisplay:

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        ("x", "x"),
        (3, "3"),
        (True, "true"),
        (False, "false"),
    ])
    def test_to_cell_scalars(self, value, expected):
        assert to_cell(value) == expected

    def test_to_cell_object_is_json(self):
        cell = to_cell({"a": 1, "b": [2, 3]})
        assert cell.startswith("{")
        assert json.loads(cell) == {"a": 1, "b": [2, 3]}

    def test_display_columns_appends_result_columns_once(self):
        cols = display_columns(["id", "eval.valid", "text"], "evaluation")
        assert cols == [
            "id",
            "eval.valid",
            "text",
            "evaluation",
            "evaluation_json",
            "eval.score",
            "eval.decision",
        ]

    def test_preview_frame(self):
        rows = [{"id": "1", "eval.valid": True, "extra": [1]}, {"id": "2"}]
        frame = build_preview_frame(rows, ["id", "eval.valid", "extra"], limit=1)
        assert isinstance(frame, pd.DataFrame)
        assert frame.to_dict(orient="records") == [{"id": "1", "eval.valid": "true", "extra": "[1]"}]


# ---------------------------------------------------------------------------
# Class: export
# ---------------------------------------------------------------------------

class TestExport:

    ROWS = [
        {"id": "1", "evaluation": '{"score":4}', "eval.valid": True, "eval.score": 4},
        {"id": "2", "evaluation": "ERROR: API error 500: x", "eval.valid": False},
    ]

    def test_export_csv_union_of_columns(self, tmp_path):
        out = export_csv(self.ROWS, tmp_path / "nested" / "evaluations.csv")
        df = pd.read_csv(out, dtype=str, keep_default_na=False)
        assert list(df.columns) == ["id", "evaluation", "eval.valid", "eval.score"]
        assert df.loc[1, "eval.score"] == ""
        assert df.loc[1, "evaluation"] == "ERROR: API error 500: x"

    def test_export_csv_column_order(self, tmp_path):
        out = export_csv(self.ROWS, tmp_path / "e.csv", columns=["eval.valid", "id"])
        df = pd.read_csv(out, dtype=str)
        assert list(df.columns)[:2] == ["eval.valid", "id"]

    def test_export_json(self, tmp_path):
        out = export_json(self.ROWS, tmp_path / "evaluations.json")
        text = out.read_text(encoding="utf-8")
        assert json.loads(text) == self.ROWS
        assert '\n  {\n    "id": "1"' in text

    def test_nothing_to_export(self, tmp_path, capsys):
        assert export_csv([], tmp_path / "a.csv") is None
        assert export_json([], tmp_path / "a.json") is None
        assert "No results to export." in capsys.readouterr().out
