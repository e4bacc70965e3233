"""Delimited-text and Parquet decoding into tables."""

from __future__ import annotations

import datetime as dt
import io
import tempfile
import unittest
from pathlib import Path

from tabiew.errors import DecodeError
from tabiew.table import Kind
from tabiew.table.loader import (
    SAMPLE_ROWS,
    FileFormat,
    InferSchema,
    LoadOptions,
    load,
    load_stdin,
    read_dsv,
    table_name_for,
)


def _read(text: str, **options) -> object:
    return read_dsv(io.StringIO(text), LoadOptions(**options))


class ReadDsvTests(unittest.TestCase):
    def test_header_and_inferred_kinds(self) -> None:
        table = _read("name,age,score,member,joined\nAl,30,1.5,true,2024-01-02\nBo,,2,false,\n")
        self.assertEqual(table.column_names, ("name", "age", "score", "member", "joined"))
        self.assertEqual(table.kinds, (Kind.STRING, Kind.INTEGER, Kind.FLOAT, Kind.BOOLEAN, Kind.TEMPORAL))
        self.assertEqual(table.row(0), ("Al", 30, 1.5, True, dt.date(2024, 1, 2)))
        self.assertEqual(table.row(1), ("Bo", None, 2.0, False, None))

    def test_no_header_generates_column_names(self) -> None:
        table = _read("1,2\n3,4\n", has_header=False)
        self.assertEqual(table.column_names, ("column_1", "column_2"))
        self.assertEqual(table.height, 2)

    def test_duplicate_and_blank_header_names_are_made_unique(self) -> None:
        table = _read("a,a,\n1,2,3\n")
        self.assertEqual(table.column_names, ("a", "a_2", "column_3"))

    def test_custom_separator_and_quote(self) -> None:
        table = _read("name;note\nAl;'a;b'\n", separator=";", quote_char="'")
        self.assertEqual(table.row(0), ("Al", "a;b"))

    def test_infer_schema_no_keeps_strings(self) -> None:
        table = _read("n\n1\n2\n", infer_schema=InferSchema.NO)
        self.assertEqual(table.kinds, (Kind.STRING,))
        self.assertEqual(table.column("n").values, ("1", "2"))

    def test_full_inference_leaves_dates_as_text(self) -> None:
        table = _read("d\n2024-01-02\n", infer_schema=InferSchema.FULL)
        self.assertEqual(table.kinds, (Kind.STRING,))

    def test_mixed_column_falls_back_to_string(self) -> None:
        table = _read("v\n1\nx\n")
        self.assertEqual(table.kinds, (Kind.STRING,))
        self.assertEqual(table.column("v").values, ("1", "x"))

    def test_fast_inference_fails_on_value_outside_sample(self) -> None:
        text = "v\n" + "1\n" * SAMPLE_ROWS + "oops\n"
        with self.assertRaises(DecodeError):
            _read(text, infer_schema=InferSchema.FAST)

    def test_fast_inference_with_ignore_errors_nulls_bad_values(self) -> None:
        text = "v\n" + "1\n" * SAMPLE_ROWS + "oops\n"
        table = _read(text, infer_schema=InferSchema.FAST, ignore_errors=True)
        self.assertIs(table.kinds[0], Kind.INTEGER)
        self.assertIsNone(table.column("v").values[-1])

    def test_too_many_fields_is_a_decode_error(self) -> None:
        with self.assertRaises(DecodeError) as ctx:
            _read("a,b\n1,2,3\n")
        self.assertIn("line 2", ctx.exception.message)
        self.assertNotIn("Error tokenizing", ctx.exception.message)

    def test_ignore_errors_skips_rows_with_extra_fields(self) -> None:
        table = _read("a,b\n1,2\n3,4,5\n6,7\n", ignore_errors=True)
        self.assertEqual(list(table.rows()), [(1, 2), (6, 7)])

    def test_quoting_can_be_disabled(self) -> None:
        table = _read('a,b\n"x",y\n', quote_char=None)
        self.assertEqual(table.row(0), ('"x"', "y"))

    def test_blank_lines_are_skipped(self) -> None:
        table = _read("a\n1\n\n2\n")
        self.assertEqual(table.column("a").values, (1, 2))

    def test_short_rows_are_padded_with_nulls(self) -> None:
        table = _read("a,b\n1\n")
        self.assertEqual(table.row(0), (1, None))

    def test_empty_input_gives_empty_table(self) -> None:
        table = _read("")
        self.assertEqual((table.width, table.height), (0, 0))


class LoadPathTests(unittest.TestCase):
    def test_load_reads_file_and_names_table_after_stem(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "people.csv"
            path.write_text("name,age\nAl,30\n", encoding="utf-8")
            table = load(path)
        self.assertEqual(table.row(0), ("Al", 30))
        self.assertEqual(table_name_for(path), "people")

    def test_missing_file_is_a_decode_error(self) -> None:
        with self.assertRaises(DecodeError) as ctx:
            load(Path("/nonexistent/tabiew/missing.csv"))
        self.assertIn("missing.csv", ctx.exception.message)

    def test_load_stdin_spools_stream_to_file(self) -> None:
        path = load_stdin(io.StringIO("a\n1\n"))
        try:
            self.assertEqual(load(path).row(0), (1,))
        finally:
            path.unlink()

    def test_parquet_round_trip_through_pandas(self) -> None:
        import pandas as pd

        frame = pd.DataFrame(
            {
                "name": ["Al", None],
                "age": [30, 25],
                "score": [1.5, float("nan")],
            }
        )
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "people.parquet"
            frame.to_parquet(path)
            table = load(path, LoadOptions(format=FileFormat.PARQUET))
        self.assertEqual(table.column_names, ("name", "age", "score"))
        self.assertEqual(table.kinds, (Kind.STRING, Kind.INTEGER, Kind.FLOAT))
        self.assertEqual(table.row(0), ("Al", 30, 1.5))
        self.assertEqual(table.row(1), (None, 25, None))

    def test_invalid_parquet_is_a_decode_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.parquet"
            path.write_text("not parquet", encoding="utf-8")
            with self.assertRaises(DecodeError):
                load(path, LoadOptions(format=FileFormat.PARQUET))


if __name__ == "__main__":
    unittest.main()
