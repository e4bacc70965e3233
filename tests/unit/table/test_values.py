"""Scalar kind detection, text parsing and display formatting."""

from __future__ import annotations

import datetime as dt
import unittest

from tabiew.table import Column, Kind, Table
from tabiew.table.values import (
    common_kind,
    format_value,
    infer_text_kind,
    kind_of,
    order_nulls_last,
    parse_as,
    parse_temporal,
)
from tabiew.errors import TableShapeError


class KindTests(unittest.TestCase):
    def test_kind_of_checks_bool_before_int(self) -> None:
        self.assertIs(kind_of(True), Kind.BOOLEAN)
        self.assertIs(kind_of(3), Kind.INTEGER)
        self.assertIs(kind_of(3.5), Kind.FLOAT)
        self.assertIs(kind_of("x"), Kind.STRING)
        self.assertIs(kind_of(dt.date(2024, 1, 2)), Kind.TEMPORAL)
        self.assertIs(kind_of(None), Kind.NULL)

    def test_common_kind_widens_numbers_and_falls_back_to_string(self) -> None:
        self.assertIs(common_kind([1, None, 2]), Kind.INTEGER)
        self.assertIs(common_kind([1, 2.5]), Kind.FLOAT)
        self.assertIs(common_kind([1, "a"]), Kind.STRING)
        self.assertIs(common_kind([None, None]), Kind.NULL)


class ParseTests(unittest.TestCase):
    def test_parse_as_handles_each_kind(self) -> None:
        self.assertIs(parse_as("TRUE", Kind.BOOLEAN), True)
        self.assertEqual(parse_as(" 42 ", Kind.INTEGER), 42)
        self.assertEqual(parse_as("1e3", Kind.FLOAT), 1000.0)
        self.assertEqual(parse_as("2024-02-29", Kind.TEMPORAL), dt.date(2024, 2, 29))
        self.assertIsNone(parse_as("", Kind.INTEGER))

    def test_parse_as_rejects_mismatched_text(self) -> None:
        with self.assertRaises(ValueError):
            parse_as("4.5", Kind.INTEGER)
        with self.assertRaises(ValueError):
            parse_as("yes", Kind.BOOLEAN)

    def test_parse_temporal_accepts_datetimes_only_in_iso_form(self) -> None:
        self.assertEqual(parse_temporal("2024-01-02 03:04:05"), dt.datetime(2024, 1, 2, 3, 4, 5))
        self.assertIsNone(parse_temporal("02/01/2024"))
        self.assertIsNone(parse_temporal("2024-13-01"))

    def test_infer_text_kind_picks_first_kind_every_sample_fits(self) -> None:
        self.assertIs(infer_text_kind(["1", "2", ""]), Kind.INTEGER)
        self.assertIs(infer_text_kind(["1", "2.5"]), Kind.FLOAT)
        self.assertIs(infer_text_kind(["true", "false"]), Kind.BOOLEAN)
        self.assertIs(infer_text_kind(["2024-01-01"]), Kind.TEMPORAL)
        self.assertIs(infer_text_kind(["2024-01-01"], temporal=False), Kind.STRING)
        self.assertIs(infer_text_kind(["1", "x"]), Kind.STRING)
        self.assertIs(infer_text_kind(["", ""]), Kind.STRING)


class FormatTests(unittest.TestCase):
    def test_format_value(self) -> None:
        self.assertEqual(format_value(None), "")
        self.assertEqual(format_value(False), "false")
        self.assertEqual(format_value(2.0), "2.0")
        self.assertEqual(format_value(0.25), "0.25")
        self.assertEqual(format_value(dt.datetime(2024, 1, 2, 3, 4)), "2024-01-02 03:04:00")
        self.assertEqual(format_value(dt.date(2024, 1, 2)), "2024-01-02")


class OrderingTests(unittest.TestCase):
    def test_nulls_sort_last_in_both_directions(self) -> None:
        values = [3, None, 1, 2]
        ascending = order_nulls_last(values, [(lambda v: v, True)])
        descending = order_nulls_last(values, [(lambda v: v, False)])
        self.assertEqual(ascending, [1, 2, 3, None])
        self.assertEqual(descending, [3, 2, 1, None])

    def test_multi_key_sort_is_stable(self) -> None:
        rows = [("b", 1), ("a", 2), ("b", 0), ("a", 1)]
        ordered = order_nulls_last(rows, [(lambda r: r[0], True), (lambda r: r[1], False)])
        self.assertEqual(ordered, [("a", 2), ("a", 1), ("b", 1), ("b", 0)])

    def test_dates_and_datetimes_compare(self) -> None:
        values = [dt.datetime(2024, 1, 1, 12), dt.date(2024, 1, 1), dt.date(2023, 12, 31)]
        ordered = order_nulls_last(values, [(lambda v: v, True)])
        self.assertEqual(ordered, [dt.date(2023, 12, 31), dt.date(2024, 1, 1), dt.datetime(2024, 1, 1, 12)])


class TableShapeTests(unittest.TestCase):
    def test_unequal_columns_are_rejected(self) -> None:
        with self.assertRaises(TableShapeError):
            Table((Column("a", Kind.INTEGER, (1, 2)), Column("b", Kind.INTEGER, (1,))))

    def test_duplicate_names_are_rejected(self) -> None:
        with self.assertRaises(TableShapeError):
            Table((Column("a", Kind.INTEGER, (1,)), Column("a", Kind.INTEGER, (2,))))

    def test_from_rows_infers_kinds_and_reads_back(self) -> None:
        table = Table.from_rows(["name", "age"], [("Al", 30), ("Bo", None)])
        self.assertEqual(table.kinds, (Kind.STRING, Kind.INTEGER))
        self.assertEqual(table.height, 2)
        self.assertEqual(table.row(1), ("Bo", None))
        self.assertEqual(list(table.rows()), [("Al", 30), ("Bo", None)])
        with self.assertRaises(KeyError):
            table.column_index("missing")

    def test_empty_table_has_no_rows(self) -> None:
        table = Table.empty()
        self.assertEqual((table.width, table.height), (0, 0))
        self.assertEqual(list(table.rows()), [])


if __name__ == "__main__":
    unittest.main()
