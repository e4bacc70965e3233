"""Expression typing, coercion and three-valued logic."""

from __future__ import annotations

import datetime as dt
import unittest

from tabiew.errors import ParseError, TypeMismatch, UnknownColumn
from tabiew.query import compile_predicate, parse_expression
from tabiew.query.expressions import ExpressionCompiler, Scope, apply_arithmetic, compare, logical_and, logical_or
from tabiew.table import Kind, Table


def _people() -> Table:
    return Table.from_rows(
        ["name", "age", "score", "joined"],
        [
            ("Al", 30, 1.5, dt.date(2024, 1, 2)),
            ("Bo", 25, None, dt.date(2023, 6, 1)),
            ("Cy", None, 3.0, None),
        ],
    )


def _evaluate(text: str, table: Table, row: int = 0) -> object:
    compiler = ExpressionCompiler(Scope.for_table("people", table))
    compiled = compiler.compile(parse_expression(text))
    return compiled.fn(table.row(row))


def _kind(text: str, table: Table) -> Kind:
    compiler = ExpressionCompiler(Scope.for_table("people", table))
    return compiler.compile(parse_expression(text)).kind


class ArithmeticTests(unittest.TestCase):
    def test_integer_arithmetic_stays_integer(self) -> None:
        table = _people()
        self.assertEqual(_evaluate("age + 1", table), 31)
        self.assertIs(_kind("age * 2", table), Kind.INTEGER)

    def test_division_always_gives_float(self) -> None:
        table = _people()
        self.assertEqual(_evaluate("age / 4", table), 7.5)
        self.assertIs(_kind("age / 3", table), Kind.FLOAT)

    def test_mixed_numeric_widens_to_float(self) -> None:
        table = _people()
        self.assertIs(_kind("age + score", table), Kind.FLOAT)
        self.assertEqual(_evaluate("age + score", table), 31.5)

    def test_division_by_zero_is_null(self) -> None:
        self.assertIsNone(apply_arithmetic("/", 1, 0))
        self.assertIsNone(apply_arithmetic("%", 1, 0))

    def test_modulo_truncates_toward_zero(self) -> None:
        self.assertEqual(apply_arithmetic("%", -7, 3), -1)
        self.assertEqual(apply_arithmetic("%", 7, -3), 1)
        self.assertEqual(apply_arithmetic("%", 7, 3), 1)
        self.assertEqual(apply_arithmetic("%", -7.5, 2), -1.5)
        self.assertIsInstance(apply_arithmetic("%", -7, 3), int)

    def test_null_operand_gives_null(self) -> None:
        self.assertIsNone(_evaluate("age + 1", _people(), row=2))

    def test_string_arithmetic_is_a_type_mismatch(self) -> None:
        with self.assertRaises(TypeMismatch):
            _kind("name + 1", _people())

    def test_concatenation_formats_any_value(self) -> None:
        self.assertEqual(_evaluate("name || '-' || age", _people()), "Al-30")


class ComparisonTests(unittest.TestCase):
    def test_numeric_and_string_comparisons(self) -> None:
        table = _people()
        self.assertIs(_evaluate("age > 26", table), True)
        self.assertIs(_evaluate("score >= 1", table), True)
        self.assertIs(_evaluate("name = 'Al'", table), True)

    def test_temporal_compares_against_iso_string(self) -> None:
        table = _people()
        self.assertIs(_evaluate("joined > '2023-12-31'", table), True)
        self.assertIs(_evaluate("joined > '2023-12-31'", table, row=1), False)

    def test_comparison_with_null_is_null(self) -> None:
        self.assertIsNone(compare("=", None, 1))
        self.assertIsNone(_evaluate("age > 26", _people(), row=2))

    def test_incompatible_comparison_is_a_type_mismatch(self) -> None:
        with self.assertRaises(TypeMismatch):
            _kind("name > 3", _people())

    def test_in_between_like(self) -> None:
        table = _people()
        self.assertIs(_evaluate("age in (1, 30)", table), True)
        self.assertIs(_evaluate("age not between 26 and 40", table), False)
        self.assertIs(_evaluate("name like 'A%'", table), True)
        self.assertIs(_evaluate("name like 'a%'", table), False)
        self.assertIs(_evaluate("name ilike 'a_'", table), True)

    def test_is_null(self) -> None:
        table = _people()
        self.assertIs(_evaluate("age is null", table, row=2), True)
        self.assertIs(_evaluate("age is not null", table, row=2), False)


class LogicTests(unittest.TestCase):
    def test_three_valued_logic(self) -> None:
        self.assertIs(logical_and(None, False), False)
        self.assertIsNone(logical_and(None, True))
        self.assertIs(logical_or(None, True), True)
        self.assertIsNone(logical_or(None, False))

    def test_non_boolean_operand_is_a_type_mismatch(self) -> None:
        with self.assertRaises(TypeMismatch):
            _kind("age and true", _people())


class FunctionTests(unittest.TestCase):
    def test_scalar_functions(self) -> None:
        table = _people()
        self.assertEqual(_evaluate("upper(name)", table), "AL")
        self.assertEqual(_evaluate("length(name)", table), 2)
        self.assertEqual(_evaluate("round(score)", table), 2.0)
        self.assertEqual(_evaluate("coalesce(age, 0)", table, row=2), 0)
        self.assertEqual(_evaluate("abs(-age)", table), 30)

    def test_aggregate_outside_group_context_is_rejected(self) -> None:
        with self.assertRaises(ParseError):
            _kind("count(*) > 1", _people())


class PredicateTests(unittest.TestCase):
    def test_null_counts_as_false(self) -> None:
        table = _people()
        predicate = compile_predicate("age > 26", table, "people")
        self.assertEqual([predicate(row) for row in table.rows()], [True, False, False])

    def test_unknown_column_is_reported(self) -> None:
        with self.assertRaises(UnknownColumn) as ctx:
            compile_predicate("height > 1", _people(), "people")
        self.assertEqual(ctx.exception.name, "height")

    def test_non_boolean_predicate_is_a_type_mismatch(self) -> None:
        with self.assertRaises(TypeMismatch):
            compile_predicate("age + 1", _people(), "people")


if __name__ == "__main__":
    unittest.main()
