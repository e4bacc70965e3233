"""Expression resolution, type checking and evaluation.

Expressions are compiled once into closures over a row (or, for grouped
queries, over a list of rows). Compilation resolves every column reference
against a ``Scope`` and checks operand kinds, so unknown columns and most type
errors surface before any row is evaluated.

Coercion rules (shared by query projections, joins, ``WHERE``/``HAVING`` and
view filters):

- arithmetic ``+ - * %``: integer with integer gives integer, any other
  numeric mix gives float; ``/`` always gives float; dividing by zero gives
  null; ``%`` truncates toward zero, so the remainder takes the sign of the
  dividend; any string, boolean or temporal operand is a ``TypeMismatch``;
- ``||`` concatenates the text form of any two non-null values;
- comparisons accept numeric pairs, equal kinds, and temporal against a
  string holding an ISO date/datetime; anything else is a ``TypeMismatch``;
- ``AND``/``OR``/``NOT`` take booleans and follow three-valued logic;
- a null operand makes the result null, except for ``IS NULL``,
  ``COALESCE`` and ``COUNT``.
"""

from __future__ import annotations

import datetime as dt
import math
import operator
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..errors import ParseError, TypeMismatch, UnknownColumn, UnknownTable
from ..table import Kind, Table
from ..table.values import format_value, kind_of, parse_temporal
from .ast import (
    Between,
    Binary,
    ColumnRef,
    Expr,
    FunctionCall,
    InList,
    IsNull,
    Like,
    Literal,
    Star,
    Unary,
)
from .parser import parse_expression

Row = Sequence[object]
Evaluator = Callable[[object], object]


@dataclass(frozen=True)
class BoundColumn:
    """A column reference resolved to a position in the combined row."""

    qualifier: str
    table_name: str
    name: str
    index: int
    kind: Kind


@dataclass(frozen=True)
class Compiled:
    fn: Evaluator
    kind: Kind


class Scope:
    """Columns visible to an expression, laid out as one flat row."""

    def __init__(self) -> None:
        self.columns: list[BoundColumn] = []
        self.qualifiers: dict[str, str] = {}

    @classmethod
    def for_table(cls, name: str, table: Table) -> Scope:
        scope = cls()
        scope.add_table(name, name, table)
        return scope

    @property
    def width(self) -> int:
        return len(self.columns)

    def add_table(self, qualifier: str, table_name: str, table: Table, position: int = 0) -> None:
        if qualifier in self.qualifiers:
            raise ParseError(f"table name {qualifier!r} specified more than once", position)
        self.qualifiers[qualifier] = table_name
        offset = len(self.columns)
        for idx, column in enumerate(table.columns):
            self.columns.append(
                BoundColumn(
                    qualifier=qualifier,
                    table_name=table_name,
                    name=column.name,
                    index=offset + idx,
                    kind=column.kind,
                )
            )

    def columns_of(self, qualifier: str) -> list[BoundColumn]:
        return [column for column in self.columns if column.qualifier == qualifier]

    def resolve(self, ref: ColumnRef) -> BoundColumn:
        if ref.qualifier is not None:
            if ref.qualifier not in self.qualifiers:
                raise UnknownTable(ref.qualifier)
            for column in self.columns_of(ref.qualifier):
                if column.name == ref.name:
                    return column
            raise UnknownColumn(self.qualifiers[ref.qualifier], ref.name)

        matches = [column for column in self.columns if column.name == ref.name]
        if not matches:
            raise UnknownColumn(", ".join(dict.fromkeys(self.qualifiers.values())), ref.name)
        if len(matches) > 1:
            raise ParseError(f"column reference {ref.name!r} is ambiguous", ref.position)
        return matches[0]


# runtime coercion helpers


def _numeric_pair(op: str, left: object, right: object) -> None:
    left_kind, right_kind = kind_of(left), kind_of(right)
    if not (left_kind.is_numeric and right_kind.is_numeric):
        raise TypeMismatch(op, str(left_kind), str(right_kind))


def apply_arithmetic(op: str, left: object, right: object) -> object:
    if left is None or right is None:
        return None
    _numeric_pair(op, left, right)
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        if right == 0:
            return None
        return left / right
    if op == "%":
        if right == 0:
            return None
        if isinstance(left, int) and isinstance(right, int):
            remainder = abs(left) % abs(right)
            return -remainder if left < 0 else remainder
        return math.fmod(left, right)
    raise ValueError(f"unknown arithmetic operator {op!r}")


def _align_temporal(left: object, right: object) -> tuple[object, object]:
    if isinstance(left, dt.datetime) and not isinstance(right, dt.datetime):
        return left, dt.datetime(right.year, right.month, right.day)
    if isinstance(right, dt.datetime) and not isinstance(left, dt.datetime):
        return dt.datetime(left.year, left.month, left.day), right
    return left, right


def coerce_comparable(op: str, left: object, right: object) -> tuple[object, object]:
    """Return operands ready for Python comparison or raise ``TypeMismatch``."""
    left_kind, right_kind = kind_of(left), kind_of(right)
    if left_kind.is_numeric and right_kind.is_numeric:
        return left, right
    if left_kind is right_kind:
        if left_kind is Kind.TEMPORAL:
            return _align_temporal(left, right)
        return left, right
    if {left_kind, right_kind} == {Kind.TEMPORAL, Kind.STRING}:
        if left_kind is Kind.STRING:
            parsed = parse_temporal(left)
            if parsed is None:
                raise TypeMismatch(op, str(left_kind), str(right_kind))
            return _align_temporal(parsed, right)
        parsed = parse_temporal(right)
        if parsed is None:
            raise TypeMismatch(op, str(left_kind), str(right_kind))
        return _align_temporal(left, parsed)
    raise TypeMismatch(op, str(left_kind), str(right_kind))


_COMPARATORS: dict[str, Callable[[object, object], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def compare(op: str, left: object, right: object) -> bool | None:
    if left is None or right is None:
        return None
    left, right = coerce_comparable(op, left, right)
    return _COMPARATORS[op](left, right)


def _check_logical(op: str, value: object) -> None:
    if value is not None and not isinstance(value, bool):
        raise TypeMismatch(op, str(kind_of(value)))


def logical_and(left: object, right: object) -> bool | None:
    _check_logical("AND", left)
    _check_logical("AND", right)
    if left is False or right is False:
        return False
    if left is None or right is None:
        return None
    return True


def logical_or(left: object, right: object) -> bool | None:
    _check_logical("OR", left)
    _check_logical("OR", right)
    if left is True or right is True:
        return True
    if left is None or right is None:
        return None
    return False


def logical_not(value: object) -> bool | None:
    _check_logical("NOT", value)
    if value is None:
        return None
    return not value


def like_regex(pattern: str, case_insensitive: bool) -> re.Pattern[str]:
    """Translate a SQL ``LIKE`` pattern (``%`` and ``_``) into a regex."""
    parts: list[str] = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    flags = re.DOTALL | (re.IGNORECASE if case_insensitive else 0)
    return re.compile("".join(parts), flags)


# static kind rules


def arithmetic_kind(op: str, left: Kind, right: Kind) -> Kind:
    for kind in (left, right):
        if not (kind.is_numeric or kind is Kind.NULL):
            raise TypeMismatch(op, str(left), str(right))
    if left is Kind.NULL and right is Kind.NULL:
        return Kind.NULL
    if op == "/":
        return Kind.FLOAT
    if left is Kind.FLOAT or right is Kind.FLOAT:
        return Kind.FLOAT
    return Kind.INTEGER


def check_comparable(op: str, left: Kind, right: Kind) -> None:
    if Kind.NULL in (left, right):
        return
    if left.is_numeric and right.is_numeric:
        return
    if left is right:
        return
    if {left, right} == {Kind.TEMPORAL, Kind.STRING}:
        return
    raise TypeMismatch(op, str(left), str(right))


def check_boolean(op: str, *kinds: Kind) -> None:
    for kind in kinds:
        if kind not in (Kind.BOOLEAN, Kind.NULL):
            raise TypeMismatch(op, *(str(k) for k in kinds))


def merge_kinds(op: str, kinds: Sequence[Kind]) -> Kind:
    """Common result kind for ``COALESCE``-style merges."""
    result = Kind.NULL
    for kind in kinds:
        if kind is Kind.NULL or kind is result:
            continue
        if result is Kind.NULL:
            result = kind
        elif result.is_numeric and kind.is_numeric:
            result = Kind.FLOAT
        else:
            raise TypeMismatch(op, str(result), str(kind))
    return result


# compilers


def _constant(value: object) -> Evaluator:
    return lambda _row: value


class ExpressionCompiler:
    """Compile expressions evaluated against a single flat row."""

    def __init__(self, scope: Scope) -> None:
        self.scope = scope

    def compile(self, expr: Expr) -> Compiled:
        special = self._compile_special(expr)
        if special is not None:
            return special
        if isinstance(expr, Literal):
            return Compiled(_constant(expr.value), kind_of(expr.value))
        if isinstance(expr, ColumnRef):
            return self._compile_column(expr)
        if isinstance(expr, FunctionCall):
            if expr.is_aggregate:
                return self._compile_aggregate(expr)
            return self._compile_scalar_function(expr)
        if isinstance(expr, Unary):
            return self._compile_unary(expr)
        if isinstance(expr, Binary):
            return self._compile_binary(expr)
        if isinstance(expr, Between):
            return self._compile_between(expr)
        if isinstance(expr, InList):
            return self._compile_in(expr)
        if isinstance(expr, IsNull):
            return self._compile_is_null(expr)
        if isinstance(expr, Like):
            return self._compile_like(expr)
        if isinstance(expr, Star):
            raise ParseError("'*' is only allowed in the select list", expr.position)
        raise ParseError(f"unsupported expression {type(expr).__name__}", expr.position)

    def compile_predicate(self, expr: Expr, operation: str) -> Callable[[object], bool]:
        """Compile a boolean expression where null counts as false."""
        compiled = self.compile(expr)
        check_boolean(operation, compiled.kind)
        fn = compiled.fn
        return lambda row: fn(row) is True

    # leaves, overridden for grouped evaluation

    def _compile_special(self, expr: Expr) -> Compiled | None:
        return None

    def _compile_column(self, ref: ColumnRef) -> Compiled:
        bound = self.scope.resolve(ref)
        index = bound.index
        return Compiled(lambda row: row[index], bound.kind)

    def _compile_aggregate(self, call: FunctionCall) -> Compiled:
        raise ParseError(f"aggregate function {call.name} is not allowed here", call.position)

    # operators

    def _compile_unary(self, expr: Unary) -> Compiled:
        operand = self.compile(expr.operand)
        fn = operand.fn
        if expr.op == "NOT":
            check_boolean("NOT", operand.kind)
            return Compiled(lambda row: logical_not(fn(row)), Kind.BOOLEAN)
        if not (operand.kind.is_numeric or operand.kind is Kind.NULL):
            raise TypeMismatch("-", str(operand.kind))

        def negate(row: object) -> object:
            value = fn(row)
            if value is None:
                return None
            if not kind_of(value).is_numeric:
                raise TypeMismatch("-", str(kind_of(value)))
            return -value

        return Compiled(negate, operand.kind)

    def _compile_binary(self, expr: Binary) -> Compiled:
        left = self.compile(expr.left)
        right = self.compile(expr.right)
        lfn, rfn = left.fn, right.fn
        op = expr.op

        if op == "AND":
            check_boolean("AND", left.kind, right.kind)
            return Compiled(lambda row: logical_and(lfn(row), rfn(row)), Kind.BOOLEAN)
        if op == "OR":
            check_boolean("OR", left.kind, right.kind)
            return Compiled(lambda row: logical_or(lfn(row), rfn(row)), Kind.BOOLEAN)
        if op in _COMPARATORS:
            check_comparable(op, left.kind, right.kind)
            return Compiled(lambda row: compare(op, lfn(row), rfn(row)), Kind.BOOLEAN)
        if op == "||":

            def concat(row: object) -> object:
                lvalue, rvalue = lfn(row), rfn(row)
                if lvalue is None or rvalue is None:
                    return None
                return format_value(lvalue) + format_value(rvalue)

            return Compiled(concat, Kind.STRING)
        kind = arithmetic_kind(op, left.kind, right.kind)
        if kind is Kind.FLOAT and op != "/":

            def arithmetic_float(row: object) -> object:
                value = apply_arithmetic(op, lfn(row), rfn(row))
                return float(value) if value is not None else None

            return Compiled(arithmetic_float, kind)
        return Compiled(lambda row: apply_arithmetic(op, lfn(row), rfn(row)), kind)

    def _compile_between(self, expr: Between) -> Compiled:
        operand = self.compile(expr.operand)
        low = self.compile(expr.low)
        high = self.compile(expr.high)
        check_comparable("BETWEEN", operand.kind, low.kind)
        check_comparable("BETWEEN", operand.kind, high.kind)
        ofn, lfn, hfn = operand.fn, low.fn, high.fn
        negated = expr.negated

        def between(row: object) -> object:
            value = ofn(row)
            result = logical_and(compare(">=", value, lfn(row)), compare("<=", value, hfn(row)))
            return logical_not(result) if negated else result

        return Compiled(between, Kind.BOOLEAN)

    def _compile_in(self, expr: InList) -> Compiled:
        operand = self.compile(expr.operand)
        items = [self.compile(item) for item in expr.items]
        for item in items:
            check_comparable("IN", operand.kind, item.kind)
        ofn = operand.fn
        item_fns = [item.fn for item in items]
        negated = expr.negated

        def contains(row: object) -> object:
            value = ofn(row)
            if value is None:
                return None
            saw_null = False
            found = False
            for item_fn in item_fns:
                result = compare("=", value, item_fn(row))
                if result is None:
                    saw_null = True
                elif result:
                    found = True
                    break
            outcome = True if found else (None if saw_null else False)
            return logical_not(outcome) if negated else outcome

        return Compiled(contains, Kind.BOOLEAN)

    def _compile_is_null(self, expr: IsNull) -> Compiled:
        fn = self.compile(expr.operand).fn
        if expr.negated:
            return Compiled(lambda row: fn(row) is not None, Kind.BOOLEAN)
        return Compiled(lambda row: fn(row) is None, Kind.BOOLEAN)

    def _compile_like(self, expr: Like) -> Compiled:
        operation = "ILIKE" if expr.case_insensitive else "LIKE"
        operand = self.compile(expr.operand)
        pattern = self.compile(expr.pattern)
        for kind in (operand.kind, pattern.kind):
            if kind not in (Kind.STRING, Kind.NULL):
                raise TypeMismatch(operation, str(operand.kind), str(pattern.kind))
        ofn, pfn = operand.fn, pattern.fn
        negated = expr.negated
        case_insensitive = expr.case_insensitive
        fixed = (
            like_regex(expr.pattern.value, case_insensitive)
            if isinstance(expr.pattern, Literal) and isinstance(expr.pattern.value, str)
            else None
        )

        def like(row: object) -> object:
            value = ofn(row)
            if value is None:
                return None
            if not isinstance(value, str):
                raise TypeMismatch(operation, str(kind_of(value)))
            regex = fixed
            if regex is None:
                raw_pattern = pfn(row)
                if raw_pattern is None:
                    return None
                regex = like_regex(str(raw_pattern), case_insensitive)
            matched = regex.fullmatch(value) is not None
            return not matched if negated else matched

        return Compiled(like, Kind.BOOLEAN)

    def _expect_args(self, call: FunctionCall, minimum: int, maximum: int | None) -> None:
        count = len(call.args)
        if count < minimum or (maximum is not None and count > maximum):
            if maximum == minimum:
                expected = str(minimum)
            elif maximum is None:
                expected = f"at least {minimum}"
            else:
                expected = f"{minimum} to {maximum}"
            raise ParseError(f"{call.name} expects {expected} argument(s), got {count}", call.position)

    def _compile_scalar_function(self, call: FunctionCall) -> Compiled:
        name = call.name
        if name == "COALESCE":
            self._expect_args(call, 1, None)
            args = [self.compile(arg) for arg in call.args]
            kind = merge_kinds(name, [arg.kind for arg in args])
            fns = [arg.fn for arg in args]

            def coalesce(row: object) -> object:
                for fn in fns:
                    value = fn(row)
                    if value is not None:
                        return float(value) if kind is Kind.FLOAT and not isinstance(value, bool) else value
                return None

            return Compiled(coalesce, kind)

        if name == "ROUND":
            self._expect_args(call, 1, 2)
        else:
            self._expect_args(call, 1, 1)
        arg = self.compile(call.args[0])
        fn = arg.fn

        if name in {"LOWER", "UPPER", "TRIM", "LENGTH"}:
            if arg.kind not in (Kind.STRING, Kind.NULL):
                raise TypeMismatch(name, str(arg.kind))
            transform: Callable[[str], object] = {
                "LOWER": str.lower,
                "UPPER": str.upper,
                "TRIM": str.strip,
                "LENGTH": len,
            }[name]
            kind = Kind.INTEGER if name == "LENGTH" else Kind.STRING

            def string_function(row: object) -> object:
                value = fn(row)
                if value is None:
                    return None
                if not isinstance(value, str):
                    raise TypeMismatch(name, str(kind_of(value)))
                return transform(value)

            return Compiled(string_function, kind)

        if not (arg.kind.is_numeric or arg.kind is Kind.NULL):
            raise TypeMismatch(name, str(arg.kind))

        if name == "ABS":

            def absolute(row: object) -> object:
                value = fn(row)
                return None if value is None else abs(value)

            return Compiled(absolute, arg.kind)

        digits_fn: Evaluator = _constant(0)
        if len(call.args) == 2:
            digits = self.compile(call.args[1])
            if digits.kind not in (Kind.INTEGER, Kind.NULL):
                raise TypeMismatch(name, str(arg.kind), str(digits.kind))
            digits_fn = digits.fn

        def round_value(row: object) -> object:
            value = fn(row)
            ndigits = digits_fn(row)
            if value is None or ndigits is None:
                return None
            return round(value, ndigits)

        return Compiled(round_value, arg.kind)


class GroupCompiler(ExpressionCompiler):
    """Compile expressions evaluated once per group (a list of rows).

    Sub-expressions equal to a ``GROUP BY`` key read the key from the group's
    first row; every other column reference must sit inside an aggregate.
    """

    def __init__(self, scope: Scope, group_by: Sequence[Expr] = ()) -> None:
        super().__init__(scope)
        self.row_compiler = ExpressionCompiler(scope)
        self.group_by = tuple(group_by)
        self._group_columns = {
            scope.resolve(key).index for key in self.group_by if isinstance(key, ColumnRef)
        }

    def _from_first_row(self, compiled: Compiled) -> Compiled:
        fn = compiled.fn
        return Compiled(lambda rows: fn(rows[0]) if rows else None, compiled.kind)

    def _compile_special(self, expr: Expr) -> Compiled | None:
        if any(expr == key for key in self.group_by):
            return self._from_first_row(self.row_compiler.compile(expr))
        return None

    def _compile_column(self, ref: ColumnRef) -> Compiled:
        bound = self.scope.resolve(ref)
        if bound.index in self._group_columns:
            return self._from_first_row(self.row_compiler.compile(ref))
        raise ParseError(
            f"column {ref.display!r} must appear in GROUP BY or be used in an aggregate",
            ref.position,
        )

    def _compile_aggregate(self, call: FunctionCall) -> Compiled:
        name = call.name
        if call.star:
            return Compiled(lambda rows: len(rows), Kind.INTEGER)
        self._expect_args(call, 1, 1)
        arg = self.row_compiler.compile(call.args[0])
        fn = arg.fn
        distinct = call.distinct

        def values_of(rows: Sequence[Row]) -> list[object]:
            values = [value for value in (fn(row) for row in rows) if value is not None]
            if distinct:
                values = list(dict.fromkeys(values))
            return values

        if name == "COUNT":
            return Compiled(lambda rows: len(values_of(rows)), Kind.INTEGER)

        if name in {"SUM", "AVG"}:
            if not (arg.kind.is_numeric or arg.kind is Kind.NULL):
                raise TypeMismatch(name, str(arg.kind))

            def total(rows: Sequence[Row]) -> object:
                values = values_of(rows)
                if not values:
                    return None
                for value in values:
                    if not kind_of(value).is_numeric:
                        raise TypeMismatch(name, str(kind_of(value)))
                if name == "AVG":
                    return sum(values) / len(values)
                return sum(values)

            if name == "AVG":
                return Compiled(total, Kind.FLOAT)
            return Compiled(total, arg.kind)

        choose = min if name == "MIN" else max

        def extreme(rows: Sequence[Row]) -> object:
            values = values_of(rows)
            if not values:
                return None
            best = values[0]
            for value in values[1:]:
                candidate, current = coerce_comparable(name, value, best)
                if (candidate < current) if choose is min else (candidate > current):
                    best = value
            return best

        return Compiled(extreme, arg.kind)


def compile_predicate(text: str, table: Table, table_name: str = "table") -> Callable[[Row], bool]:
    """Compile filter syntax against one table's rows (null counts as false)."""
    expr = parse_expression(text)
    compiler = ExpressionCompiler(Scope.for_table(table_name, table))
    return compiler.compile_predicate(expr, "filter")


__all__ = [
    "BoundColumn",
    "Compiled",
    "Scope",
    "ExpressionCompiler",
    "GroupCompiler",
    "apply_arithmetic",
    "compare",
    "coerce_comparable",
    "logical_and",
    "logical_or",
    "logical_not",
    "like_regex",
    "arithmetic_kind",
    "check_comparable",
    "check_boolean",
    "merge_kinds",
    "compile_predicate",
]
