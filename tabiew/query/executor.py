"""Plan and run ``SELECT`` statements against registered tables.

``SelectPlan`` does all name resolution and type checking up front; ``run``
then only evaluates closures, so a query either fails before touching any
row or produces exactly one new ``Table``.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from ..errors import ParseError, QueryCancelled, UnknownTable
from ..registry import TableRegistry
from ..table import Column, Kind, Table
from ..table.values import order_nulls_last
from .ast import Binary, ColumnRef, Expr, Literal, Select, SelectItem, Star, TableRef, contains_aggregate
from .expressions import Compiled, ExpressionCompiler, GroupCompiler, Scope
from .parser import parse_query

TableSource = TableRegistry | Mapping[str, Table]

CANCEL_CHECK_INTERVAL = 512


def _lookup(tables: TableSource, ref: TableRef) -> Table:
    if isinstance(tables, TableRegistry):
        return tables.lookup(ref.name)
    table = tables.get(ref.name)
    if table is None:
        raise UnknownTable(ref.name)
    return table


class _CancelCheck:
    def __init__(self, cancel: threading.Event | None) -> None:
        self.cancel = cancel
        self.count = 0

    def __call__(self) -> None:
        if self.cancel is None:
            return
        self.count += 1
        if self.count % CANCEL_CHECK_INTERVAL == 0 and self.cancel.is_set():
            raise QueryCancelled()

    def now(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise QueryCancelled()


@dataclass(frozen=True)
class JoinStep:
    rows: tuple[tuple[object, ...], ...]
    right_width: int
    predicate: Callable[[object], bool]
    left_outer: bool
    # (left index, right index) when the condition is one equality across sides
    hash_keys: tuple[int, int] | None


@dataclass(frozen=True)
class OutputColumn:
    name: str
    compiled: Compiled


@dataclass(frozen=True)
class SortKey:
    ascending: bool
    output_index: int | None = None
    source: Callable[[object], object] | None = None


def _unique_names(names: Sequence[str]) -> list[str]:
    used: set[str] = set()
    result: list[str] = []
    for name in names:
        candidate = name
        suffix = 2
        while candidate in used:
            candidate = f"{name}_{suffix}"
            suffix += 1
        used.add(candidate)
        result.append(candidate)
    return result


class SelectPlan:
    """A validated, ready-to-run query."""

    def __init__(self, select: Select, text: str, tables: TableSource) -> None:
        self.select = select
        self.text = text
        self.scope = Scope()

        source_table = _lookup(tables, select.source)
        self.source_rows = tuple(source_table.rows())
        self.scope.add_table(select.source.qualifier, select.source.name, source_table, select.source.position)

        self.joins: list[JoinStep] = []
        for join in select.joins:
            table = _lookup(tables, join.table)
            left_width = self.scope.width
            self.scope.add_table(join.table.qualifier, join.table.name, table, join.table.position)
            compiler = ExpressionCompiler(self.scope)
            predicate = compiler.compile_predicate(join.condition, "JOIN")
            self.joins.append(
                JoinStep(
                    rows=tuple(table.rows()),
                    right_width=table.width,
                    predicate=predicate,
                    left_outer=join.left_outer,
                    hash_keys=self._hash_keys(join.condition, left_width),
                )
            )

        self.row_compiler = ExpressionCompiler(self.scope)
        self.where = (
            self.row_compiler.compile_predicate(select.where, "WHERE") if select.where is not None else None
        )

        self.grouped = bool(select.group_by) or select.having is not None or any(
            contains_aggregate(item.expr) for item in select.items
        )
        self.group_keys = [self.row_compiler.compile(key).fn for key in select.group_by]
        compiler = GroupCompiler(self.scope, select.group_by) if self.grouped else self.row_compiler
        self.compiler = compiler
        self.having = compiler.compile_predicate(select.having, "HAVING") if select.having is not None else None

        self.outputs = self._compile_outputs(select.items)
        self.sort_keys = [self._compile_sort_key(item.expr, item.ascending) for item in select.order_by]

    def _hash_keys(self, condition: Expr, left_width: int) -> tuple[int, int] | None:
        if not (
            isinstance(condition, Binary)
            and condition.op == "="
            and isinstance(condition.left, ColumnRef)
            and isinstance(condition.right, ColumnRef)
        ):
            return None
        first = self.scope.resolve(condition.left)
        second = self.scope.resolve(condition.right)
        if first.index >= left_width and second.index < left_width:
            first, second = second, first
        if not (first.index < left_width <= second.index):
            return None
        numeric = first.kind.is_numeric and second.kind.is_numeric
        if not numeric and (first.kind is not second.kind or first.kind is Kind.TEMPORAL):
            return None
        return first.index, second.index - left_width

    def _expand_items(self, items: Sequence[SelectItem]) -> list[tuple[Expr, str]]:
        expanded: list[tuple[Expr, str]] = []
        for item in items:
            expr = item.expr
            if isinstance(expr, Star):
                if expr.qualifier is not None:
                    if expr.qualifier not in self.scope.qualifiers:
                        raise UnknownTable(expr.qualifier)
                    columns = self.scope.columns_of(expr.qualifier)
                else:
                    columns = self.scope.columns
                for column in columns:
                    ref = ColumnRef(column.name, column.qualifier, position=expr.position, end=expr.end)
                    expanded.append((ref, column.name))
                continue
            if item.alias is not None:
                name = item.alias
            elif isinstance(expr, ColumnRef):
                name = expr.name
            else:
                name = self.text[expr.position : expr.end].strip() or "expr"
            expanded.append((expr, name))
        return expanded

    def _compile_outputs(self, items: Sequence[SelectItem]) -> list[OutputColumn]:
        expanded = self._expand_items(items)
        names = _unique_names([name for _, name in expanded])
        return [OutputColumn(name, self.compiler.compile(expr)) for (expr, _), name in zip(expanded, names)]

    def _compile_sort_key(self, expr: Expr, ascending: bool) -> SortKey:
        if isinstance(expr, Literal) and isinstance(expr.value, int) and not isinstance(expr.value, bool):
            if not 1 <= expr.value <= len(self.outputs):
                raise ParseError(f"ORDER BY position {expr.value} is out of range", expr.position)
            return SortKey(ascending, output_index=expr.value - 1)
        if isinstance(expr, ColumnRef) and expr.qualifier is None:
            names = [output.name for output in self.outputs]
            aliases = [item.alias for item in self.select.items]
            if expr.name in aliases and expr.name in names:
                return SortKey(ascending, output_index=names.index(expr.name))
            if not any(column.name == expr.name for column in self.scope.columns) and expr.name in names:
                return SortKey(ascending, output_index=names.index(expr.name))
        return SortKey(ascending, source=self.compiler.compile(expr).fn)

    # execution

    def _joined_rows(self, check: _CancelCheck) -> list[tuple[object, ...]]:
        rows = list(self.source_rows)
        for step in self.joins:
            joined: list[tuple[object, ...]] = []
            padding = (None,) * step.right_width
            index: dict[object, list[tuple[object, ...]]] | None = None
            if step.hash_keys is not None:
                right_key = step.hash_keys[1]
                index = {}
                for right in step.rows:
                    check()
                    if right[right_key] is not None:
                        index.setdefault(right[right_key], []).append(right)
            for left in rows:
                check()
                if index is not None:
                    key = left[step.hash_keys[0]]
                    candidates = index.get(key, []) if key is not None else []
                    matches = [left + right for right in candidates]
                else:
                    matches = []
                    for right in step.rows:
                        check()
                        combined = left + right
                        if step.predicate(combined):
                            matches.append(combined)
                if matches:
                    joined.extend(matches)
                elif step.left_outer:
                    joined.append(left + padding)
            rows = joined
        return rows

    def _groups(self, rows: list[tuple[object, ...]], check: _CancelCheck) -> list[list[tuple[object, ...]]]:
        if not self.group_keys:
            return [rows]
        groups: dict[tuple[object, ...], list[tuple[object, ...]]] = {}
        for row in rows:
            check()
            key = tuple(fn(row) for fn in self.group_keys)
            groups.setdefault(key, []).append(row)
        return list(groups.values())

    def run(self, cancel: threading.Event | None = None) -> Table:
        check = _CancelCheck(cancel)
        check.now()
        rows = self._joined_rows(check)
        if self.where is not None:
            where = self.where
            filtered = []
            for row in rows:
                check()
                if where(row):
                    filtered.append(row)
            rows = filtered

        records: list[object] = list(rows)
        if self.grouped:
            records = list(self._groups(rows, check))
            if self.having is not None:
                having = self.having
                records = [group for group in records if having(group)]

        check.now()
        fns = [output.compiled.fn for output in self.outputs]
        projected: list[tuple[tuple[object, ...], object]] = []
        for record in records:
            check()
            projected.append((tuple(fn(record) for fn in fns), record))

        if self.select.distinct:
            seen: dict[tuple[object, ...], tuple[tuple[object, ...], object]] = {}
            for values, record in projected:
                seen.setdefault(values, (values, record))
            projected = list(seen.values())

        if self.sort_keys:
            keys: list[tuple[Callable[[tuple[tuple[object, ...], object]], object], bool]] = []
            for sort_key in self.sort_keys:
                if sort_key.output_index is not None:
                    idx = sort_key.output_index
                    keys.append((lambda pair, idx=idx: pair[0][idx], sort_key.ascending))
                else:
                    source = sort_key.source
                    keys.append((lambda pair, source=source: source(pair[1]), sort_key.ascending))
            projected = order_nulls_last(projected, keys)

        check.now()
        start = self.select.offset
        stop = None if self.select.limit is None else start + self.select.limit
        result_rows = [values for values, _ in projected[start:stop]]
        return Table.from_columns(
            Column(
                name=output.name,
                kind=output.compiled.kind,
                values=tuple(row[idx] for row in result_rows),
            )
            for idx, output in enumerate(self.outputs)
        )


def plan(query_text: str, tables: TableSource) -> SelectPlan:
    """Parse and validate ``query_text`` without reading any rows."""
    return SelectPlan(parse_query(query_text), query_text, tables)


def execute(query_text: str, tables: TableSource, *, cancel: threading.Event | None = None) -> Table:
    """Run one query and return its result as a new table."""
    return plan(query_text, tables).run(cancel)


__all__ = ["SelectPlan", "plan", "execute"]
