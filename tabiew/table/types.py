"""Immutable columnar table model.

A ``Table`` is an ordered tuple of typed ``Column`` objects. Tables are never
mutated: loaders and the query engine always build new instances.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from ..errors import TableShapeError


class Kind(str, Enum):
    """Scalar kinds a column (or expression) can hold."""

    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    TEMPORAL = "temporal"
    NULL = "null"

    @property
    def is_numeric(self) -> bool:
        return self in (Kind.INTEGER, Kind.FLOAT)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Column:
    """One named column; ``values`` uses ``None`` for nulls."""

    name: str
    kind: Kind
    values: tuple[object, ...]

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class Table:
    """Ordered, equal-length, uniquely named columns."""

    columns: tuple[Column, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        lengths = {len(column) for column in self.columns}
        if len(lengths) > 1:
            raise TableShapeError(f"columns have unequal lengths: {sorted(lengths)}")
        for column in self.columns:
            if column.name in seen:
                raise TableShapeError(f"duplicate column name {column.name!r}")
            seen.add(column.name)

    @classmethod
    def empty(cls) -> Table:
        return cls(())

    @classmethod
    def from_columns(cls, columns: Iterable[Column]) -> Table:
        return cls(tuple(columns))

    @classmethod
    def from_rows(
        cls,
        names: Sequence[str],
        rows: Iterable[Sequence[object]],
        kinds: Sequence[Kind] | None = None,
    ) -> Table:
        """Build a table from row tuples, inferring kinds when not given."""
        from .values import common_kind

        materialized = [tuple(row) for row in rows]
        for row in materialized:
            if len(row) != len(names):
                raise TableShapeError(f"row has {len(row)} values, expected {len(names)}")
        columns: list[Column] = []
        for idx, name in enumerate(names):
            values = tuple(row[idx] for row in materialized)
            kind = kinds[idx] if kinds is not None else common_kind(values)
            columns.append(Column(name=name, kind=kind, values=values))
        return cls(tuple(columns))

    @property
    def height(self) -> int:
        if not self.columns:
            return 0
        return len(self.columns[0])

    @property
    def width(self) -> int:
        return len(self.columns)

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    @property
    def kinds(self) -> tuple[Kind, ...]:
        return tuple(column.kind for column in self.columns)

    def has_column(self, name: str) -> bool:
        return any(column.name == name for column in self.columns)

    def column_index(self, name: str) -> int:
        """Return position of ``name``; raises ``KeyError`` when absent."""
        for idx, column in enumerate(self.columns):
            if column.name == name:
                return idx
        raise KeyError(name)

    def column(self, name: str) -> Column:
        return self.columns[self.column_index(name)]

    def row(self, index: int) -> tuple[object, ...]:
        return tuple(column.values[index] for column in self.columns)

    def rows(self) -> Iterator[tuple[object, ...]]:
        if not self.columns:
            return iter(())
        return zip(*(column.values for column in self.columns))


__all__ = ["Kind", "Column", "Table"]
