"""Name-to-table registry shared by the query engine and command handlers.

The registry is the only writer of the name mapping. Name collisions never
overwrite: a numeric suffix is appended so tables still shown in tabs (which
hold their own ``Table`` reference) keep a resolvable name of their own.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from .errors import InvalidTableName, UnknownTable
from .table import Table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryEntry:
    name: str
    table: Table
    origin: Path | None = None


@dataclass(frozen=True)
class TableInfo:
    """Introspection row used for listings and completion."""

    name: str
    row_count: int
    column_count: int


class TableRegistry:
    """Ordered mapping from user-visible names to immutable tables."""

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _clean_name(name: str) -> str:
        cleaned = str(name).strip()
        if not cleaned:
            raise InvalidTableName("table name must not be empty")
        return cleaned

    def _free_name(self, base: str) -> str:
        """Return ``base`` or the first ``base_N`` (N >= 2) not in use."""
        if base not in self._entries:
            return base
        suffix = 2
        while f"{base}_{suffix}" in self._entries:
            suffix += 1
        return f"{base}_{suffix}"

    def register(self, name: str, table: Table, origin: Path | None = None) -> str:
        """Store ``table`` and return the name it is reachable under."""
        effective = self._free_name(self._clean_name(name))
        entry = RegistryEntry(name=effective, table=table, origin=origin)
        self._entries[effective] = entry
        logger.debug("registered %r (%d rows, origin=%s)", effective, table.height, origin)
        return effective

    def get(self, name: str) -> Table | None:
        entry = self._entries.get(name)
        return entry.table if entry is not None else None

    def lookup(self, name: str) -> Table:
        entry = self._entries.get(name)
        if entry is None:
            raise UnknownTable(name)
        return entry.table

    def entry(self, name: str) -> RegistryEntry:
        entry = self._entries.get(name)
        if entry is None:
            raise UnknownTable(name)
        return entry

    def names(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def list(self) -> list[TableInfo]:
        return [
            TableInfo(name=entry.name, row_count=entry.table.height, column_count=entry.table.width)
            for entry in self._entries.values()
        ]

    def rename(self, old: str, new: str) -> str:
        """Move ``old`` to ``new`` (suffixed on collision), keeping listing order."""
        entry = self.entry(old)
        target = self._clean_name(new)
        if target == old:
            return old
        effective = self._free_name(target)
        self._entries = {
            (effective if name == old else name): (
                RegistryEntry(name=effective, table=entry.table, origin=entry.origin)
                if name == old
                else current
            )
            for name, current in self._entries.items()
        }
        logger.debug("renamed %r -> %r", old, effective)
        return effective

    def drop(self, name: str) -> RegistryEntry:
        entry = self._entries.pop(name, None)
        if entry is None:
            raise UnknownTable(name)
        logger.debug("dropped %r", name)
        return entry

    def snapshot(self) -> Mapping[str, Table]:
        """Read-only copy of the current mapping for off-thread query execution."""
        return MappingProxyType({name: entry.table for name, entry in self._entries.items()})


__all__ = ["RegistryEntry", "TableInfo", "TableRegistry"]
