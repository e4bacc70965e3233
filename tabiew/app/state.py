"""Tabs and the status bar owned by the application."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..table import Table
from ..view import ViewState


class TabKind(str, Enum):
    TABLE = "table"
    QUERY = "query"
    LISTING = "listing"


@dataclass
class Tab:
    """One open table. Holds its own ``Table``, never a registry lookup."""

    name: str
    table: Table
    view: ViewState
    kind: TabKind = TabKind.TABLE
    query: str | None = None

    @classmethod
    def open(cls, name: str, table: Table, kind: TabKind = TabKind.TABLE, query: str | None = None) -> Tab:
        return cls(name=name, table=table, view=ViewState(table, name), kind=kind, query=query)

    @property
    def needs_close_confirmation(self) -> bool:
        return self.kind is TabKind.QUERY

    def rename(self, name: str) -> None:
        self.name = name
        self.view.table_name = name

    def replace_table(self, table: Table) -> None:
        self.table = table
        self.view.set_table(table)


@dataclass
class StatusBar:
    message: str = ""
    until: float = 0.0
    error: bool = False

    def show(self, message: str, now: float, seconds: float, error: bool = False) -> None:
        self.message = message
        self.until = now + seconds
        self.error = error

    def clear(self) -> None:
        self.message = ""
        self.until = 0.0
        self.error = False

    def expire(self, now: float) -> bool:
        """Clear an outdated message; returns whether anything changed."""
        if self.message and now >= self.until:
            self.clear()
            return True
        return False


__all__ = ["TabKind", "Tab", "StatusBar"]
