"""Immutable view of the application handed to the renderer."""

from __future__ import annotations

from dataclasses import dataclass

from ..table import Kind, format_value
from .modes import CommandMode, ConfirmMode, Mode, SearchMode

# tab bar, column header and status line
CHROME_LINES = 3


@dataclass(frozen=True)
class ColumnView:
    name: str
    kind: Kind
    width_hint: int | None = None


@dataclass(frozen=True)
class RowView:
    position: int
    table_index: int
    cells: tuple[str, ...]


@dataclass(frozen=True)
class AppSnapshot:
    tab_names: tuple[str, ...] = ()
    active_tab: int = 0
    table_name: str = ""
    tab_kind: str = ""
    query: str | None = None
    columns: tuple[ColumnView, ...] = ()
    rows: tuple[RowView, ...] = ()
    selected_row: int = 0
    selected_column: int = 0
    scroll: int = 0
    visible_count: int = 0
    total_rows: int = 0
    sort: str | None = None
    filter: str | None = None
    mode: str = "normal"
    prompt: str = ""
    status: str = ""
    status_error: bool = False
    show_help: bool = False
    query_pending: bool = False
    case_sensitive: bool = False
    running: bool = True
    bindings: tuple[tuple[str, str], ...] = ()

    @property
    def has_table(self) -> bool:
        return bool(self.tab_names)


def prompt_line(mode: Mode) -> str:
    """Text shown on the bottom line for input modes."""
    if isinstance(mode, CommandMode):
        return ":" + mode.buffer
    if isinstance(mode, SearchMode):
        return mode.prompt + mode.buffer
    if isinstance(mode, ConfirmMode):
        return mode.prompt
    return ""


def format_row(position: int, table_index: int, row: tuple[object, ...]) -> RowView:
    return RowView(position, table_index, tuple(format_value(value) for value in row))


__all__ = ["CHROME_LINES", "ColumnView", "RowView", "AppSnapshot", "prompt_line", "format_row"]
