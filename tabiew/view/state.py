"""Per-tab view state: selection, sort, filter, scroll and width hints.

The view never changes its ``Table``. Mutators only invalidate the cached
list of visible row indices, which is rebuilt on the next read as
``sort(filter(all rows))``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..errors import QueryError, UnknownColumn
from ..query import compile_predicate
from ..table import Table, format_value
from ..table.values import order_nulls_last


@dataclass(frozen=True)
class SortSpec:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class FilterSpec:
    text: str
    predicate: Callable[[tuple[object, ...]], bool]
    matches: tuple[int, ...]


class ViewState:
    def __init__(self, table: Table, table_name: str = "table") -> None:
        self.table = table
        self.table_name = table_name
        self.sort: SortSpec | None = None
        self.filter: FilterSpec | None = None
        self.column_widths: dict[str, int] = {}
        self.selected_column = 0
        self.scroll = 0
        self._selected = 0
        self._visible: list[int] | None = None
        self._anchor: int | None = None

    # derived rows

    def _invalidate(self) -> None:
        if self._visible is not None and 0 <= self._selected < len(self._visible):
            self._anchor = self._visible[self._selected]
        self._visible = None

    def _compute_visible(self) -> list[int]:
        if self.filter is not None:
            indices = list(self.filter.matches)
        else:
            indices = list(range(self.table.height))
        if self.sort is not None:
            values = self.table.column(self.sort.column).values
            indices = order_nulls_last(indices, [(lambda idx: values[idx], self.sort.ascending)])
        return indices

    @property
    def visible_rows(self) -> list[int]:
        """Table row indices in display order."""
        if self._visible is None:
            self._visible = self._compute_visible()
            if self._anchor is not None and self._anchor in self._visible:
                self._selected = self._visible.index(self._anchor)
            self._anchor = None
            self._clamp()
        return self._visible

    @property
    def visible_count(self) -> int:
        return len(self.visible_rows)

    @property
    def selected(self) -> int:
        """Selected position within the visible rows (0 when nothing is visible)."""
        rows = self.visible_rows
        return self._selected if rows else 0

    @property
    def selected_row_index(self) -> int | None:
        rows = self.visible_rows
        if not rows:
            return None
        return rows[self._selected]

    @property
    def selected_column_name(self) -> str | None:
        if not self.table.columns:
            return None
        return self.table.columns[self.selected_column].name

    def page(self, start: int, count: int) -> list[tuple[int, tuple[object, ...]]]:
        """Up to ``count`` ``(table_index, row)`` pairs from visible position ``start``."""
        rows = self.visible_rows[max(0, start) : max(0, start) + max(0, count)]
        return [(idx, self.table.row(idx)) for idx in rows]

    def _clamp(self) -> None:
        count = len(self._visible) if self._visible is not None else 0
        self._selected = min(max(self._selected, 0), max(count - 1, 0))
        self.scroll = min(max(self.scroll, 0), max(count - 1, 0))
        self.selected_column = min(max(self.selected_column, 0), max(self.table.width - 1, 0))

    def _require_column(self, name: str) -> None:
        if not self.table.has_column(name):
            raise UnknownColumn(self.table_name, name)

    # sort and filter

    def set_sort(self, column: str, ascending: bool = True) -> None:
        self._require_column(column)
        self._invalidate()
        self.sort = SortSpec(column, ascending)

    def clear_sort(self) -> None:
        self._invalidate()
        self.sort = None

    def set_filter(self, predicate_text: str) -> None:
        """Filter visible rows; on any error the previous filter stays active."""
        text = predicate_text.strip()
        predicate = compile_predicate(text, self.table, self.table_name)
        matches = tuple(idx for idx, row in enumerate(self.table.rows()) if predicate(row))
        self._invalidate()
        self.filter = FilterSpec(text, predicate, matches)

    def clear_filter(self) -> None:
        self._invalidate()
        self.filter = None

    def reset(self) -> None:
        self.sort = None
        self.filter = None
        self._visible = None
        self._anchor = None
        self._selected = 0
        self.scroll = 0
        self.selected_column = 0

    def set_table(self, table: Table) -> None:
        """Show ``table`` instead, keeping whatever sort/filter/widths still apply."""
        self._invalidate()
        self.table = table
        if self.sort is not None and not table.has_column(self.sort.column):
            self.sort = None
        if self.filter is not None:
            text = self.filter.text
            self.filter = None
            try:
                self.set_filter(text)
            except QueryError:
                self.filter = None
        self.column_widths = {name: width for name, width in self.column_widths.items() if table.has_column(name)}
        self.selected_column = min(self.selected_column, max(table.width - 1, 0))

    # motion

    def move_selection(self, delta: int) -> None:
        rows = self.visible_rows
        self._selected = min(max(self._selected + delta, 0), max(len(rows) - 1, 0))

    def select_row(self, position: int) -> None:
        rows = self.visible_rows
        self._selected = min(max(position, 0), max(len(rows) - 1, 0))

    def set_scroll(self, offset: int) -> None:
        rows = self.visible_rows
        self.scroll = min(max(offset, 0), max(len(rows) - 1, 0))

    def ensure_visible(self, page_rows: int) -> None:
        """Scroll so the selected row falls inside a page of ``page_rows``."""
        page_rows = max(1, page_rows)
        selected = self.selected
        if selected < self.scroll:
            self.scroll = selected
        elif selected >= self.scroll + page_rows:
            self.scroll = selected - page_rows + 1
        self.set_scroll(self.scroll)

    def move_column(self, delta: int) -> None:
        self.selected_column = min(max(self.selected_column + delta, 0), max(self.table.width - 1, 0))

    def select_column(self, target: int | str) -> None:
        """Select a column by 0-based index or by name."""
        if isinstance(target, str):
            try:
                self.selected_column = self.table.column_index(target)
            except KeyError:
                raise UnknownColumn(self.table_name, target) from None
            return
        if not 0 <= target < self.table.width:
            raise UnknownColumn(self.table_name, f"#{target + 1}")
        self.selected_column = target

    def set_column_width(self, name: str, width: int) -> None:
        """Pin a display width for ``name``; a width below 1 removes the hint."""
        self._require_column(name)
        if width < 1:
            self.column_widths.pop(name, None)
            return
        self.column_widths[name] = width

    # search

    def find(self, pattern: str, forward: bool = True, case_sensitive: bool = False) -> bool:
        """Select the next visible row containing ``pattern`` in any cell.

        Search starts after (or before) the current row and wraps around.
        Returns ``False`` and leaves the selection alone when nothing matches.
        """
        if not pattern:
            return False
        rows = self.visible_rows
        if not rows:
            return False
        needle = pattern if case_sensitive else pattern.lower()
        count = len(rows)
        step = 1 if forward else -1
        for offset in range(1, count + 1):
            position = (self._selected + step * offset) % count
            for column_idx, value in enumerate(self.table.row(rows[position])):
                text = format_value(value)
                if needle in (text if case_sensitive else text.lower()):
                    self._selected = position
                    self.selected_column = column_idx
                    return True
        return False


__all__ = ["SortSpec", "FilterSpec", "ViewState"]
