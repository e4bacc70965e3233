"""Frame rendering for the table viewer.

``render_frame`` turns an ``AppSnapshot`` into the ANSI text of one full
screen: tab bar, column header, the visible page of rows (or the help
panel), and the status/prompt line. It reads nothing but the snapshot.
"""

from __future__ import annotations

import os

from ..app.snapshot import CHROME_LINES, AppSnapshot, ColumnView
from ..table import Kind
from ..ui_theme import DEFAULT_THEME, PLAIN_THEME, UITheme
from .ansi import clip_ansi_line, display_width, fit_cell, sanitize_cell
from .help import help_lines
from .highlight import highlight_command_line

MIN_COLUMN_WIDTH = 3
MAX_COLUMN_WIDTH = 32
COLUMN_GAP = 1


def column_widths(snapshot: AppSnapshot) -> list[int]:
    """Display width of each column: hint, else fitted to header and page cells."""
    widths: list[int] = []
    for idx, column in enumerate(snapshot.columns):
        if column.width_hint is not None:
            widths.append(max(1, column.width_hint))
            continue
        widest = display_width(column.name)
        for row in snapshot.rows:
            widest = max(widest, display_width(sanitize_cell(row.cells[idx])))
        widths.append(min(MAX_COLUMN_WIDTH, max(MIN_COLUMN_WIDTH, widest)))
    return widths


def visible_columns(widths: list[int], selected: int, width: int) -> range:
    """Column indices that fit ``width``, scrolled so ``selected`` is shown."""
    if not widths:
        return range(0)
    selected = min(max(selected, 0), len(widths) - 1)
    start = 0
    while start < selected and sum(widths[start : selected + 1]) + COLUMN_GAP * (selected - start) > width:
        start += 1
    stop = start
    used = 0
    while stop < len(widths):
        needed = widths[stop] + (COLUMN_GAP if stop > start else 0)
        if used + needed > width and stop > start:
            break
        used += needed
        stop += 1
    return range(start, stop)


def _tab_bar(snapshot: AppSnapshot, theme: UITheme) -> str:
    if not snapshot.tab_names:
        return f"{theme.tab_inactive} tabiew {theme.reset}"
    parts: list[str] = []
    for idx, name in enumerate(snapshot.tab_names):
        label = f" {idx + 1}:{sanitize_cell(name)} "
        if idx == snapshot.active_tab:
            parts.append(f"{theme.tab_active}{label}{theme.reset}")
        else:
            parts.append(f"{theme.tab_inactive}{label}{theme.reset}")
    return "".join(parts)


def _header(snapshot: AppSnapshot, widths: list[int], columns: range, theme: UITheme) -> str:
    cells: list[str] = []
    for idx in columns:
        column: ColumnView = snapshot.columns[idx]
        style = theme.header_selected if idx == snapshot.selected_column else theme.header
        cells.append(f"{style}{fit_cell(sanitize_cell(column.name), widths[idx])}{theme.reset}")
    return (" " * COLUMN_GAP).join(cells)


def _row_line(snapshot: AppSnapshot, row_idx: int, widths: list[int], columns: range, theme: UITheme) -> str:
    row = snapshot.rows[row_idx]
    selected = row.position == snapshot.selected_row
    base = theme.row_selected if selected else ""
    cells: list[str] = []
    for idx in columns:
        column = snapshot.columns[idx]
        text = fit_cell(sanitize_cell(row.cells[idx]), widths[idx], align_right=column.kind.is_numeric)
        if selected and idx == snapshot.selected_column:
            style = theme.cell_selected
        else:
            style = theme.value_color(column.kind) if column.kind is not Kind.NULL else theme.help_dim
        cells.append(f"{base}{style}{text}{theme.reset}")
    gap = f"{base}{' ' * COLUMN_GAP}{theme.reset}"
    return gap.join(cells)


def _status_line(snapshot: AppSnapshot, theme: UITheme) -> str:
    if snapshot.prompt:
        prompt = snapshot.prompt
        if snapshot.mode == "command" and theme is not PLAIN_THEME:
            prompt = ":" + highlight_command_line(prompt[1:])
        return f"{theme.prompt}{prompt}{theme.reset}"
    if snapshot.status:
        style = theme.status_error if snapshot.status_error else theme.status
        return f"{style}{sanitize_cell(snapshot.status)}{theme.reset}"
    parts: list[str] = []
    if snapshot.has_table:
        position = snapshot.selected_row + 1 if snapshot.visible_count else 0
        parts.append(f"{snapshot.table_name} [{snapshot.tab_kind}]")
        parts.append(f"row {position}/{snapshot.visible_count}")
        if snapshot.visible_count != snapshot.total_rows:
            parts.append(f"of {snapshot.total_rows}")
        if snapshot.sort:
            parts.append(f"sort: {snapshot.sort}")
        if snapshot.filter:
            parts.append(f"filter: {sanitize_cell(snapshot.filter)}")
    if snapshot.case_sensitive:
        parts.append("case")
    if snapshot.query_pending:
        parts.append("running query...")
    parts.append("H help")
    return f"{theme.status}{'  '.join(parts)}{theme.reset}"


def frame_lines(snapshot: AppSnapshot, width: int, height: int, theme: UITheme = DEFAULT_THEME) -> list[str]:
    """Styled screen lines, exactly ``height`` of them (blank lines included)."""
    height = max(1, height)
    body_rows = max(0, height - CHROME_LINES)
    lines: list[str] = [_tab_bar(snapshot, theme)]

    if snapshot.show_help:
        body = [""] + help_lines(theme, snapshot.bindings)
        body = body[: body_rows + 1]
    elif not snapshot.has_table:
        body = ["", f"{theme.help_dim}No table open. Load a file or run :query ...{theme.reset}"]
    else:
        widths = column_widths(snapshot)
        columns = visible_columns(widths, snapshot.selected_column, width)
        body = [_header(snapshot, widths, columns, theme)]
        for row_idx in range(min(len(snapshot.rows), body_rows)):
            body.append(_row_line(snapshot, row_idx, widths, columns, theme))

    lines.extend(body)
    while len(lines) < height - 1:
        lines.append("")
    lines = lines[: height - 1]
    lines.append(_status_line(snapshot, theme))
    return [clip_ansi_line(line, width) for line in lines]


def render_frame(snapshot: AppSnapshot, width: int, height: int, theme: UITheme = DEFAULT_THEME) -> str:
    """ANSI text that redraws the whole screen from ``snapshot``."""
    out: list[str] = []
    for row, line in enumerate(frame_lines(snapshot, width, height, theme)):
        out.append(f"\033[{row + 1};1H{line}{theme.reset}\033[K")
    return "".join(out)


def write_frame(frame: str, fd: int) -> None:
    os.write(fd, frame.encode("utf-8", errors="replace"))


__all__ = [
    "column_widths",
    "visible_columns",
    "frame_lines",
    "render_frame",
    "write_frame",
]
