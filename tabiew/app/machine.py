"""Application state machine.

``App`` owns the tabs, the current input mode and the status bar, and is the
only place that mutates them. Every key, tick and resize event goes through
``handle_event``; user-driven failures are caught here, logged, and turned
into a status message so they never unwind past the application.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from pathlib import Path

from ..commands import CommandResult, CommandTable, default_commands
from ..config import DEFAULT_STATUS_SECONDS
from ..errors import CommandError, TabiewError
from ..input.keybind import NORMAL, SEARCH, CommandInvocation, Keybind
from ..query import execute
from ..registry import TableRegistry
from ..runtime.events import Event, KeyEvent, ResizeEvent, TickEvent
from ..table import Table
from .modes import CommandMode, ConfirmMode, Mode, NormalMode, SearchMode
from .snapshot import CHROME_LINES, AppSnapshot, ColumnView, format_row, prompt_line
from .state import StatusBar, Tab, TabKind
from .worker import QueryOutcome, QueryWorker

logger = logging.getLogger(__name__)

RESULT_TABLE_NAME = "query"
HISTORY_LIMIT = 200


class App:
    def __init__(
        self,
        registry: TableRegistry,
        commands: CommandTable | None = None,
        keybind: Keybind | None = None,
        *,
        worker: QueryWorker | None = None,
        status_seconds: float = DEFAULT_STATUS_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        page_rows: int = 20,
    ) -> None:
        self.registry = registry
        self.commands = commands if commands is not None else default_commands()
        self.commands.freeze()
        self.keybind = keybind if keybind is not None else Keybind.default(self.commands)
        self.worker = worker
        self.status_seconds = status_seconds
        self.clock = clock
        self.page_rows = max(1, page_rows)

        self.tabs: list[Tab] = []
        self.active = 0
        self.mode: Mode = NormalMode()
        self.status = StatusBar()
        self.show_help = False
        self.search_case_sensitive = False
        self.last_search: tuple[str, bool] | None = None
        self.history: list[str] = []
        self.running = True
        self.dirty = True

    # tabs

    @property
    def current_tab(self) -> Tab | None:
        if not self.tabs:
            return None
        return self.tabs[self.active]

    def require_tab(self) -> Tab:
        tab = self.current_tab
        if tab is None:
            raise CommandError("no table is open")
        return tab

    def open_tab(self, name: str, table: Table, kind: TabKind = TabKind.TABLE, query: str | None = None) -> Tab:
        tab = Tab.open(name, table, kind, query)
        self.tabs.append(tab)
        self.active = len(self.tabs) - 1
        return tab

    def open_table(self, name: str, table: Table, origin: Path | None = None) -> Tab:
        """Register ``table`` and show it in a new tab under its effective name."""
        effective = self.registry.register(name, table, origin)
        return self.open_tab(effective, table)

    def show_listing(self, name: str, table: Table) -> Tab:
        for index, tab in enumerate(self.tabs):
            if tab.kind is TabKind.LISTING and tab.name == name:
                tab.replace_table(table)
                self.active = index
                return tab
        return self.open_tab(name, table, TabKind.LISTING)

    def close_tab(self, index: int | None = None) -> CommandResult | None:
        """Close a tab; closing the last one quits."""
        if not self.tabs:
            return CommandResult(quit=True)
        index = self.active if index is None else index
        if not 0 <= index < len(self.tabs):
            raise CommandError(f"no tab {index + 1}")
        closed = self.tabs.pop(index)
        logger.debug("closed tab %r", closed.name)
        if not self.tabs:
            return CommandResult(quit=True)
        if self.active > index or self.active >= len(self.tabs):
            self.active = max(0, self.active - 1)
        return None

    def switch_tab(self, delta: int) -> None:
        self.require_tab()
        self.active = (self.active + delta) % len(self.tabs)

    def select_tab(self, index: int) -> None:
        if not 0 <= index < len(self.tabs):
            raise CommandError(f"no tab {index + 1}")
        self.active = index

    # queries

    def submit_query(self, text: str, extra_tables: Mapping[str, Table] | None = None) -> CommandResult | None:
        tables = dict(self.registry.snapshot())
        if extra_tables:
            tables.update(extra_tables)
        if self.worker is None:
            return self._finish_query(text, execute(text, tables))
        self.worker.submit(text, tables)
        return CommandResult("running query... (Esc cancels)")

    def _finish_query(self, text: str, table: Table) -> CommandResult:
        name = self.registry.register(RESULT_TABLE_NAME, table)
        self.open_tab(name, table, TabKind.QUERY, text)
        return CommandResult(f"{name}: {table.height} rows, {table.width} columns")

    def _query_finished(self, outcome: QueryOutcome) -> CommandResult:
        if outcome.error is not None:
            raise outcome.error
        logger.info("query finished in %.3fs: %s", outcome.elapsed, outcome.query)
        return self._finish_query(outcome.query, outcome.table)

    @property
    def query_pending(self) -> bool:
        return self.worker is not None and self.worker.busy

    def cancel_query(self) -> bool:
        if self.worker is None:
            return False
        return self.worker.cancel()

    # search

    def run_search(self, pattern: str, forward: bool) -> CommandResult | None:
        self.last_search = (pattern, forward)
        view = self.require_tab().view
        if not view.find(pattern, forward, self.search_case_sensitive):
            return CommandResult(f"pattern not found: {pattern}")
        return None

    def repeat_search(self, reverse: bool = False) -> CommandResult | None:
        if self.last_search is None:
            raise CommandError("no previous search")
        pattern, forward = self.last_search
        view = self.require_tab().view
        if not view.find(pattern, forward != reverse, self.search_case_sensitive):
            return CommandResult(f"pattern not found: {pattern}")
        return None

    # status and lifecycle

    def set_status(self, message: str, error: bool = False) -> None:
        self.status.show(message, self.clock(), self.status_seconds, error)
        self.dirty = True

    def quit(self) -> None:
        self.running = False
        self.cancel_query()

    def resize(self, lines: int) -> None:
        self.page_rows = max(1, lines - CHROME_LINES)
        self._follow_selection()

    def _follow_selection(self) -> None:
        tab = self.current_tab
        if tab is not None:
            tab.view.ensure_visible(self.page_rows)

    # dispatch boundary

    def _apply(self, result: CommandResult | None) -> None:
        if result is None:
            return
        if result.message:
            self.set_status(result.message)
        if result.confirm is not None:
            self.mode = ConfirmMode(result.confirm.prompt, result.confirm.action)
        if result.quit:
            self.quit()

    def _guarded(self, action: Callable[[], CommandResult | None]) -> None:
        try:
            result = action()
        except TabiewError as exc:
            logger.info("action failed: %s", exc.message)
            self.mode = NormalMode()
            self.set_status(exc.message, error=True)
        except Exception as exc:
            logger.exception("unexpected error while handling input")
            self.mode = NormalMode()
            self.set_status(f"internal error: {exc}", error=True)
        else:
            self._apply(result)
        self._follow_selection()
        self.dirty = True

    def execute_line(self, line: str) -> None:
        """Run a typed command line through the dispatcher."""
        self._guarded(lambda: self.commands.execute_line(line, self))

    def _invoke(self, invocation: CommandInvocation) -> None:
        self._guarded(lambda: self.commands.dispatch(invocation.name, list(invocation.args), self))

    # events

    def handle_event(self, event: Event) -> bool:
        """Apply one event; returns whether the screen needs redrawing."""
        if not self.running:
            return False
        if isinstance(event, KeyEvent):
            self.handle_key(event.key)
        elif isinstance(event, TickEvent):
            self.tick(event.now)
        elif isinstance(event, ResizeEvent):
            self.resize(event.lines)
            self.dirty = True
        dirty = self.dirty
        self.dirty = False
        return dirty

    def tick(self, now: float | None = None) -> None:
        if not self.running:
            return
        now = self.clock() if now is None else now
        if self.worker is not None:
            outcome = self.worker.poll()
            if outcome is not None:
                self._guarded(lambda: self._query_finished(outcome))
        if self.status.expire(now):
            self.dirty = True

    def handle_key(self, key: str) -> None:
        if not self.running:
            return
        mode = self.mode
        if isinstance(mode, CommandMode):
            self._command_key(mode, key)
        elif isinstance(mode, SearchMode):
            self._search_key(mode, key)
        elif isinstance(mode, ConfirmMode):
            self._confirm_key(mode, key)
        else:
            self._normal_key(key)
        self.dirty = True

    def _normal_key(self, key: str) -> None:
        if key == ":":
            self.mode = CommandMode()
            return
        if key in {"/", "?"}:
            self.mode = SearchMode(forward=key == "/")
            return
        if key == "CTRL_C":
            self.mode = ConfirmMode("Quit tabiew? (y/n)", lambda: CommandResult(quit=True))
            return
        if key == "ESC":
            if self.cancel_query():
                self.set_status("cancelling query...")
            elif self.show_help:
                self.show_help = False
            return
        invocation = self.keybind.resolve(key, NORMAL)
        if invocation is not None:
            self._invoke(invocation)

    def _command_key(self, mode: CommandMode, key: str) -> None:
        if key == "ENTER":
            line = mode.buffer
            self.mode = NormalMode()
            if line.strip():
                if not self.history or self.history[-1] != line:
                    self.history.append(line)
                    del self.history[:-HISTORY_LIMIT]
                self.execute_line(line)
            return
        if key in {"ESC", "CTRL_C"}:
            self.mode = NormalMode()
            return
        if key == "BACKSPACE":
            self.mode = CommandMode(mode.buffer[:-1]) if mode.buffer else NormalMode()
            return
        if key == "CTRL_U":
            self.mode = CommandMode()
            return
        if key == "CTRL_W":
            trimmed = mode.buffer.rstrip()
            cut = trimmed.rfind(" ") + 1
            self.mode = CommandMode(trimmed[:cut])
            return
        if key in {"UP", "DOWN"}:
            self.mode = self._recall(mode, key == "UP")
            return
        if len(key) == 1 and key.isprintable():
            self.mode = CommandMode(mode.buffer + key)

    def _recall(self, mode: CommandMode, older: bool) -> CommandMode:
        if not self.history:
            return mode
        index = mode.history_index
        if older:
            index = len(self.history) - 1 if index is None else max(0, index - 1)
        else:
            if index is None:
                return mode
            index += 1
            if index >= len(self.history):
                return CommandMode()
        return CommandMode(self.history[index], index)

    def _search_key(self, mode: SearchMode, key: str) -> None:
        if key == "ENTER":
            self.mode = NormalMode()
            if mode.buffer:
                pattern, forward = mode.buffer, mode.forward
                self._guarded(lambda: self.run_search(pattern, forward))
            return
        if key in {"ESC", "CTRL_C"}:
            self.mode = NormalMode()
            return
        if key == "BACKSPACE":
            self.mode = SearchMode(mode.buffer[:-1], mode.forward) if mode.buffer else NormalMode()
            return
        invocation = self.keybind.resolve(key, SEARCH)
        if invocation is not None:
            self._invoke(invocation)
            return
        if len(key) == 1 and key.isprintable():
            self.mode = SearchMode(mode.buffer + key, mode.forward)

    def _confirm_key(self, mode: ConfirmMode, key: str) -> None:
        self.mode = NormalMode()
        if key in {"y", "Y", "ENTER"}:
            self._guarded(mode.action)

    # rendering

    def snapshot(self) -> AppSnapshot:
        common = dict(
            tab_names=tuple(tab.name for tab in self.tabs),
            active_tab=self.active,
            mode=self.mode.name,
            prompt=prompt_line(self.mode),
            status=self.status.message,
            status_error=self.status.error,
            show_help=self.show_help,
            query_pending=self.query_pending,
            case_sensitive=self.search_case_sensitive,
            running=self.running,
            bindings=tuple((key, invocation.line) for key, invocation in self.keybind.bindings(NORMAL).items()),
        )
        tab = self.current_tab
        if tab is None:
            return AppSnapshot(**common)
        view = tab.view
        page = view.page(view.scroll, self.page_rows)
        sort = None
        if view.sort is not None:
            sort = f"{view.sort.column} {'asc' if view.sort.ascending else 'desc'}"
        return AppSnapshot(
            **common,
            table_name=tab.name,
            tab_kind=tab.kind.value,
            query=tab.query,
            columns=tuple(
                ColumnView(column.name, column.kind, view.column_widths.get(column.name))
                for column in tab.table.columns
            ),
            rows=tuple(
                format_row(view.scroll + offset, index, row) for offset, (index, row) in enumerate(page)
            ),
            selected_row=view.selected,
            selected_column=view.selected_column,
            scroll=view.scroll,
            visible_count=view.visible_count,
            total_rows=tab.table.height,
            sort=sort,
            filter=view.filter.text if view.filter is not None else None,
        )


__all__ = ["App", "DEFAULT_STATUS_SECONDS", "RESULT_TABLE_NAME"]
