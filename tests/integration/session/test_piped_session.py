"""End-to-end sessions: raw key bytes through a pipe into the main loop.

Only the terminal mode switch is faked; key decoding, event production,
the application and frame rendering all run for real.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace

from tabiew.app import App, TabKind
from tabiew.registry import TableRegistry
from tabiew.runtime.events import EventSource
from tabiew.runtime.loop import RuntimeLoopOptions, run_main_loop
from tabiew.table import Table
from tabiew.ui_theme import PLAIN_THEME


class FakeTerminal:
    @contextlib.contextmanager
    def raw_mode(self):
        yield


def _people() -> Table:
    return Table.from_rows(["name", "age"], [("Al", 30), ("Bo", 25), ("Cy", 22), ("Di", 41)])


class PipedSessionTests(unittest.TestCase):
    def _run(self, keys: bytes) -> tuple[App, str]:
        app = App(TableRegistry())
        app.open_table("people", _people())
        read_fd, write_fd = os.pipe()
        self.addCleanup(os.close, read_fd)
        os.write(write_fd, keys)
        os.close(write_fd)

        with tempfile.TemporaryDirectory() as tmp:
            out_path = Path(tmp) / "screen.out"
            out_fd = os.open(out_path, os.O_WRONLY | os.O_CREAT, 0o600)
            try:
                events = EventSource(
                    read_fd,
                    tick_ms=50,
                    terminal_size=lambda: SimpleNamespace(columns=60, lines=10),
                )
                options = RuntimeLoopOptions(
                    stdout_fd=out_fd,
                    theme=PLAIN_THEME,
                    terminal_size=lambda: (60, 10),
                )
                run_main_loop(app, FakeTerminal(), events, options)
            finally:
                os.close(out_fd)
            screen = out_path.read_text(encoding="utf-8")
        return app, screen

    def test_command_then_motion_then_quit(self) -> None:
        app, screen = self._run(b":goto 3\rjq")
        self.assertFalse(app.running)
        self.assertEqual(app.current_tab.view.selected, 3)
        self.assertIn(" 1:people ", screen)
        self.assertIn(":goto 3", screen)

    def test_query_opens_result_tab(self) -> None:
        app, screen = self._run(b":Q select name from people where age > 26\rq")
        self.assertEqual([tab.name for tab in app.tabs], ["people", "query"])
        self.assertIs(app.tabs[1].kind, TabKind.QUERY)
        self.assertIn("query: 2 rows, 1 columns", screen)

    def test_mouse_wheel_scrolls_rows(self) -> None:
        app, _screen = self._run(b"\x1b[<65;10;5Mq")
        self.assertEqual(app.current_tab.view.selected, 3)

    def test_ctrl_c_confirmation(self) -> None:
        app, screen = self._run(b"\x03nj\x03y")
        self.assertFalse(app.running)
        self.assertEqual(app.current_tab.view.selected, 1)
        self.assertIn("Quit tabiew? (y/n)", screen)


if __name__ == "__main__":
    unittest.main()
