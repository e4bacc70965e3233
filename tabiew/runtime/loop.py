"""Main interactive event loop for the terminal UI.

Pulls events, feeds them to the application one at a time, and redraws
only when the application reports a change. Feature logic lives in ``App``.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..render import render_frame, write_frame
from ..ui_theme import DEFAULT_THEME, UITheme
from .events import EventSource, ResizeEvent

if TYPE_CHECKING:
    from ..app import App
    from .terminal import TerminalController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopOptions:
    """Rendering inputs that stay fixed for one session."""

    stdout_fd: int
    theme: UITheme = DEFAULT_THEME
    terminal_size: Callable[[], tuple[int, int]] | None = None


def _default_size() -> tuple[int, int]:
    term = shutil.get_terminal_size((80, 24))
    return term.columns, term.lines


def run_main_loop(
    app: App,
    terminal: TerminalController,
    events: EventSource,
    options: RuntimeLoopOptions,
) -> None:
    """Run the interactive loop until the application stops running."""
    size = options.terminal_size or _default_size
    with terminal.raw_mode():
        columns, lines = size()
        app.resize(lines)
        write_frame(render_frame(app.snapshot(), columns, lines, options.theme), options.stdout_fd)
        while app.running:
            event = events.next_event()
            if isinstance(event, ResizeEvent):
                columns, lines = event.columns, event.lines
            if not app.handle_event(event) or not app.running:
                continue
            write_frame(render_frame(app.snapshot(), columns, lines, options.theme), options.stdout_fd)
    logger.debug("main loop finished")


__all__ = ["RuntimeLoopOptions", "run_main_loop"]
