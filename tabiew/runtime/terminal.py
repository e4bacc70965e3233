"""Raw terminal session for the table viewer.

Puts the tty in raw mode on the alternate screen, with SGR mouse reporting
for wheel scrolling, and always restores the saved tty attributes.
"""

from __future__ import annotations

import contextlib
import os
import termios
import tty
from collections.abc import Iterator

ALT_SCREEN_ON = b"\x1b[?1049h"
ALT_SCREEN_OFF = b"\x1b[?1049l"
CURSOR_HIDE = b"\x1b[?25l"
CURSOR_SHOW = b"\x1b[?25h"
MOUSE_ON = b"\x1b[?1000h\x1b[?1006h"
MOUSE_OFF = b"\x1b[?1000l\x1b[?1006l"
CLEAR_SCREEN = b"\x1b[2J\x1b[H"


class TerminalController:
    """Enter and leave the full-screen session on one tty."""

    def __init__(self, stdin_fd: int, stdout_fd: int, *, mouse: bool = True) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self.mouse = mouse
        self._saved_attrs = termios.tcgetattr(stdin_fd)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def _write(self, *chunks: bytes) -> None:
        os.write(self.stdout_fd, b"".join(chunks))

    def enter(self) -> None:
        if self._active:
            return
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        self._active = True
        self._write(ALT_SCREEN_ON, CURSOR_HIDE, MOUSE_ON if self.mouse else b"", CLEAR_SCREEN)

    def leave(self) -> None:
        if not self._active:
            return
        self._active = False
        try:
            self._write(MOUSE_OFF if self.mouse else b"", CURSOR_SHOW, ALT_SCREEN_OFF)
        finally:
            termios.tcsetattr(self.stdin_fd, termios.TCSADRAIN, self._saved_attrs)

    @contextlib.contextmanager
    def raw_mode(self) -> Iterator[TerminalController]:
        """Hold the session for the ``with`` body, restoring the tty on any exit."""
        try:
            self.enter()
            yield self
        finally:
            self.leave()


__all__ = ["TerminalController"]
