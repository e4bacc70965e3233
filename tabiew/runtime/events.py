"""Terminal events consumed by the application state machine.

``EventSource`` turns raw key reads, terminal size changes and the passage
of time into one stream of ``KeyEvent``/``ResizeEvent``/``TickEvent`` values.
"""

from __future__ import annotations

import os
import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from ..config import DEFAULT_TICK_MS
from ..input import normalize_enter, read_key


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class TickEvent:
    now: float


@dataclass(frozen=True)
class ResizeEvent:
    columns: int
    lines: int


Event = Union[KeyEvent, TickEvent, ResizeEvent]


class EventSource:
    """Produce events from ``stdin_fd`` with a tick at least every ``tick_ms``."""

    def __init__(
        self,
        stdin_fd: int,
        tick_ms: int = DEFAULT_TICK_MS,
        read: Callable[..., str] = read_key,
        terminal_size: Callable[[], os.terminal_size] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stdin_fd = stdin_fd
        self.tick_seconds = max(1, tick_ms) / 1000.0
        self._read = read
        self._terminal_size = terminal_size or (lambda: shutil.get_terminal_size((80, 24)))
        self._clock = clock
        self._next_tick = clock()
        self._size: tuple[int, int] | None = None
        self._skip_next_lf = False

    def _check_resize(self) -> ResizeEvent | None:
        size = self._terminal_size()
        current = (size.columns, size.lines)
        if current != self._size:
            self._size = current
            return ResizeEvent(columns=current[0], lines=current[1])
        return None

    def next_event(self) -> Event:
        resized = self._check_resize()
        if resized is not None:
            return resized

        now = self._clock()
        if now >= self._next_tick:
            self._next_tick = now + self.tick_seconds
            return TickEvent(now)

        while True:
            timeout_ms = max(0, int((self._next_tick - self._clock()) * 1000))
            try:
                key = self._read(self.stdin_fd, timeout_ms=timeout_ms)
            except KeyboardInterrupt:
                key = "CTRL_C"
            if key == "":
                now = self._clock()
                self._next_tick = now + self.tick_seconds
                return TickEvent(now)
            normalized, self._skip_next_lf = normalize_enter(key, self._skip_next_lf)
            if normalized is not None:
                return KeyEvent(normalized)


__all__ = ["DEFAULT_TICK_MS", "KeyEvent", "TickEvent", "ResizeEvent", "Event", "EventSource"]
