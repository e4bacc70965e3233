"""Input modes of the application state machine. Exactly one is active."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, Union

from ..commands import CommandResult


@dataclass(frozen=True)
class NormalMode:
    name: ClassVar[str] = "normal"


@dataclass(frozen=True)
class CommandMode:
    name: ClassVar[str] = "command"

    buffer: str = ""
    # position in command history while recalling with Up/Down
    history_index: int | None = None


@dataclass(frozen=True)
class SearchMode:
    name: ClassVar[str] = "search"

    buffer: str = ""
    forward: bool = True

    @property
    def prompt(self) -> str:
        return "/" if self.forward else "?"


@dataclass(frozen=True)
class ConfirmMode:
    name: ClassVar[str] = "confirm"

    prompt: str
    action: Callable[[], CommandResult | None]


Mode = Union[NormalMode, CommandMode, SearchMode, ConfirmMode]

__all__ = ["NormalMode", "CommandMode", "SearchMode", "ConfirmMode", "Mode"]
