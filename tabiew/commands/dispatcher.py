"""Command table: registration, name resolution, arity checks and dispatch."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..errors import ArityMismatch, CommandError, ConfigError, UnknownCommand

if TYPE_CHECKING:
    from ..app.machine import App

logger = logging.getLogger(__name__)


class CommandKind(str, Enum):
    """Closed set of operations the dispatcher can run."""

    QUERY = "query"
    SELECT = "select"
    FILTER = "filter"
    UNFILTER = "unfilter"
    ORDER = "order"
    UNORDER = "unorder"
    RESET = "reset"
    CLOSE = "close"
    CLOSE_FORCE = "close!"
    TAB_NEXT = "tabnext"
    TAB_PREV = "tabprev"
    TAB = "tab"
    RENAME = "rename"
    DROP = "drop"
    TABLES = "tables"
    GOTO = "goto"
    COLUMN = "col"
    GO_UP = "goup"
    GO_DOWN = "godown"
    LEFT = "left"
    RIGHT = "right"
    PAGE_UP = "pageup"
    PAGE_DOWN = "pagedown"
    HALF_UP = "halfup"
    HALF_DOWN = "halfdown"
    TOP = "top"
    BOTTOM = "bottom"
    SEARCH_NEXT = "searchnext"
    SEARCH_PREV = "searchprev"
    CASE = "case"
    WIDTH = "width"
    HELP = "help"
    QUIT = "quit"


@dataclass(frozen=True)
class Confirmation:
    """A pending action the user must accept with ``y`` or Enter."""

    prompt: str
    action: Callable[[], CommandResult | None]


@dataclass(frozen=True)
class CommandResult:
    message: str | None = None
    confirm: Confirmation | None = None
    quit: bool = False


CommandHandler = Callable[["App", list[str]], "CommandResult | None"]


@dataclass(frozen=True)
class CommandSpec:
    kind: CommandKind
    name: str
    handler: CommandHandler
    aliases: tuple[str, ...] = ()
    min_args: int = 0
    max_args: int | None = 0
    raw: bool = False
    usage: str = ""
    summary: str = ""
    names: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", (self.name, *self.aliases))

    @property
    def expected_args(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.min_args == self.max_args:
            return str(self.min_args)
        return f"{self.min_args}-{self.max_args}"

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args


class CommandTable:
    """Name/alias lookup over registered ``CommandSpec`` entries.

    Names are case-sensitive (``Q`` runs a query, ``q`` quits). The table is
    frozen before the event loop starts; later registration is an error.
    """

    def __init__(self) -> None:
        self._specs: list[CommandSpec] = []
        self._by_name: dict[str, CommandSpec] = {}
        self._frozen = False

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self):
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, spec: CommandSpec) -> CommandTable:
        if self._frozen:
            raise ConfigError(f"cannot register {spec.name!r}: command table is frozen")
        for name in spec.names:
            if not name or any(ch.isspace() for ch in name):
                raise ConfigError(f"invalid command name {name!r}")
            if name in self._by_name:
                raise ConfigError(f"duplicate command name {name!r}")
        if len(set(spec.names)) != len(spec.names):
            raise ConfigError(f"duplicate alias in {spec.name!r}")
        self._specs.append(spec)
        for name in spec.names:
            self._by_name[name] = spec
        return self

    def freeze(self) -> CommandTable:
        self._frozen = True
        return self

    def resolve(self, name: str) -> CommandSpec:
        spec = self._by_name.get(name)
        if spec is None:
            raise UnknownCommand(name)
        return spec

    def parse(self, text: str) -> tuple[str, list[str]]:
        """Split a typed command line into ``(name, args)``.

        The leading ``:`` is optional. Raw commands get the rest of the line
        as a single argument; others get ``shlex``-split arguments.
        """
        line = text.strip()
        if line.startswith(":"):
            line = line[1:].lstrip()
        if not line:
            return "", []
        parts = line.split(None, 1)
        name = parts[0]
        rest = parts[1].strip() if len(parts) > 1 else ""
        spec = self._by_name.get(name)
        if spec is not None and spec.raw:
            return name, [rest] if rest else []
        try:
            return name, shlex.split(rest)
        except ValueError as exc:
            raise CommandError(f"{name}: {exc}") from None

    def dispatch(self, name: str, args: list[str], ctx: App) -> CommandResult:
        spec = self.resolve(name)
        if not spec.accepts(len(args)):
            raise ArityMismatch(spec.name, spec.expected_args, len(args))
        logger.debug("dispatch %s %r", spec.name, args)
        result = spec.handler(ctx, list(args))
        return result if result is not None else CommandResult()

    def execute_line(self, text: str, ctx: App) -> CommandResult:
        name, args = self.parse(text)
        if not name:
            return CommandResult()
        return self.dispatch(name, args, ctx)


def parse_command_line(text: str, table: CommandTable) -> tuple[str, list[str]]:
    return table.parse(text)


__all__ = [
    "CommandKind",
    "Confirmation",
    "CommandResult",
    "CommandHandler",
    "CommandSpec",
    "CommandTable",
    "parse_command_line",
]
