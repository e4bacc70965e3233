"""Key-to-command map for Normal and Search modes.

Bindings map a key token (as produced by ``read_key``) to a command line,
which is parsed once against the command table. ``:``, ``/``, ``?``, ``Esc``
and ``Ctrl+C`` are handled by the state machine and cannot be rebound.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from ..commands import CommandTable
from ..errors import CommandError, ConfigError

NORMAL = "normal"
SEARCH = "search"
BINDABLE_MODES = (NORMAL, SEARCH)

RESERVED_KEYS = frozenset({":", "/", "?", "ESC", "CTRL_C"})

NAMED_KEYS = frozenset(
    {
        "UP",
        "DOWN",
        "LEFT",
        "RIGHT",
        "HOME",
        "END",
        "PAGE_UP",
        "PAGE_DOWN",
        "DELETE",
        "TAB",
        "SHIFT_TAB",
        "ENTER",
        "BACKSPACE",
        "MOUSE_WHEEL_UP",
        "MOUSE_WHEEL_DOWN",
    }
    | {f"CTRL_{letter}" for letter in "ABDEFGHKLNOPRTUVWXYZ"}
)

_KEY_ALIASES = {
    "PGUP": "PAGE_UP",
    "PGDN": "PAGE_DOWN",
    "PAGEUP": "PAGE_UP",
    "PAGEDOWN": "PAGE_DOWN",
    "ESCAPE": "ESC",
    "RETURN": "ENTER",
    "DEL": "DELETE",
    "WHEELUP": "MOUSE_WHEEL_UP",
    "WHEELDOWN": "MOUSE_WHEEL_DOWN",
}

DEFAULT_BINDINGS: dict[str, dict[str, str]] = {
    NORMAL: {
        "j": "godown",
        "DOWN": "godown",
        "k": "goup",
        "UP": "goup",
        "h": "left",
        "LEFT": "left",
        "l": "right",
        "RIGHT": "right",
        "g": "top",
        "HOME": "top",
        "G": "bottom",
        "END": "bottom",
        "PAGE_DOWN": "pagedown",
        "CTRL_F": "pagedown",
        "PAGE_UP": "pageup",
        "CTRL_B": "pageup",
        "CTRL_D": "halfdown",
        "CTRL_U": "halfup",
        "n": "searchnext",
        "N": "searchprev",
        "]": "tabnext",
        "TAB": "tabnext",
        "[": "tabprev",
        "r": "reset",
        "x": "close",
        "c": "case",
        "H": "help",
        "q": "quit",
        "MOUSE_WHEEL_UP": "goup 3",
        "MOUSE_WHEEL_DOWN": "godown 3",
    },
    SEARCH: {
        "CTRL_T": "case",
    },
}


@dataclass(frozen=True)
class CommandInvocation:
    name: str
    args: tuple[str, ...]
    line: str


def normalize_key_name(name: str) -> str:
    """Turn ``"ctrl+f"``, ``"Ctrl-F"`` or ``"PgDn"`` into a ``read_key`` token."""
    if len(name) == 1:
        return name
    token = name.strip().upper().replace("+", "_").replace("-", "_").replace(" ", "_")
    token = _KEY_ALIASES.get(token.replace("_", ""), _KEY_ALIASES.get(token, token))
    if token not in NAMED_KEYS and token not in RESERVED_KEYS:
        raise ConfigError(f"unknown key {name!r}")
    return token


class Keybind:
    def __init__(self, commands: CommandTable) -> None:
        self.commands = commands
        self._bindings: dict[str, dict[str, CommandInvocation]] = {mode: {} for mode in BINDABLE_MODES}

    @classmethod
    def default(cls, commands: CommandTable) -> Keybind:
        keybind = cls(commands)
        keybind.update(DEFAULT_BINDINGS)
        return keybind

    @classmethod
    def from_config(cls, commands: CommandTable, overrides: Mapping[str, object] | None) -> Keybind:
        """Defaults with ``overrides`` (mode -> key -> command line) applied.

        An empty command line removes a default binding.
        """
        keybind = cls.default(commands)
        if overrides:
            if not isinstance(overrides, Mapping):
                raise ConfigError("keybindings must be an object of mode -> key -> command")
            keybind.update(overrides)
        return keybind

    def bind(self, mode: str, key: str, line: str) -> None:
        if mode not in self._bindings:
            raise ConfigError(f"unknown keybinding mode {mode!r} (expected one of {', '.join(BINDABLE_MODES)})")
        token = normalize_key_name(key)
        if token in RESERVED_KEYS:
            raise ConfigError(f"key {key!r} is reserved")
        if not isinstance(line, str):
            raise ConfigError(f"binding for {key!r} must be a command string")
        if not line.strip():
            self._bindings[mode].pop(token, None)
            return
        try:
            name, args = self.commands.parse(line)
            self.commands.resolve(name)
        except CommandError as exc:
            raise ConfigError(f"binding {key!r}: {exc.message}") from None
        self._bindings[mode][token] = CommandInvocation(name, tuple(args), line.strip())

    def update(self, bindings: Mapping[str, object]) -> None:
        for mode, keys in bindings.items():
            if not isinstance(keys, Mapping):
                raise ConfigError(f"keybindings for mode {mode!r} must be an object")
            for key, line in keys.items():
                self.bind(mode, key, line)

    def resolve(self, key: str, mode: str) -> CommandInvocation | None:
        return self._bindings.get(mode, {}).get(key)

    def bindings(self, mode: str) -> dict[str, CommandInvocation]:
        return dict(self._bindings.get(mode, {}))


__all__ = [
    "NORMAL",
    "SEARCH",
    "DEFAULT_BINDINGS",
    "CommandInvocation",
    "Keybind",
    "normalize_key_name",
]
