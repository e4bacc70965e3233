"""Key decoding and key-to-command bindings."""

from .keybind import DEFAULT_BINDINGS, CommandInvocation, Keybind, normalize_key_name
from .reader import normalize_enter, read_key

__all__ = [
    "DEFAULT_BINDINGS",
    "CommandInvocation",
    "Keybind",
    "normalize_key_name",
    "normalize_enter",
    "read_key",
]
