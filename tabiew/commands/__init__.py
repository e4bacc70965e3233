"""Typed command dispatch."""

from .builtin import BUILTIN_COMMANDS, default_commands
from .dispatcher import (
    CommandKind,
    CommandResult,
    CommandSpec,
    CommandTable,
    Confirmation,
    parse_command_line,
)

__all__ = [
    "BUILTIN_COMMANDS",
    "default_commands",
    "CommandKind",
    "CommandResult",
    "CommandSpec",
    "CommandTable",
    "Confirmation",
    "parse_command_line",
]
