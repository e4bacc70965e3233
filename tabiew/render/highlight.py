"""Syntax coloring for queries typed on the command line."""

from __future__ import annotations

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers.sql import SqlLexer

from ..commands import BUILTIN_COMMANDS

RAW_COMMAND_NAMES = frozenset(name for spec in BUILTIN_COMMANDS if spec.raw for name in spec.names)

_LEXER = SqlLexer(stripnl=False)
_FORMATTER = TerminalFormatter()


def highlight_sql(text: str) -> str:
    """Return ``text`` with ANSI colors; the trailing newline Pygments adds is dropped."""
    if not text:
        return text
    rendered = highlight(text, _LEXER, _FORMATTER)
    if rendered.endswith("\n") and not text.endswith("\n"):
        rendered = rendered[:-1]
    return rendered


def highlight_command_line(buffer: str) -> str:
    """Color the query part of ``query``/``filter``-style command lines."""
    stripped = buffer.lstrip()
    name, _, rest = stripped.partition(" ")
    if name not in RAW_COMMAND_NAMES or not rest:
        return buffer
    lead = buffer[: len(buffer) - len(stripped)]
    return f"{lead}{name} {highlight_sql(rest)}"


__all__ = ["RAW_COMMAND_NAMES", "highlight_sql", "highlight_command_line"]
