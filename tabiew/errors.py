"""Error taxonomy shared by the loader, registry, query engine and dispatcher.

Every error carries a human readable ``message`` so the application loop can
turn it into a status-bar line without knowing the concrete type.
"""

from __future__ import annotations

from pathlib import Path


class TabiewError(Exception):
    """Base class for all recoverable and startup errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DecodeError(TabiewError):
    """A source file could not be decoded into a table."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class ConfigError(TabiewError):
    """Startup-time configuration problem (fatal before the loop starts)."""


class TableShapeError(TabiewError):
    """A table violates the equal-length or unique-name invariants."""


class InvalidTableName(TabiewError):
    """Registry names must be non-empty."""


class QueryError(TabiewError):
    """Base class for parse, resolution, type and cancellation errors."""


class ParseError(QueryError):
    def __init__(self, message: str, position: int) -> None:
        self.position = position
        super().__init__(f"{message} (at position {position})")


class UnknownTable(QueryError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown table {name!r}")


class UnknownColumn(QueryError):
    def __init__(self, table: str, name: str) -> None:
        self.table = table
        self.name = name
        super().__init__(f"unknown column {name!r} in {table!r}")


class TypeMismatch(QueryError):
    def __init__(self, operation: str, left_type: str, right_type: str | None = None) -> None:
        self.operation = operation
        self.left_type = left_type
        self.right_type = right_type
        if right_type is None:
            message = f"cannot apply {operation} to {left_type}"
        else:
            message = f"cannot apply {operation} to {left_type} and {right_type}"
        super().__init__(message)


class QueryCancelled(QueryError):
    def __init__(self) -> None:
        super().__init__("query cancelled")


class CommandError(TabiewError):
    """Base class for dispatch-time command errors."""


class UnknownCommand(CommandError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown command: {name}")


class ArityMismatch(CommandError):
    def __init__(self, name: str, expected: str, got: int) -> None:
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(f"{name}: expected {expected} argument(s), got {got}")


__all__ = [
    "TabiewError",
    "DecodeError",
    "ConfigError",
    "TableShapeError",
    "InvalidTableName",
    "QueryError",
    "ParseError",
    "UnknownTable",
    "UnknownColumn",
    "TypeMismatch",
    "QueryCancelled",
    "CommandError",
    "UnknownCommand",
    "ArityMismatch",
]
