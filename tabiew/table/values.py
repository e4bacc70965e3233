"""Scalar value helpers: kind detection, text parsing and display formatting."""

from __future__ import annotations

import datetime as dt
import math
import re
from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from .types import Kind

T = TypeVar("T")

_TRUE_WORDS = frozenset({"true"})
_FALSE_WORDS = frozenset({"false"})
_INTEGER_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def kind_of(value: object) -> Kind:
    """Return the scalar kind of a Python value (``bool`` before ``int``)."""
    if value is None:
        return Kind.NULL
    if isinstance(value, bool):
        return Kind.BOOLEAN
    if isinstance(value, int):
        return Kind.INTEGER
    if isinstance(value, float):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, (dt.date, dt.datetime)):
        return Kind.TEMPORAL
    raise TypeError(f"unsupported scalar value: {value!r}")


def common_kind(values: Iterable[object]) -> Kind:
    """Return the narrowest kind that holds every non-null value.

    Integer and float widen to float; any other mix widens to string.
    """
    result = Kind.NULL
    for value in values:
        kind = kind_of(value)
        if kind is Kind.NULL or kind is result:
            continue
        if result is Kind.NULL:
            result = kind
        elif result.is_numeric and kind.is_numeric:
            result = Kind.FLOAT
        else:
            return Kind.STRING
    return result


def parse_temporal(text: str) -> dt.date | dt.datetime | None:
    """Parse an ISO-8601 date or datetime, returning ``None`` when invalid."""
    candidate = text.strip()
    if len(candidate) < 8 or not candidate[:1].isdigit():
        return None
    try:
        if len(candidate) == 10:
            return dt.date.fromisoformat(candidate)
        return dt.datetime.fromisoformat(candidate)
    except ValueError:
        return None


def parse_as(text: str, kind: Kind) -> object:
    """Parse ``text`` as ``kind``; raise ``ValueError`` when it does not fit."""
    if text == "":
        return None
    if kind is Kind.STRING:
        return text
    stripped = text.strip()
    if kind is Kind.BOOLEAN:
        lowered = stripped.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ValueError(f"not a boolean: {text!r}")
    if kind is Kind.INTEGER:
        if not _INTEGER_RE.fullmatch(stripped):
            raise ValueError(f"not an integer: {text!r}")
        return int(stripped)
    if kind is Kind.FLOAT:
        if not _FLOAT_RE.fullmatch(stripped):
            raise ValueError(f"not a float: {text!r}")
        return float(stripped)
    if kind is Kind.TEMPORAL:
        parsed = parse_temporal(stripped)
        if parsed is None:
            raise ValueError(f"not a date/datetime: {text!r}")
        return parsed
    if kind is Kind.NULL:
        raise ValueError(f"expected empty value, got {text!r}")
    raise ValueError(f"unsupported kind {kind}")


_INFERENCE_ORDER = (Kind.BOOLEAN, Kind.INTEGER, Kind.FLOAT, Kind.TEMPORAL)


def infer_text_kind(samples: Iterable[str], temporal: bool = True) -> Kind:
    """Pick the first kind (boolean, integer, float, temporal) all samples parse as.

    With ``temporal=False`` date-like text stays a string.
    """
    non_empty = [sample for sample in samples if sample != ""]
    if not non_empty:
        return Kind.STRING
    for kind in _INFERENCE_ORDER:
        if kind is Kind.TEMPORAL and not temporal:
            continue
        try:
            for sample in non_empty:
                parse_as(sample, kind)
        except ValueError:
            continue
        return kind
    return Kind.STRING


def format_value(value: object) -> str:
    """Render one cell as display text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if value.is_integer() and abs(value) < 1e16:
            return f"{value:.1f}"
        return repr(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat(sep=" ") if isinstance(value, dt.datetime) else value.isoformat()
    return str(value)


def sort_key(value: object) -> object:
    """Ordering key for a non-null cell; dates compare as midnight datetimes."""
    if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
        return dt.datetime(value.year, value.month, value.day)
    return value


def order_nulls_last(items: Sequence[T], keys: Sequence[tuple[Callable[[T], object], bool]]) -> list[T]:
    """Stable multi-key sort; ``keys`` holds ``(key, ascending)`` pairs, major first.

    Nulls sort after every value in both directions.
    """
    ordered = list(items)
    for key, ascending in reversed(keys):
        present = [item for item in ordered if key(item) is not None]
        missing = [item for item in ordered if key(item) is None]
        present.sort(key=lambda item: sort_key(key(item)), reverse=not ascending)
        ordered = present + missing
    return ordered


__all__ = [
    "kind_of",
    "common_kind",
    "parse_temporal",
    "parse_as",
    "infer_text_kind",
    "format_value",
    "sort_key",
    "order_nulls_last",
]
