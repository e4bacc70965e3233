"""File decoding into ``Table`` objects.

Both formats are read with ``pandas``: delimited text through ``read_csv``
with configurable header, separator and quoting, Parquet through
``read_parquet``. Delimited cells arrive as strings and their column kinds
are inferred according to ``InferSchema``.
"""

from __future__ import annotations

import csv
import datetime as dt
import logging
import math
import shutil
import sys
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO

import pandas as pd

from ..errors import DecodeError, TableShapeError
from .types import Column, Kind, Table
from .values import common_kind, infer_text_kind, parse_as

logger = logging.getLogger(__name__)

SAMPLE_ROWS = 128


class InferSchema(str, Enum):
    """How column kinds are inferred from delimited text.

    ``NO`` keeps every column as strings. ``FAST`` infers from the first
    ``SAMPLE_ROWS`` rows. ``FULL`` scans every row but leaves dates as text.
    ``SAFE`` scans every row and also recognizes ISO dates and datetimes.
    """

    NO = "no"
    FAST = "fast"
    FULL = "full"
    SAFE = "safe"


class FileFormat(str, Enum):
    DSV = "dsv"
    PARQUET = "parquet"


@dataclass(frozen=True)
class LoadOptions:
    has_header: bool = True
    separator: str = ","
    quote_char: str | None = '"'
    infer_schema: InferSchema = InferSchema.SAFE
    ignore_errors: bool = False
    format: FileFormat = FileFormat.DSV


def table_name_for(path: Path) -> str:
    """Registry name for a loaded file: its stem."""
    return path.stem or "table"


def load(path: Path, options: LoadOptions | None = None) -> Table:
    """Decode ``path`` into a table, raising ``DecodeError`` on any failure."""
    opts = options or LoadOptions()
    if opts.format is FileFormat.PARQUET:
        return _load_parquet(path)
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as handle:
            return read_dsv(handle, opts, source=path)
    except OSError as exc:
        raise DecodeError(path, exc.strerror or str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise DecodeError(path, f"not valid UTF-8 text ({exc.reason})") from exc


def load_stdin(stream: IO[str] | None = None) -> Path:
    """Spool standard input into a temporary file and return its path.

    The file is kept on disk so the registry can record it as the origin.
    """
    source = stream if stream is not None else sys.stdin
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        prefix="tabiew-stdin-",
        suffix=".csv",
        delete=False,
    ) as spool:
        shutil.copyfileobj(source, spool)
    logger.debug("spooled stdin to %s", spool.name)
    return Path(spool.name)


def _normalize_header(raw: Sequence[str], width: int) -> list[str]:
    names: list[str] = []
    seen: dict[str, int] = {}
    for idx in range(width):
        base = raw[idx].strip() if idx < len(raw) and raw[idx].strip() else f"column_{idx + 1}"
        name = base
        if name in seen:
            seen[base] += 1
            name = f"{base}_{seen[base]}"
            while name in seen:
                seen[base] += 1
                name = f"{base}_{seen[base]}"
        seen.setdefault(name, 1)
        names.append(name)
    return names


def read_dsv(handle: IO[str], options: LoadOptions, source: Path | str = "<stream>") -> Table:
    """Read delimited text from an open handle.

    ``pandas.read_csv`` splits the text into string cells; the header row is
    taken from the first record so column naming stays under our control.
    Rows with more fields than the first are an error unless
    ``ignore_errors`` is set, in which case they are skipped.
    """
    if len(options.separator) != 1:
        raise DecodeError(source, f"separator must be one character, got {options.separator!r}")
    try:
        frame = pd.read_csv(
            handle,
            sep=options.separator,
            header=None,
            dtype=str,
            keep_default_na=False,
            quotechar=options.quote_char or '"',
            quoting=csv.QUOTE_MINIMAL if options.quote_char else csv.QUOTE_NONE,
            skip_blank_lines=True,
            on_bad_lines="skip" if options.ignore_errors else "error",
            engine="c",
        )
    except pd.errors.EmptyDataError:
        return Table(())
    except pd.errors.ParserError as exc:
        raise DecodeError(source, _parser_message(exc)) from exc

    records = frame.fillna("").to_numpy(dtype=object).tolist()
    header: list[str] = records.pop(0) if options.has_header and records else []
    names = _normalize_header(header, frame.shape[1])

    columns = [
        _build_column(name, [record[idx] for record in records], options, source)
        for idx, name in enumerate(names)
    ]
    try:
        table = Table(tuple(columns))
    except TableShapeError as exc:
        raise DecodeError(source, exc.message) from exc
    logger.info("loaded %s: %d rows x %d columns", source, table.height, table.width)
    return table


def _parser_message(exc: Exception) -> str:
    # pandas prefixes tokenizer failures with "Error tokenizing data. C error: "
    text = str(exc).strip()
    _, _, detail = text.rpartition("C error: ")
    return detail or text


def _build_column(name: str, texts: list[str], options: LoadOptions, source: Path | str) -> Column:
    mode = options.infer_schema
    if mode is InferSchema.NO:
        return Column(name, Kind.STRING, tuple(text if text != "" else None for text in texts))
    samples = texts[:SAMPLE_ROWS] if mode is InferSchema.FAST else texts
    kind = infer_text_kind(samples, temporal=mode is not InferSchema.FULL)
    values: list[object] = []
    for row_idx, text in enumerate(texts):
        try:
            values.append(parse_as(text, kind))
        except ValueError as exc:
            if options.ignore_errors:
                values.append(None)
                continue
            raise DecodeError(
                source,
                f"column {name!r} row {row_idx + 1}: {exc} (inferred {kind})",
            ) from exc
    return Column(name, kind, tuple(values))


def _load_parquet(path: Path) -> Table:
    try:
        frame = pd.read_parquet(path)
    except (OSError, ValueError, ImportError) as exc:
        raise DecodeError(path, str(exc)) from exc
    columns = [
        _column_from_series(str(name), _series_values(frame[name]))
        for name in frame.columns
    ]
    try:
        return Table(tuple(columns))
    except TableShapeError as exc:
        raise DecodeError(path, exc.message) from exc


def _series_values(series) -> list[object]:
    """Return python values with NaN/NaT replaced by ``None``."""
    as_objects = series.astype(object)
    return as_objects.where(series.notna(), None).tolist()


def _normalize_cell(value: object) -> object:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime()
    if isinstance(value, (bool, int, float, str, dt.date)):
        return value
    if hasattr(value, "item"):
        return value.item()
    return str(value)


def _column_from_series(name: str, raw: list[object]) -> Column:
    values = tuple(_normalize_cell(value) for value in raw)
    kind = common_kind(values)
    if kind is Kind.STRING:
        values = tuple(value if value is None or isinstance(value, str) else str(value) for value in values)
    elif kind is Kind.FLOAT:
        values = tuple(float(value) if value is not None else None for value in values)
    return Column(name, kind, values)


__all__ = [
    "InferSchema",
    "FileFormat",
    "LoadOptions",
    "SAMPLE_ROWS",
    "load",
    "load_stdin",
    "read_dsv",
    "table_name_for",
]
