"""Columnar table model and scalar helpers.

Exports ``Table``/``Column``/``Kind``; file decoding lives in ``loader``.
"""

from __future__ import annotations

from .types import Column, Kind, Table
from .values import common_kind, format_value, kind_of

__all__ = ["Column", "Kind", "Table", "common_kind", "format_value", "kind_of"]
