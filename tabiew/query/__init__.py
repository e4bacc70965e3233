"""SQL-like query engine over registered tables."""

from __future__ import annotations

from .executor import SelectPlan, execute, plan
from .expressions import compile_predicate
from .lexer import QueryToken, TokenKind, tokenize
from .parser import parse_expression, parse_query

__all__ = [
    "SelectPlan",
    "execute",
    "plan",
    "compile_predicate",
    "QueryToken",
    "TokenKind",
    "tokenize",
    "parse_expression",
    "parse_query",
]
