"""Query tokenizer built on the Pygments SQL lexer.

Pygments does the raw scanning and reports offsets; this module folds its
token stream into the engine's small vocabulary. Pygments only knows
single-character operators and integer literals, so adjacent operator
characters are merged here and numeric literals (decimals, a leading ``.``,
exponents) are re-read from the source text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from pygments.lexers.sql import SqlLexer
from pygments.token import Comment, Error, Keyword, Name, Number, Operator, Punctuation, String, Text

from ..errors import ParseError

RESERVED_WORDS = frozenset(
    {
        "ALL",
        "AND",
        "AS",
        "ASC",
        "BETWEEN",
        "BY",
        "DESC",
        "DISTINCT",
        "FALSE",
        "FROM",
        "GROUP",
        "HAVING",
        "ILIKE",
        "IN",
        "INNER",
        "IS",
        "JOIN",
        "LEFT",
        "LIKE",
        "LIMIT",
        "NOT",
        "NULL",
        "OFFSET",
        "ON",
        "OR",
        "ORDER",
        "OUTER",
        "SELECT",
        "TRUE",
        "WHERE",
    }
)

_MULTI_CHAR_OPERATORS = frozenset({"<=", ">=", "<>", "!=", "==", "||"})
_SINGLE_CHAR_OPERATORS = frozenset({"+", "-", "*", "/", "%", "<", ">", "="})
_NUMBER = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_LEXER = SqlLexer(stripnl=False, ensurenl=False)


class TokenKind(str, Enum):
    KEYWORD = "keyword"
    IDENT = "identifier"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    OPERATOR = "operator"
    PUNCT = "punctuation"
    END = "end"


@dataclass(frozen=True)
class QueryToken:
    """One token: ``value`` is upper-cased for keywords, unquoted for strings."""

    kind: TokenKind
    value: str
    position: int
    text: str

    @property
    def end(self) -> int:
        return self.position + len(self.text)

    def is_keyword(self, *words: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.value in words

    def is_symbol(self, *symbols: str) -> bool:
        return self.kind in (TokenKind.OPERATOR, TokenKind.PUNCT) and self.value in symbols


def _raw_tokens(text: str) -> list[tuple[int, object, str]]:
    raw: list[tuple[int, object, str]] = []
    for position, token_type, value in _LEXER.get_tokens_unprocessed(text):
        if token_type in Text or token_type in Comment:
            continue
        raw.append((position, token_type, value))
    return raw


def _word_token(position: int, value: str) -> QueryToken:
    upper = value.upper()
    if upper in RESERVED_WORDS:
        return QueryToken(TokenKind.KEYWORD, upper, position, value)
    return QueryToken(TokenKind.IDENT, value, position, value)


def _starts_fraction(text: str, position: int, tokens: list[QueryToken]) -> bool:
    """A ``.`` opens a number like ``.5`` unless it qualifies a preceding name."""
    if not text[position + 1 : position + 2].isdigit():
        return False
    return not (tokens and tokens[-1].end == position and tokens[-1].kind is TokenKind.IDENT)


def _number_token(text: str, position: int) -> QueryToken:
    literal = _NUMBER.match(text, position).group()
    kind = TokenKind.INTEGER if literal.isdigit() else TokenKind.FLOAT
    return QueryToken(kind, literal, position, literal)


def tokenize(text: str) -> list[QueryToken]:
    """Split ``text`` into query tokens, ending with an ``END`` token.

    Raises ``ParseError`` at the first character Pygments cannot classify or
    at an unterminated quote.
    """
    raw = _raw_tokens(text)
    tokens: list[QueryToken] = []
    idx = 0
    while idx < len(raw):
        position, token_type, value = raw[idx]
        idx += 1

        if token_type in Error:
            if value in {"'", '"'}:
                raise ParseError("unterminated quoted text", position)
            raise ParseError(f"unexpected character {value!r}", position)

        if token_type in Number or (value == "." and _starts_fraction(text, position, tokens)):
            token = _number_token(text, position)
            while idx < len(raw) and raw[idx][0] < token.end:
                stop = raw[idx][0] + len(raw[idx][2])
                if stop > token.end:
                    raise ParseError(f"malformed number {text[position:stop]!r}", position)
                idx += 1
            tokens.append(token)
            continue

        if token_type in String.Single:
            tokens.append(QueryToken(TokenKind.STRING, value[1:-1].replace("''", "'"), position, value))
            continue

        if token_type in String.Symbol:
            tokens.append(QueryToken(TokenKind.IDENT, value[1:-1].replace('""', '"'), position, value))
            continue

        if token_type in Keyword or token_type in Name:
            tokens.append(_word_token(position, value))
            continue

        if token_type in Operator:
            if idx < len(raw) and raw[idx][1] in Operator and raw[idx][0] == position + 1:
                pair = value + raw[idx][2]
                if pair in _MULTI_CHAR_OPERATORS:
                    idx += 1
                    tokens.append(QueryToken(TokenKind.OPERATOR, pair, position, pair))
                    continue
            if value not in _SINGLE_CHAR_OPERATORS:
                raise ParseError(f"unexpected operator {value!r}", position)
            tokens.append(QueryToken(TokenKind.OPERATOR, value, position, value))
            continue

        if token_type in Punctuation:
            tokens.append(QueryToken(TokenKind.PUNCT, value, position, value))
            continue

        raise ParseError(f"unexpected input {value!r}", position)

    tokens.append(QueryToken(TokenKind.END, "", len(text), ""))
    return tokens


__all__ = [
    "RESERVED_WORDS",
    "TokenKind",
    "QueryToken",
    "tokenize",
]
