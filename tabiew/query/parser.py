"""Recursive-descent parser from query tokens to the operation tree."""

from __future__ import annotations

from ..errors import ParseError
from .ast import (
    AGGREGATE_FUNCTIONS,
    SCALAR_FUNCTIONS,
    Between,
    Binary,
    ColumnRef,
    Expr,
    FunctionCall,
    InList,
    IsNull,
    Join,
    Like,
    Literal,
    OrderItem,
    Select,
    SelectItem,
    Star,
    TableRef,
    Unary,
)
from .lexer import QueryToken, TokenKind, tokenize

_COMPARISON_OPERATORS = frozenset({"=", "==", "!=", "<>", "<", "<=", ">", ">="})


def _describe(token: QueryToken) -> str:
    if token.kind is TokenKind.END:
        return "end of query"
    return repr(token.text)


class QueryParser:
    """Single-use parser over one query or expression string."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    # token cursor

    @property
    def current(self) -> QueryToken:
        return self.tokens[self.index]

    def _peek(self, offset: int = 1) -> QueryToken:
        idx = min(self.index + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def _advance(self) -> QueryToken:
        token = self.tokens[self.index]
        if token.kind is not TokenKind.END:
            self.index += 1
        return token

    @property
    def _last_end(self) -> int:
        if self.index == 0:
            return 0
        return self.tokens[self.index - 1].end

    def _error(self, expected: str) -> ParseError:
        token = self.current
        return ParseError(f"expected {expected}, found {_describe(token)}", token.position)

    def _accept_keyword(self, *words: str) -> QueryToken | None:
        if self.current.is_keyword(*words):
            return self._advance()
        return None

    def _expect_keyword(self, word: str) -> QueryToken:
        token = self._accept_keyword(word)
        if token is None:
            raise self._error(word)
        return token

    def _accept_symbol(self, *symbols: str) -> QueryToken | None:
        if self.current.is_symbol(*symbols):
            return self._advance()
        return None

    def _expect_symbol(self, symbol: str) -> QueryToken:
        token = self._accept_symbol(symbol)
        if token is None:
            raise self._error(repr(symbol))
        return token

    def _expect_identifier(self, what: str) -> QueryToken:
        if self.current.kind is not TokenKind.IDENT:
            raise self._error(what)
        return self._advance()

    def _expect_integer(self, what: str) -> int:
        if self.current.kind is not TokenKind.INTEGER:
            raise self._error(what)
        return int(self._advance().value)

    def _expect_end(self) -> None:
        self._accept_symbol(";")
        if self.current.kind is not TokenKind.END:
            raise ParseError(f"unexpected {_describe(self.current)}", self.current.position)

    # statements

    def parse_select(self) -> Select:
        self._expect_keyword("SELECT")
        distinct = self._accept_keyword("DISTINCT") is not None
        if not distinct:
            self._accept_keyword("ALL")
        items = [self._parse_select_item()]
        while self._accept_symbol(","):
            items.append(self._parse_select_item())

        self._expect_keyword("FROM")
        source = self._parse_table_ref()
        joins: list[Join] = []
        while True:
            join = self._parse_join()
            if join is None:
                break
            joins.append(join)

        where = None
        if self._accept_keyword("WHERE"):
            where = self.parse_expression()

        group_by: list[Expr] = []
        if self._accept_keyword("GROUP"):
            self._expect_keyword("BY")
            group_by.append(self.parse_expression())
            while self._accept_symbol(","):
                group_by.append(self.parse_expression())

        having = None
        if self._accept_keyword("HAVING"):
            having = self.parse_expression()

        order_by: list[OrderItem] = []
        if self._accept_keyword("ORDER"):
            self._expect_keyword("BY")
            order_by.append(self._parse_order_item())
            while self._accept_symbol(","):
                order_by.append(self._parse_order_item())

        limit = None
        offset = 0
        if self._accept_keyword("LIMIT"):
            limit = self._expect_integer("row count after LIMIT")
        if self._accept_keyword("OFFSET"):
            offset = self._expect_integer("row count after OFFSET")

        self._expect_end()
        return Select(
            items=tuple(items),
            source=source,
            joins=tuple(joins),
            where=where,
            group_by=tuple(group_by),
            having=having,
            order_by=tuple(order_by),
            limit=limit,
            offset=offset,
            distinct=distinct,
        )

    def parse_standalone_expression(self) -> Expr:
        expr = self.parse_expression()
        self._expect_end()
        return expr

    def _parse_select_item(self) -> SelectItem:
        start = self.current.position
        if self._accept_symbol("*"):
            return SelectItem(Star(position=start, end=self._last_end))
        if (
            self.current.kind is TokenKind.IDENT
            and self._peek().is_symbol(".")
            and self._peek(2).is_symbol("*")
        ):
            qualifier = self._advance().value
            self._advance()
            self._advance()
            return SelectItem(Star(qualifier, position=start, end=self._last_end))
        expr = self.parse_expression()
        alias = None
        if self._accept_keyword("AS"):
            if self.current.kind not in (TokenKind.IDENT, TokenKind.STRING):
                raise self._error("alias after AS")
            alias = self._advance().value
        elif self.current.kind is TokenKind.IDENT:
            alias = self._advance().value
        return SelectItem(expr, alias)

    def _parse_table_ref(self) -> TableRef:
        token = self._expect_identifier("table name")
        alias = None
        if self._accept_keyword("AS"):
            alias = self._expect_identifier("table alias").value
        elif self.current.kind is TokenKind.IDENT:
            alias = self._advance().value
        return TableRef(token.value, alias, token.position)

    def _parse_join(self) -> Join | None:
        left_outer = False
        if self._accept_keyword("LEFT"):
            left_outer = True
            self._accept_keyword("OUTER")
            self._expect_keyword("JOIN")
        elif self._accept_keyword("INNER"):
            self._expect_keyword("JOIN")
        elif not self._accept_keyword("JOIN"):
            return None
        table = self._parse_table_ref()
        self._expect_keyword("ON")
        condition = self.parse_expression()
        return Join(table=table, condition=condition, left_outer=left_outer)

    def _parse_order_item(self) -> OrderItem:
        expr = self.parse_expression()
        ascending = True
        if self._accept_keyword("DESC"):
            ascending = False
        else:
            self._accept_keyword("ASC")
        return OrderItem(expr, ascending)

    # expressions, lowest precedence first

    def parse_expression(self) -> Expr:
        return self._parse_or()

    def _parse_or(self) -> Expr:
        left = self._parse_and()
        while self.current.is_keyword("OR"):
            self._advance()
            right = self._parse_and()
            left = Binary("OR", left, right, position=left.position, end=right.end)
        return left

    def _parse_and(self) -> Expr:
        left = self._parse_not()
        while self.current.is_keyword("AND"):
            self._advance()
            right = self._parse_not()
            left = Binary("AND", left, right, position=left.position, end=right.end)
        return left

    def _parse_not(self) -> Expr:
        token = self._accept_keyword("NOT")
        if token is not None:
            operand = self._parse_not()
            return Unary("NOT", operand, position=token.position, end=operand.end)
        return self._parse_predicate()

    def _parse_predicate(self) -> Expr:
        left = self._parse_additive()
        start = left.position

        if self.current.kind is TokenKind.OPERATOR and self.current.value in _COMPARISON_OPERATORS:
            op = self._advance().value
            op = {"==": "=", "<>": "!="}.get(op, op)
            right = self._parse_additive()
            return Binary(op, left, right, position=start, end=right.end)

        if self._accept_keyword("IS"):
            negated = self._accept_keyword("NOT") is not None
            self._expect_keyword("NULL")
            return IsNull(left, negated, position=start, end=self._last_end)

        negated = False
        if self.current.is_keyword("NOT") and self._peek().is_keyword("BETWEEN", "IN", "LIKE", "ILIKE"):
            self._advance()
            negated = True

        if self._accept_keyword("BETWEEN"):
            low = self._parse_additive()
            self._expect_keyword("AND")
            high = self._parse_additive()
            return Between(left, low, high, negated, position=start, end=high.end)

        if self._accept_keyword("IN"):
            self._expect_symbol("(")
            items = [self.parse_expression()]
            while self._accept_symbol(","):
                items.append(self.parse_expression())
            self._expect_symbol(")")
            return InList(left, tuple(items), negated, position=start, end=self._last_end)

        like = self._accept_keyword("LIKE", "ILIKE")
        if like is not None:
            pattern = self._parse_additive()
            return Like(
                left,
                pattern,
                negated,
                case_insensitive=like.value == "ILIKE",
                position=start,
                end=pattern.end,
            )

        if negated:
            raise self._error("BETWEEN, IN or LIKE after NOT")
        return left

    def _parse_additive(self) -> Expr:
        left = self._parse_multiplicative()
        while self.current.kind is TokenKind.OPERATOR and self.current.value in {"+", "-", "||"}:
            op = self._advance().value
            right = self._parse_multiplicative()
            left = Binary(op, left, right, position=left.position, end=right.end)
        return left

    def _parse_multiplicative(self) -> Expr:
        left = self._parse_unary()
        while self.current.kind is TokenKind.OPERATOR and self.current.value in {"*", "/", "%"}:
            op = self._advance().value
            right = self._parse_unary()
            left = Binary(op, left, right, position=left.position, end=right.end)
        return left

    def _parse_unary(self) -> Expr:
        if self.current.kind is TokenKind.OPERATOR and self.current.value in {"-", "+"}:
            token = self._advance()
            operand = self._parse_unary()
            if token.value == "+":
                return operand
            if isinstance(operand, Literal) and isinstance(operand.value, (int, float)) and not isinstance(operand.value, bool):
                return Literal(-operand.value, position=token.position, end=operand.end)
            return Unary("-", operand, position=token.position, end=operand.end)
        return self._parse_primary()

    def _parse_primary(self) -> Expr:
        token = self.current
        if token.kind is TokenKind.INTEGER:
            self._advance()
            return Literal(int(token.value), position=token.position, end=token.end)
        if token.kind is TokenKind.FLOAT:
            self._advance()
            return Literal(float(token.value), position=token.position, end=token.end)
        if token.kind is TokenKind.STRING:
            self._advance()
            return Literal(token.value, position=token.position, end=token.end)
        if token.is_keyword("TRUE", "FALSE"):
            self._advance()
            return Literal(token.value == "TRUE", position=token.position, end=token.end)
        if token.is_keyword("NULL"):
            self._advance()
            return Literal(None, position=token.position, end=token.end)
        if token.is_symbol("("):
            self._advance()
            inner = self.parse_expression()
            self._expect_symbol(")")
            return inner
        if token.kind is TokenKind.IDENT:
            self._advance()
            if self.current.is_symbol("("):
                return self._parse_call(token)
            if self.current.is_symbol("."):
                self._advance()
                column = self._expect_identifier("column name after '.'")
                return ColumnRef(column.value, token.value, position=token.position, end=column.end)
            return ColumnRef(token.value, position=token.position, end=token.end)
        raise self._error("expression")

    def _parse_call(self, name_token: QueryToken) -> Expr:
        name = name_token.value.upper()
        if name not in AGGREGATE_FUNCTIONS and name not in SCALAR_FUNCTIONS:
            raise ParseError(f"unknown function {name_token.value!r}", name_token.position)
        self._expect_symbol("(")
        if name == "COUNT" and self._accept_symbol("*"):
            self._expect_symbol(")")
            return FunctionCall(name, (), star=True, position=name_token.position, end=self._last_end)
        distinct = False
        if name in AGGREGATE_FUNCTIONS:
            distinct = self._accept_keyword("DISTINCT") is not None
        args: list[Expr] = []
        if not self.current.is_symbol(")"):
            args.append(self.parse_expression())
            while self._accept_symbol(","):
                args.append(self.parse_expression())
        self._expect_symbol(")")
        return FunctionCall(name, tuple(args), distinct=distinct, position=name_token.position, end=self._last_end)


def parse_query(text: str) -> Select:
    """Parse a full ``SELECT`` statement."""
    return QueryParser(text).parse_select()


def parse_expression(text: str) -> Expr:
    """Parse a standalone boolean/scalar expression (filter syntax)."""
    return QueryParser(text).parse_standalone_expression()


__all__ = ["QueryParser", "parse_query", "parse_expression"]
