"""Operation tree produced by the query parser.

Nodes are frozen dataclasses. Source offsets (``position``/``end``) are
excluded from equality so structurally identical expressions compare equal,
which is how grouped expressions are matched against ``GROUP BY`` keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field

AGGREGATE_FUNCTIONS = frozenset({"COUNT", "SUM", "AVG", "MIN", "MAX"})
SCALAR_FUNCTIONS = frozenset({"LOWER", "UPPER", "LENGTH", "TRIM", "ABS", "ROUND", "COALESCE"})


@dataclass(frozen=True)
class Expr:
    position: int = field(default=0, compare=False, kw_only=True)
    end: int = field(default=0, compare=False, kw_only=True)


@dataclass(frozen=True)
class Literal(Expr):
    value: object


@dataclass(frozen=True)
class ColumnRef(Expr):
    name: str
    qualifier: str | None = None

    @property
    def display(self) -> str:
        return f"{self.qualifier}.{self.name}" if self.qualifier else self.name


@dataclass(frozen=True)
class Unary(Expr):
    op: str
    operand: Expr


@dataclass(frozen=True)
class Binary(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True)
class Between(Expr):
    operand: Expr
    low: Expr
    high: Expr
    negated: bool = False


@dataclass(frozen=True)
class InList(Expr):
    operand: Expr
    items: tuple[Expr, ...]
    negated: bool = False


@dataclass(frozen=True)
class IsNull(Expr):
    operand: Expr
    negated: bool = False


@dataclass(frozen=True)
class Like(Expr):
    operand: Expr
    pattern: Expr
    negated: bool = False
    case_insensitive: bool = False


@dataclass(frozen=True)
class FunctionCall(Expr):
    name: str
    args: tuple[Expr, ...] = ()
    star: bool = False
    distinct: bool = False

    @property
    def is_aggregate(self) -> bool:
        return self.name in AGGREGATE_FUNCTIONS


@dataclass(frozen=True)
class Star(Expr):
    """``*`` or ``qualifier.*`` inside a select list."""

    qualifier: str | None = None


@dataclass(frozen=True)
class SelectItem:
    expr: Expr
    alias: str | None = None


@dataclass(frozen=True)
class TableRef:
    name: str
    alias: str | None = None
    position: int = field(default=0, compare=False)

    @property
    def qualifier(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True)
class Join:
    table: TableRef
    condition: Expr
    left_outer: bool = False


@dataclass(frozen=True)
class OrderItem:
    expr: Expr
    ascending: bool = True


@dataclass(frozen=True)
class Select:
    items: tuple[SelectItem, ...]
    source: TableRef
    joins: tuple[Join, ...] = ()
    where: Expr | None = None
    group_by: tuple[Expr, ...] = ()
    having: Expr | None = None
    order_by: tuple[OrderItem, ...] = ()
    limit: int | None = None
    offset: int = 0
    distinct: bool = False


def children(expr: Expr) -> tuple[Expr, ...]:
    """Direct sub-expressions of ``expr``."""
    if isinstance(expr, Unary):
        return (expr.operand,)
    if isinstance(expr, Binary):
        return (expr.left, expr.right)
    if isinstance(expr, Between):
        return (expr.operand, expr.low, expr.high)
    if isinstance(expr, InList):
        return (expr.operand, *expr.items)
    if isinstance(expr, IsNull):
        return (expr.operand,)
    if isinstance(expr, Like):
        return (expr.operand, expr.pattern)
    if isinstance(expr, FunctionCall):
        return expr.args
    return ()


def contains_aggregate(expr: Expr) -> bool:
    if isinstance(expr, FunctionCall) and expr.is_aggregate:
        return True
    return any(contains_aggregate(child) for child in children(expr))


__all__ = [
    "AGGREGATE_FUNCTIONS",
    "SCALAR_FUNCTIONS",
    "Expr",
    "Literal",
    "ColumnRef",
    "Unary",
    "Binary",
    "Between",
    "InList",
    "IsNull",
    "Like",
    "FunctionCall",
    "Star",
    "SelectItem",
    "TableRef",
    "Join",
    "OrderItem",
    "Select",
    "children",
    "contains_aggregate",
]
