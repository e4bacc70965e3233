"""Tokenizer and parser coverage for the query language."""

from __future__ import annotations

import unittest

from tabiew.errors import ParseError
from tabiew.query import TokenKind, parse_expression, parse_query, tokenize
from tabiew.query.ast import (
    Between,
    Binary,
    ColumnRef,
    FunctionCall,
    InList,
    IsNull,
    Like,
    Literal,
    Star,
    Unary,
)


class TokenizeTests(unittest.TestCase):
    def test_keywords_identifiers_and_literals(self) -> None:
        tokens = tokenize("select name, 1.5 from \"my table\" where x <> 'it''s'")
        kinds = [(token.kind, token.value) for token in tokens]
        self.assertEqual(
            kinds,
            [
                (TokenKind.KEYWORD, "SELECT"),
                (TokenKind.IDENT, "name"),
                (TokenKind.PUNCT, ","),
                (TokenKind.FLOAT, "1.5"),
                (TokenKind.KEYWORD, "FROM"),
                (TokenKind.IDENT, "my table"),
                (TokenKind.KEYWORD, "WHERE"),
                (TokenKind.IDENT, "x"),
                (TokenKind.OPERATOR, "<>"),
                (TokenKind.STRING, "it's"),
                (TokenKind.END, ""),
            ],
        )

    def test_number_literal_forms(self) -> None:
        tokens = tokenize("1e3 2.5E-2 .5 3. 7")
        self.assertEqual(
            [(token.kind, token.value) for token in tokens[:-1]],
            [
                (TokenKind.FLOAT, "1e3"),
                (TokenKind.FLOAT, "2.5E-2"),
                (TokenKind.FLOAT, ".5"),
                (TokenKind.FLOAT, "3."),
                (TokenKind.INTEGER, "7"),
            ],
        )
        self.assertEqual([token.position for token in tokens], [0, 4, 11, 14, 17, 18])

    def test_dot_after_name_stays_a_qualifier(self) -> None:
        tokens = tokenize("t.x")
        self.assertEqual([token.kind for token in tokens], [TokenKind.IDENT, TokenKind.PUNCT, TokenKind.IDENT, TokenKind.END])

    def test_letters_glued_to_exponent_are_rejected(self) -> None:
        with self.assertRaises(ParseError):
            tokenize("select 1e3x from t")

    def test_positions_point_into_source(self) -> None:
        text = "a >= 10"
        tokens = tokenize(text)
        self.assertEqual([token.position for token in tokens], [0, 2, 5, 7])

    def test_unterminated_string_reports_position(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            tokenize("x = 'abc")
        self.assertEqual(ctx.exception.position, 4)


class ParseQueryTests(unittest.TestCase):
    def test_full_select(self) -> None:
        select = parse_query(
            "SELECT DISTINCT p.name AS who, count(*) FROM people p "
            "LEFT JOIN pets ON p.id = pets.owner "
            "WHERE age > 26 GROUP BY p.name HAVING count(*) >= 1 "
            "ORDER BY who DESC, 2 LIMIT 5 OFFSET 1"
        )
        self.assertTrue(select.distinct)
        self.assertEqual(select.items[0].alias, "who")
        self.assertEqual(select.items[0].expr, ColumnRef("name", "p"))
        self.assertEqual(select.items[1].expr, FunctionCall("COUNT", (), star=True))
        self.assertEqual(select.source.name, "people")
        self.assertEqual(select.source.qualifier, "p")
        self.assertEqual(len(select.joins), 1)
        self.assertTrue(select.joins[0].left_outer)
        self.assertEqual(select.where, Binary(">", ColumnRef("age"), Literal(26)))
        self.assertEqual(select.group_by, (ColumnRef("name", "p"),))
        self.assertIsNotNone(select.having)
        self.assertEqual([item.ascending for item in select.order_by], [False, True])
        self.assertEqual((select.limit, select.offset), (5, 1))

    def test_star_and_qualified_star(self) -> None:
        select = parse_query("select *, t.* from t")
        self.assertEqual(select.items[0].expr, Star())
        self.assertEqual(select.items[1].expr, Star("t"))

    def test_trailing_semicolon_is_allowed(self) -> None:
        self.assertEqual(parse_query("select a from t;").source.name, "t")

    def test_missing_from_is_a_parse_error(self) -> None:
        with self.assertRaises(ParseError) as ctx:
            parse_query("select a")
        self.assertIn("FROM", ctx.exception.message)

    def test_trailing_garbage_is_a_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            parse_query("select a from t t2 t3")

    def test_unknown_function_is_a_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            parse_query("select frobnicate(a) from t")


class ParseExpressionTests(unittest.TestCase):
    def test_precedence(self) -> None:
        expr = parse_expression("a + 2 * 3 > 4 and not b or c")
        self.assertEqual(
            expr,
            Binary(
                "OR",
                Binary(
                    "AND",
                    Binary(">", Binary("+", ColumnRef("a"), Binary("*", Literal(2), Literal(3))), Literal(4)),
                    Unary("NOT", ColumnRef("b")),
                ),
                ColumnRef("c"),
            ),
        )

    def test_predicates(self) -> None:
        self.assertEqual(
            parse_expression("a between 1 and 3"),
            Between(ColumnRef("a"), Literal(1), Literal(3)),
        )
        self.assertEqual(
            parse_expression("a not in (1, 2)"),
            InList(ColumnRef("a"), (Literal(1), Literal(2)), negated=True),
        )
        self.assertEqual(parse_expression("a is not null"), IsNull(ColumnRef("a"), negated=True))
        self.assertEqual(
            parse_expression("name ilike 'a%'"),
            Like(ColumnRef("name"), Literal("a%"), case_insensitive=True),
        )

    def test_negative_literal_folds(self) -> None:
        self.assertEqual(parse_expression("-5"), Literal(-5))

    def test_equality_aliases_normalize(self) -> None:
        self.assertEqual(parse_expression("a == 1").op, "=")
        self.assertEqual(parse_expression("a <> 1").op, "!=")


if __name__ == "__main__":
    unittest.main()
