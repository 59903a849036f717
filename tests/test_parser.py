"""
Unit tests for the query parser.
"""

import pytest
from coil.parser.parser import QueryParser, TokenCursor
from coil.parser.lexer import tokenize, TokenType
from coil.parser import ast
from coil.storage.types import FieldType
from coil.utils.exceptions import (
    ParseError,
    LexError,
    UnexpectedTokenError,
    UnexpectedEndError,
    MissingDelimiterError,
    MalformedColumnError,
    NestingTooDeepError,
    CoilError
)

B = ast.BinaryOperator


def lit(value):
    return ast.Literal(value)


def ident(name):
    return ast.Identifier(name)


class TestStatements:
    """Test statement parsing."""

    def setup_method(self):
        """Set up parser for each test."""
        self.parser = QueryParser()

    def test_parse_get(self):
        query = self.parser.parse("GET * FROM customers")

        assert query.operation == ast.Operation.GET
        assert query.table == "customers"
        assert query.database is None
        assert query.condition is None

    def test_parse_get_with_where(self):
        query = self.parser.parse("GET * FROM customers WHERE ID > 1")

        assert query.condition == ast.BinaryOp(ident("ID"), B.GREATER, lit(1))

    def test_parse_get_qualified_table(self):
        query = self.parser.parse("GET * FROM shop.customers")

        assert query.database == "shop"
        assert query.table == "customers"

    def test_parse_put(self):
        query = self.parser.parse('PUT ["james", 1, 2.5, none] IN customers')

        assert query.operation == ast.Operation.PUT
        assert query.table == "customers"
        assert query.values == ["james", 1, 2.5, None]

    def test_parse_put_signed_numbers(self):
        query = self.parser.parse("PUT [-1, +2, -0.5, 0x10] IN t")
        assert query.values == [-1, 2, -0.5, 16]

    def test_parse_put_integer_limits(self):
        query = self.parser.parse("PUT [-9223372036854775808, 9223372036854775807] IN t")
        assert query.values == [-2 ** 63, 2 ** 63 - 1]

    def test_parse_put_integer_past_limits(self):
        with pytest.raises(LexError):
            self.parser.parse("PUT [-9223372036854775809] IN t")
        with pytest.raises(LexError):
            self.parser.parse("PUT [+9223372036854775808] IN t")

    def test_parse_put_empty(self):
        query = self.parser.parse("PUT [] IN t")
        assert query.values == []

    def test_parse_create_table(self):
        query = self.parser.parse("CREATE TABLE customers [Name: TEXT, ID: NUMBER]")

        assert query.operation == ast.Operation.CREATE
        assert query.table == "customers"
        assert query.columns == [
            ast.ColumnDef("Name", FieldType.TEXT),
            ast.ColumnDef("ID", FieldType.NUMBER)
        ]
        assert not query.targets_database

    def test_parse_create_database(self):
        query = self.parser.parse("create database shop")

        assert query.operation == ast.Operation.CREATE
        assert query.database == "shop"
        assert query.table is None
        assert query.targets_database

    def test_parse_update(self):
        query = self.parser.parse('UPDATE customers SET Name = "jim", ID = ID + 1 WHERE ID = 2')

        assert query.operation == ast.Operation.UPDATE
        assert query.table == "customers"
        assert query.assignments == [
            ast.Assignment("Name", lit("jim")),
            ast.Assignment("ID", ast.BinaryOp(ident("ID"), B.ADD, lit(1)))
        ]
        assert query.condition == ast.BinaryOp(ident("ID"), B.EQUAL, lit(2))

    def test_parse_update_without_where(self):
        query = self.parser.parse("UPDATE customers SET ID = 0")
        assert query.condition is None

    def test_parse_delete_table(self):
        query = self.parser.parse("DELETE TABLE customers")

        assert query.operation == ast.Operation.DELETE
        assert query.table == "customers"
        assert query.condition is None

    def test_parse_delete_rows(self):
        query = self.parser.parse("DELETE TABLE customers WHERE ID >= 2")
        assert query.condition == ast.BinaryOp(ident("ID"), B.GREATER_EQUAL, lit(2))

    def test_parse_delete_database(self):
        query = self.parser.parse("DELETE DATABASE shop")
        assert query.targets_database
        assert query.database == "shop"

    def test_trailing_semicolon(self):
        query = self.parser.parse("GET * FROM customers;")
        assert query.table == "customers"


class TestExpressions:
    """Test precedence and associativity."""

    def setup_method(self):
        self.parser = QueryParser()

    def test_multiplication_binds_tighter(self):
        """Test 1 + 2 * 3 is Add(1, Multiply(2, 3))."""
        expr = self.parser.parse_expression("1 + 2 * 3")
        assert expr == ast.BinaryOp(lit(1), B.ADD, ast.BinaryOp(lit(2), B.MULTIPLY, lit(3)))

    def test_left_associative(self):
        """Test 10 - 4 - 3 is (10 - 4) - 3."""
        expr = self.parser.parse_expression("10 - 4 - 3")
        assert expr == ast.BinaryOp(ast.BinaryOp(lit(10), B.SUBTRACT, lit(4)), B.SUBTRACT, lit(3))

    def test_parentheses_group(self):
        expr = self.parser.parse_expression("(1 + 2) * 3")
        assert expr == ast.BinaryOp(ast.BinaryOp(lit(1), B.ADD, lit(2)), B.MULTIPLY, lit(3))

    def test_and_binds_tighter_than_or(self):
        expr = self.parser.parse_expression("a = 1 OR b = 2 AND c = 3")
        assert expr.op == B.OR
        assert expr.right.op == B.AND

    def test_xor_at_or_level(self):
        expr = self.parser.parse_expression("a = 1 XOR b = 2 OR c = 3")
        assert expr.op == B.OR
        assert expr.left.op == B.XOR

    def test_comparison_below_arithmetic(self):
        expr = self.parser.parse_expression("a + 1 < b * 2")
        assert expr.op == B.LESS
        assert expr.left.op == B.ADD
        assert expr.right.op == B.MULTIPLY

    def test_equality_below_comparison(self):
        expr = self.parser.parse_expression("a < 1 = b > 2")
        assert expr.op == B.EQUAL
        assert expr.left.op == B.LESS
        assert expr.right.op == B.GREATER

    def test_nested_condition(self):
        expr = self.parser.parse_expression("(A = 1 OR B = 2) AND C != 3")
        assert expr.op == B.AND
        assert expr.left.op == B.OR
        assert expr.right == ast.BinaryOp(ident("C"), B.NOT_EQUAL, lit(3))

    def test_unary_operators(self):
        expr = self.parser.parse_expression("NOT a = 1")
        assert expr == ast.BinaryOp(
            ast.UnaryOp(ast.UnaryOperator.NOT, ident("a")), B.EQUAL, lit(1)
        )

        expr = self.parser.parse_expression("- -2")
        assert expr == ast.UnaryOp(
            ast.UnaryOperator.NEGATE, ast.UnaryOp(ast.UnaryOperator.NEGATE, lit(2))
        )

    def test_smallest_integer_literal(self):
        assert self.parser.parse_expression("-9223372036854775808") == lit(-2 ** 63)
        assert self.parser.parse_expression("- -9223372036854775808") == ast.UnaryOp(
            ast.UnaryOperator.NEGATE, lit(-2 ** 63)
        )

    def test_integer_literal_magnitude_needs_minus(self):
        with pytest.raises(LexError):
            self.parser.parse_expression("5 - 9223372036854775808")

    def test_nesting_within_limit(self):
        expr = self.parser.parse_expression("(" * 30 + "a = 1" + ")" * 30)
        assert expr == ast.BinaryOp(ident("a"), B.EQUAL, lit(1))

    def test_factor_operators(self):
        expr = self.parser.parse_expression("a % 2 ^ 3 / 4")
        assert expr.op == B.DIVIDE
        assert expr.left.op == B.POWER
        assert expr.left.left.op == B.MODULO

    def test_literal_kinds(self):
        assert self.parser.parse_expression('"x"') == lit("x")
        assert self.parser.parse_expression("none") == lit(None)
        assert self.parser.parse_expression("1.5") == lit(1.5)

    def test_str_rendering(self):
        expr = self.parser.parse_expression("1 + 2 * 3")
        assert str(expr) == "(1 + (2 * 3))"


class TestParseErrors:
    """Test every grammar violation yields a ParseError."""

    def setup_method(self):
        self.parser = QueryParser()

    def test_empty_statement(self):
        with pytest.raises(UnexpectedEndError):
            self.parser.parse("")

    def test_unknown_statement(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("SELECT * FROM t")

    def test_get_missing_star(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("GET FROM t")

    def test_get_missing_table(self):
        with pytest.raises(UnexpectedEndError):
            self.parser.parse("GET * FROM")

    def test_where_without_expression(self):
        with pytest.raises(UnexpectedEndError):
            self.parser.parse("GET * FROM t WHERE")

    def test_trailing_tokens(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("GET * FROM t u")

    def test_missing_closing_paren(self):
        with pytest.raises(MissingDelimiterError):
            self.parser.parse("GET * FROM t WHERE (a = 1")

    def test_missing_closing_bracket_in_put(self):
        with pytest.raises(MissingDelimiterError):
            self.parser.parse("PUT [1, 2 IN t")

    def test_put_non_literal(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("PUT [a] IN t")

    def test_put_trailing_comma(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("PUT [1,] IN t")

    def test_put_sign_before_string(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse('PUT [-"a"] IN t')

    def test_put_missing_in(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("PUT [1] t")

    def test_column_missing_colon(self):
        with pytest.raises(MalformedColumnError):
            self.parser.parse("CREATE TABLE t [a NUMBER]")

    def test_column_unknown_type(self):
        with pytest.raises(MalformedColumnError):
            self.parser.parse("CREATE TABLE t [a: INTEGER]")

    def test_column_missing_name(self):
        with pytest.raises(MalformedColumnError):
            self.parser.parse("CREATE TABLE t [: TEXT]")

    def test_column_list_empty(self):
        with pytest.raises(MalformedColumnError):
            self.parser.parse("CREATE TABLE t []")

    def test_column_duplicate(self):
        with pytest.raises(MalformedColumnError):
            self.parser.parse("CREATE TABLE t [a: TEXT, a: NUMBER]")

    def test_column_list_not_closed(self):
        with pytest.raises(MissingDelimiterError):
            self.parser.parse("CREATE TABLE t [a: TEXT")

    def test_create_unknown_target(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("CREATE INDEX i")

    def test_update_missing_set(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("UPDATE t a = 1")

    def test_update_missing_value(self):
        with pytest.raises(UnexpectedEndError):
            self.parser.parse("UPDATE t SET a =")

    def test_delete_database_with_where(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("DELETE DATABASE shop WHERE a = 1")

    def test_delete_missing_target(self):
        with pytest.raises(UnexpectedTokenError):
            self.parser.parse("DELETE customers")

    def test_errors_are_parse_errors(self):
        """Test all parse failures share the ParseError base."""
        for text in ["GET", "PUT [1", "CREATE TABLE t [x]", "GET * FROM t WHERE (1"]:
            with pytest.raises(ParseError):
                self.parser.parse(text)

    def test_lex_errors_propagate(self):
        with pytest.raises(LexError):
            self.parser.parse('PUT ["abc IN t')

    def test_deeply_nested_parentheses(self):
        text = "GET * FROM t WHERE " + "(" * 200 + "ID = 1" + ")" * 200
        with pytest.raises(NestingTooDeepError) as exc_info:
            self.parser.parse(text)
        assert isinstance(exc_info.value, CoilError)
        assert exc_info.value.kind == "ParseError"

    def test_deeply_nested_unary(self):
        with pytest.raises(NestingTooDeepError):
            self.parser.parse("GET * FROM t WHERE " + "NOT " * 200 + "ID = 1")
        with pytest.raises(NestingTooDeepError):
            self.parser.parse_expression("-" * 200 + "1")


class TestTokenCursor:
    """Test the cursor used by the parse routines."""

    def test_peek_advance_previous(self):
        cursor = TokenCursor(tokenize("GET *"))

        assert cursor.previous() is None
        assert cursor.peek().type == TokenType.GET
        cursor.advance()
        assert cursor.previous().type == TokenType.GET
        assert cursor.peek().type == TokenType.STAR

    def test_match_remembers_alternative(self):
        cursor = TokenCursor(tokenize("TEXT"))

        assert cursor.match(TokenType.NUMBER, TokenType.TEXT)
        assert cursor.previous().type == TokenType.TEXT

    def test_advance_stops_at_eof(self):
        cursor = TokenCursor(tokenize("a"))
        cursor.advance()
        cursor.advance()
        assert cursor.at_end()
        assert cursor.peek().type == TokenType.EOF

    def test_requires_eof(self):
        with pytest.raises(ValueError):
            TokenCursor([])
