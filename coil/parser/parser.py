"""
Recursive-descent parser for the Coil query language.

Parses statements into AST nodes for execution. Expressions are parsed
by precedence climbing: each level parses the next-higher level once,
then folds `(left, op, right)` into a new left operand for as long as one
of its own operators follows.
"""

import logging
from typing import List, Optional, Tuple

from . import ast
from .lexer import Token, TokenType, tokenize
from ..storage.types import FieldType
from ..utils.exceptions import (
    UnexpectedTokenError,
    UnexpectedEndError,
    LexError,
    MissingDelimiterError,
    MalformedColumnError,
    NestingTooDeepError
)
from ..utils.validators import INT64_MAX

logger = logging.getLogger(__name__)


# Operator tables, lowest precedence first.
OR_OPERATORS = {
    TokenType.OR: ast.BinaryOperator.OR,
    TokenType.XOR: ast.BinaryOperator.XOR,
}
AND_OPERATORS = {
    TokenType.AND: ast.BinaryOperator.AND,
}
EQUALITY_OPERATORS = {
    TokenType.EQUAL: ast.BinaryOperator.EQUAL,
    TokenType.NOT_EQUAL: ast.BinaryOperator.NOT_EQUAL,
}
COMPARISON_OPERATORS = {
    TokenType.LESS: ast.BinaryOperator.LESS,
    TokenType.LESS_EQUAL: ast.BinaryOperator.LESS_EQUAL,
    TokenType.GREATER: ast.BinaryOperator.GREATER,
    TokenType.GREATER_EQUAL: ast.BinaryOperator.GREATER_EQUAL,
}
TERM_OPERATORS = {
    TokenType.PLUS: ast.BinaryOperator.ADD,
    TokenType.MINUS: ast.BinaryOperator.SUBTRACT,
}
FACTOR_OPERATORS = {
    TokenType.STAR: ast.BinaryOperator.MULTIPLY,
    TokenType.SLASH: ast.BinaryOperator.DIVIDE,
    TokenType.CARET: ast.BinaryOperator.POWER,
    TokenType.PERCENT: ast.BinaryOperator.MODULO,
}
UNARY_OPERATORS = {
    TokenType.NOT: ast.UnaryOperator.NOT,
    TokenType.MINUS: ast.UnaryOperator.NEGATE,
    TokenType.PLUS: ast.UnaryOperator.POSITIVE,
}

LITERAL_TOKENS = (TokenType.INTEGER, TokenType.FLOAT, TokenType.STRING, TokenType.NONE)

# Nested parentheses and unary operators, counted together.
MAX_NESTING_DEPTH = 32


class TokenCursor:
    """
    Position in a token list with one token of lookahead.

    `previous()` returns the last consumed token, which tells callers
    which alternative of a multi-token `match` succeeded.
    """

    def __init__(self, tokens: List[Token]):
        if not tokens or tokens[-1].type != TokenType.EOF:
            raise ValueError("Token list must end with EOF")
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    def peek(self) -> Token:
        return self.tokens[self.index]

    def previous(self) -> Optional[Token]:
        if self.index == 0:
            return None
        return self.tokens[self.index - 1]

    def at_end(self) -> bool:
        return self.peek().type == TokenType.EOF

    def advance(self) -> Token:
        token = self.peek()
        if not self.at_end():
            self.index += 1
        return token

    def check(self, *types: TokenType) -> bool:
        return self.peek().type in types

    def match(self, *types: TokenType) -> bool:
        """Consume the current token if it is one of `types`."""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TokenType, expected: str) -> Token:
        """
        Consume a token of the given type or fail.

        Raises:
            UnexpectedEndError: If the input ran out
            UnexpectedTokenError: If a different token is found
        """
        if self.check(token_type):
            return self.advance()
        raise self.error(expected)

    def expect_closing(self, token_type: TokenType, delimiter: str) -> Token:
        """Consume a closing `]` or `)`, raising MissingDelimiterError otherwise."""
        if self.check(token_type):
            return self.advance()
        token = self.peek()
        raise MissingDelimiterError(delimiter, token.describe(), token.position)

    def descend(self) -> None:
        """
        Enter one nesting level.

        Raises:
            NestingTooDeepError: Past MAX_NESTING_DEPTH levels
        """
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise NestingTooDeepError(MAX_NESTING_DEPTH, self.previous().position)

    def ascend(self) -> None:
        self.depth -= 1

    def error(self, expected: str):
        """Build (not raise) the error for an unexpected current token."""
        token = self.peek()
        if token.type == TokenType.EOF:
            return UnexpectedEndError(expected, token.position)
        return UnexpectedTokenError(expected, token.describe(), token.position)


class QueryParser:
    """
    Query parser facade.

    Provides a simple interface for parsing statement strings into AST
    nodes. The parser itself holds no state; every parse routine receives
    the cursor it works on.
    """

    def parse(self, text: str) -> ast.Query:
        """
        Parse a statement string into a Query.

        Args:
            text: One statement; a trailing semicolon is allowed

        Returns:
            Query AST node

        Raises:
            LexError: If the text cannot be tokenized
            ParseError: If the statement is not valid
        """
        text = text.strip()
        if text.endswith(';'):
            text = text[:-1]
        return self.parse_tokens(tokenize(text))

    def parse_tokens(self, tokens: List[Token]) -> ast.Query:
        cursor = TokenCursor(tokens)
        try:
            query = self._parse_query(cursor)
        except RecursionError:
            raise NestingTooDeepError(MAX_NESTING_DEPTH, cursor.peek().position) from None
        if not cursor.at_end():
            raise cursor.error("end of statement")
        logger.debug("Parsed %s query", query.operation.value)
        return query

    def parse_expression(self, text: str) -> ast.Expression:
        """Parse a standalone expression, e.g. a WHERE condition."""
        cursor = TokenCursor(tokenize(text))
        try:
            expression = self._parse_or(cursor)
        except RecursionError:
            raise NestingTooDeepError(MAX_NESTING_DEPTH, cursor.peek().position) from None
        if not cursor.at_end():
            raise cursor.error("end of expression")
        return expression

    # ----- Statements -----

    def _parse_query(self, cursor: TokenCursor) -> ast.Query:
        if cursor.match(TokenType.GET):
            return self._parse_get(cursor)
        elif cursor.match(TokenType.PUT):
            return self._parse_put(cursor)
        elif cursor.match(TokenType.UPDATE):
            return self._parse_update(cursor)
        elif cursor.match(TokenType.CREATE):
            return self._parse_create(cursor)
        elif cursor.match(TokenType.DELETE):
            return self._parse_delete(cursor)
        raise cursor.error("GET, PUT, UPDATE, CREATE or DELETE")

    def _parse_get(self, cursor: TokenCursor) -> ast.Query:
        """GET * FROM table [WHERE expr]"""
        cursor.expect(TokenType.STAR, "'*'")
        cursor.expect(TokenType.FROM, "FROM")
        database, table = self._parse_table_ref(cursor)
        return ast.Query(
            operation=ast.Operation.GET,
            table=table,
            database=database,
            condition=self._parse_where(cursor)
        )

    def _parse_put(self, cursor: TokenCursor) -> ast.Query:
        """PUT [v1, v2, ...] IN table"""
        cursor.expect(TokenType.LEFT_BRACKET, "'['")
        values = []
        if not cursor.match(TokenType.RIGHT_BRACKET):
            values.append(self._parse_literal_value(cursor))
            while cursor.match(TokenType.COMMA):
                values.append(self._parse_literal_value(cursor))
            cursor.expect_closing(TokenType.RIGHT_BRACKET, "]")

        cursor.expect(TokenType.IN, "IN")
        database, table = self._parse_table_ref(cursor)
        return ast.Query(
            operation=ast.Operation.PUT,
            table=table,
            database=database,
            values=values
        )

    def _parse_update(self, cursor: TokenCursor) -> ast.Query:
        """UPDATE table SET col = expr [, col = expr ...] [WHERE expr]"""
        database, table = self._parse_table_ref(cursor)
        cursor.expect(TokenType.SET, "SET")

        assignments = [self._parse_assignment(cursor)]
        while cursor.match(TokenType.COMMA):
            assignments.append(self._parse_assignment(cursor))

        return ast.Query(
            operation=ast.Operation.UPDATE,
            table=table,
            database=database,
            assignments=assignments,
            condition=self._parse_where(cursor)
        )

    def _parse_assignment(self, cursor: TokenCursor) -> ast.Assignment:
        column = cursor.expect(TokenType.IDENTIFIER, "column name").value
        cursor.expect(TokenType.EQUAL, "'='")
        return ast.Assignment(column=column, value=self._parse_or(cursor))

    def _parse_create(self, cursor: TokenCursor) -> ast.Query:
        """CREATE DATABASE name | CREATE TABLE name [col: TYPE, ...]"""
        if cursor.match(TokenType.DATABASE):
            name = cursor.expect(TokenType.IDENTIFIER, "database name").value
            return ast.Query(operation=ast.Operation.CREATE, database=name)

        cursor.expect(TokenType.TABLE, "TABLE or DATABASE")
        database, table = self._parse_table_ref(cursor)
        return ast.Query(
            operation=ast.Operation.CREATE,
            table=table,
            database=database,
            columns=self._parse_column_defs(cursor)
        )

    def _parse_column_defs(self, cursor: TokenCursor) -> List[ast.ColumnDef]:
        cursor.expect(TokenType.LEFT_BRACKET, "'['")
        if cursor.check(TokenType.RIGHT_BRACKET):
            raise MalformedColumnError("a table needs at least one column", cursor.peek().position)

        columns = [self._parse_column_def(cursor)]
        while cursor.match(TokenType.COMMA):
            columns.append(self._parse_column_def(cursor))
        cursor.expect_closing(TokenType.RIGHT_BRACKET, "]")

        seen = set()
        for column in columns:
            if column.name in seen:
                raise MalformedColumnError(f"duplicate column '{column.name}'")
            seen.add(column.name)
        return columns

    def _parse_column_def(self, cursor: TokenCursor) -> ast.ColumnDef:
        """name ':' (NUMBER | TEXT)"""
        token = cursor.peek()
        if not cursor.match(TokenType.IDENTIFIER):
            raise MalformedColumnError(
                f"expected column name, found {token.describe()}", token.position
            )
        name = token.value

        token = cursor.peek()
        if not cursor.match(TokenType.COLON):
            raise MalformedColumnError(
                f"expected ':' after '{name}', found {token.describe()}", token.position
            )

        token = cursor.peek()
        if not cursor.match(TokenType.NUMBER, TokenType.TEXT):
            raise MalformedColumnError(
                f"expected NUMBER or TEXT for '{name}', found {token.describe()}",
                token.position
            )
        if cursor.previous().type == TokenType.NUMBER:
            field_type = FieldType.NUMBER
        else:
            field_type = FieldType.TEXT
        return ast.ColumnDef(name=name, field_type=field_type)

    def _parse_delete(self, cursor: TokenCursor) -> ast.Query:
        """DELETE TABLE name [WHERE expr] | DELETE DATABASE name"""
        if cursor.match(TokenType.DATABASE):
            name = cursor.expect(TokenType.IDENTIFIER, "database name").value
            return ast.Query(operation=ast.Operation.DELETE, database=name)

        cursor.expect(TokenType.TABLE, "TABLE or DATABASE")
        database, table = self._parse_table_ref(cursor)
        return ast.Query(
            operation=ast.Operation.DELETE,
            table=table,
            database=database,
            condition=self._parse_where(cursor)
        )

    # ----- Shared pieces -----

    def _parse_table_ref(self, cursor: TokenCursor) -> Tuple[Optional[str], str]:
        """table | database.table"""
        name = cursor.expect(TokenType.IDENTIFIER, "table name").value
        if cursor.match(TokenType.PERIOD):
            table = cursor.expect(TokenType.IDENTIFIER, "table name").value
            return name, table
        return None, name

    def _parse_where(self, cursor: TokenCursor) -> Optional[ast.Expression]:
        if cursor.match(TokenType.WHERE):
            return self._parse_or(cursor)
        return None

    def _parse_literal_value(self, cursor: TokenCursor):
        """A PUT value: optionally signed number, string or NONE."""
        sign = None
        if cursor.match(TokenType.MINUS, TokenType.PLUS):
            sign = cursor.previous().type
            if not cursor.check(TokenType.INTEGER, TokenType.FLOAT):
                raise cursor.error("number after sign")

        if not cursor.match(*LITERAL_TOKENS):
            raise cursor.error("literal value")

        value = cursor.previous().value
        if sign == TokenType.MINUS:
            value = -value
        return value

    # ----- Expressions (lowest to highest precedence) -----

    def _fold_binary(self, cursor: TokenCursor, operators: dict, operand) -> ast.Expression:
        """Left-associative fold shared by every binary precedence level."""
        expression = operand(cursor)
        while cursor.match(*operators):
            op = operators[cursor.previous().type]
            right = operand(cursor)
            expression = ast.BinaryOp(left=expression, op=op, right=right)
        return expression

    def _parse_or(self, cursor: TokenCursor) -> ast.Expression:
        return self._fold_binary(cursor, OR_OPERATORS, self._parse_and)

    def _parse_and(self, cursor: TokenCursor) -> ast.Expression:
        return self._fold_binary(cursor, AND_OPERATORS, self._parse_equality)

    def _parse_equality(self, cursor: TokenCursor) -> ast.Expression:
        return self._fold_binary(cursor, EQUALITY_OPERATORS, self._parse_comparison)

    def _parse_comparison(self, cursor: TokenCursor) -> ast.Expression:
        return self._fold_binary(cursor, COMPARISON_OPERATORS, self._parse_term)

    def _parse_term(self, cursor: TokenCursor) -> ast.Expression:
        return self._fold_binary(cursor, TERM_OPERATORS, self._parse_factor)

    def _parse_factor(self, cursor: TokenCursor) -> ast.Expression:
        return self._fold_binary(cursor, FACTOR_OPERATORS, self._parse_unary)

    def _parse_unary(self, cursor: TokenCursor) -> ast.Expression:
        if cursor.match(*UNARY_OPERATORS):
            op = UNARY_OPERATORS[cursor.previous().type]
            if (op == ast.UnaryOperator.NEGATE and cursor.check(TokenType.INTEGER)
                    and cursor.peek().value > INT64_MAX):
                # -9223372036854775808 has no positive counterpart
                return ast.Literal(-cursor.advance().value)

            cursor.descend()
            operand = self._parse_unary(cursor)
            cursor.ascend()
            return ast.UnaryOp(op=op, operand=operand)
        return self._parse_primary(cursor)

    def _parse_primary(self, cursor: TokenCursor) -> ast.Expression:
        if cursor.match(*LITERAL_TOKENS):
            token = cursor.previous()
            if token.type == TokenType.INTEGER and token.value > INT64_MAX:
                raise LexError(f"Integer literal {token.lexeme!r} out of range", token.position)
            return ast.Literal(token.value)

        if cursor.match(TokenType.IDENTIFIER):
            return ast.Identifier(cursor.previous().value)

        if cursor.match(TokenType.LEFT_PAREN):
            cursor.descend()
            expression = self._parse_or(cursor)
            cursor.expect_closing(TokenType.RIGHT_PAREN, ")")
            cursor.ascend()
            return expression

        raise cursor.error("expression")
