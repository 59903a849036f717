"""
Lexer for the Coil query language.

Turns a raw statement into a list of Token objects ending with EOF.
Keywords are matched case-insensitively; identifiers keep their casing.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, List

from ..utils.exceptions import LexError
from ..utils.validators import INT64_MAX

logger = logging.getLogger(__name__)


class TokenType(Enum):
    """Token categories recognized by the lexer."""
    EOF = auto()

    # Operations
    GET = auto()
    PUT = auto()
    UPDATE = auto()
    CREATE = auto()
    DELETE = auto()

    # Keywords
    IN = auto()
    FROM = auto()
    WHERE = auto()
    TABLE = auto()
    DATABASE = auto()
    SET = auto()

    # Type keywords
    NUMBER = auto()
    TEXT = auto()

    # Operators
    EQUAL = auto()          # =
    NOT_EQUAL = auto()      # !=
    LESS = auto()           # <
    LESS_EQUAL = auto()     # <=
    GREATER = auto()        # >
    GREATER_EQUAL = auto()  # >=
    AND = auto()
    OR = auto()
    XOR = auto()
    NOT = auto()
    PLUS = auto()           # +
    MINUS = auto()          # -
    SLASH = auto()          # /
    CARET = auto()          # ^
    PERCENT = auto()        # %

    # Structural
    STAR = auto()           # * (select all, also multiplication)
    COMMA = auto()
    PERIOD = auto()
    COLON = auto()
    LEFT_BRACKET = auto()
    RIGHT_BRACKET = auto()
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()

    # Literals
    INTEGER = auto()
    FLOAT = auto()
    STRING = auto()
    IDENTIFIER = auto()
    NONE = auto()


KEYWORDS = {
    "get": TokenType.GET,
    "put": TokenType.PUT,
    "update": TokenType.UPDATE,
    "create": TokenType.CREATE,
    "delete": TokenType.DELETE,
    "in": TokenType.IN,
    "from": TokenType.FROM,
    "where": TokenType.WHERE,
    "table": TokenType.TABLE,
    "database": TokenType.DATABASE,
    "set": TokenType.SET,
    "number": TokenType.NUMBER,
    "text": TokenType.TEXT,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "xor": TokenType.XOR,
    "not": TokenType.NOT,
    "none": TokenType.NONE,
}

SINGLE_CHAR_TOKENS = {
    "*": TokenType.STAR,
    ",": TokenType.COMMA,
    ".": TokenType.PERIOD,
    ":": TokenType.COLON,
    "[": TokenType.LEFT_BRACKET,
    "]": TokenType.RIGHT_BRACKET,
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "=": TokenType.EQUAL,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "/": TokenType.SLASH,
    "^": TokenType.CARET,
    "%": TokenType.PERCENT,
}

WHITESPACE = " \t\r\n"

_HEX_RE = re.compile(r'^0[xX][0-9a-fA-F]+$')
_FLOAT_RE = re.compile(r'^[0-9]+\.[0-9]+$')
_DECIMAL_RE = re.compile(r'^[0-9]+$')


@dataclass(frozen=True)
class Token:
    """
    A lexical token.

    Attributes:
        type: TokenType
        lexeme: The original text fragment
        value: Parsed value for literals and identifiers
               (int, float, str, or None)
        position: 0-based offset of the token in the input
    """
    type: TokenType
    lexeme: str
    value: Any = None
    position: int = 0

    def describe(self) -> str:
        """Short description used in parse error messages."""
        if self.type == TokenType.EOF:
            return "end of input"
        return f"'{self.lexeme}'"


class Lexer:
    """
    Single-pass scanner over one statement.

    Uses one character of lookahead (peek) for the two-character
    operators.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index < len(self.text):
            return self.text[index]
        return ""

    def _advance(self) -> str:
        ch = self.text[self.pos]
        self.pos += 1
        return ch

    def tokenize(self) -> List[Token]:
        """
        Scan the whole input.

        Returns:
            Tokens in input order, terminated by an EOF token

        Raises:
            LexError: On an unterminated string, a malformed numeric
                literal or an unrecognized character
        """
        tokens: List[Token] = []

        while self.pos < len(self.text):
            start = self.pos
            ch = self._advance()

            if ch in WHITESPACE:
                continue

            if ch in SINGLE_CHAR_TOKENS:
                tokens.append(Token(SINGLE_CHAR_TOKENS[ch], ch, None, start))
            elif ch == "<":
                tokens.append(self._one_or_two(start, "<", TokenType.LESS, TokenType.LESS_EQUAL))
            elif ch == ">":
                tokens.append(self._one_or_two(start, ">", TokenType.GREATER, TokenType.GREATER_EQUAL))
            elif ch == "!":
                if self._peek() != "=":
                    found = repr(self._peek()) if self._peek() else "end of input"
                    raise LexError(f"Expected '=' after '!', found {found}", start)
                self._advance()
                tokens.append(Token(TokenType.NOT_EQUAL, "!=", None, start))
            elif ch == '"':
                tokens.append(self._string(start))
            elif ch.isdigit():
                tokens.append(self._number(start, tokens))
            elif ch.isalpha() or ch == "_":
                tokens.append(self._word(start))
            else:
                raise LexError(f"Unrecognized character {ch!r}", start)

        tokens.append(Token(TokenType.EOF, "", None, self.pos))
        logger.debug("Lexed %d tokens from %r", len(tokens), self.text)
        return tokens

    def _one_or_two(self, start: int, ch: str, single: TokenType, with_equal: TokenType) -> Token:
        if self._peek() == "=":
            self._advance()
            return Token(with_equal, ch + "=", None, start)
        return Token(single, ch, None, start)

    def _string(self, start: int) -> Token:
        end = self.text.find('"', self.pos)
        if end == -1:
            raise LexError("Unterminated string", start)
        value = self.text[self.pos:end]
        self.pos = end + 1
        return Token(TokenType.STRING, self.text[start:self.pos], value, start)

    def _number(self, start: int, tokens: List[Token]) -> Token:
        # Take the whole alphanumeric run so "12ab" is rejected as one
        # literal rather than split into 12 and an identifier.
        while self._peek() and (self._peek().isalnum() or self._peek() in "_."):
            self._advance()
        lexeme = self.text[start:self.pos]

        if _HEX_RE.match(lexeme):
            value = int(lexeme[2:], 16)
            token_type = TokenType.INTEGER
        elif _FLOAT_RE.match(lexeme):
            value = float(lexeme)
            token_type = TokenType.FLOAT
        elif _DECIMAL_RE.match(lexeme):
            value = int(lexeme)
            token_type = TokenType.INTEGER
        else:
            raise LexError(f"Malformed numeric literal {lexeme!r}", start)

        # 2^63 itself is only the magnitude of INT64_MIN; the parser folds it
        # into the preceding minus.
        limit = INT64_MAX + 1 if tokens and tokens[-1].type == TokenType.MINUS else INT64_MAX
        if token_type == TokenType.INTEGER and value > limit:
            raise LexError(f"Integer literal {lexeme!r} out of range", start)

        return Token(token_type, lexeme, value, start)

    def _word(self, start: int) -> Token:
        while self._peek() and (self._peek().isalnum() or self._peek() == "_"):
            self._advance()
        lexeme = self.text[start:self.pos]

        keyword = KEYWORDS.get(lexeme.lower())
        if keyword is not None:
            return Token(keyword, lexeme, None, start)
        return Token(TokenType.IDENTIFIER, lexeme, lexeme, start)


def tokenize(text: str) -> List[Token]:
    """Convenience function: lex a statement in one call."""
    return Lexer(text).tokenize()
