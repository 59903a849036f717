"""
Abstract Syntax Tree (AST) node definitions.

These dataclasses represent parsed statements in a structured form,
decoupling the parser from the executor. Expressions form an owned tree:
each node holds its children directly and nothing is shared.
"""

from dataclasses import dataclass
from typing import List, Optional, Any, Union
from enum import Enum

from ..storage.types import FieldType


# ----- Enums -----

class Operation(Enum):
    """Statement kinds."""
    GET = "GET"
    PUT = "PUT"
    UPDATE = "UPDATE"
    CREATE = "CREATE"
    DELETE = "DELETE"


class UnaryOperator(Enum):
    NOT = "NOT"
    NEGATE = "-"
    POSITIVE = "+"


class BinaryOperator(Enum):
    # Logical
    OR = "OR"
    XOR = "XOR"
    AND = "AND"
    # Equality
    EQUAL = "="
    NOT_EQUAL = "!="
    # Comparison
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="
    # Arithmetic
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    POWER = "^"
    MODULO = "%"

    @property
    def is_logical(self) -> bool:
        return self in (BinaryOperator.AND, BinaryOperator.OR, BinaryOperator.XOR)

    @property
    def is_equality(self) -> bool:
        return self in (BinaryOperator.EQUAL, BinaryOperator.NOT_EQUAL)

    @property
    def is_ordering(self) -> bool:
        return self in (
            BinaryOperator.LESS, BinaryOperator.LESS_EQUAL,
            BinaryOperator.GREATER, BinaryOperator.GREATER_EQUAL
        )


# ----- Expression Nodes -----

@dataclass(frozen=True)
class Literal:
    """Literal value (Integer, Float, Text or None)."""
    value: Any

    def __str__(self):
        if self.value is None:
            return "NONE"
        if isinstance(self.value, str):
            return f'"{self.value}"'
        return str(self.value)


@dataclass(frozen=True)
class Identifier:
    """Reference to a field of the row being evaluated."""
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class UnaryOp:
    """Prefix operator applied to one operand."""
    op: UnaryOperator
    operand: 'Expression'

    def __str__(self):
        if self.op == UnaryOperator.NOT:
            return f"(NOT {self.operand})"
        return f"({self.op.value}{self.operand})"


@dataclass(frozen=True)
class BinaryOp:
    """Binary operation: left op right."""
    left: 'Expression'
    op: BinaryOperator
    right: 'Expression'

    def __str__(self):
        return f"({self.left} {self.op.value} {self.right})"


Expression = Union[Literal, Identifier, UnaryOp, BinaryOp]


# ----- Statement parts -----

@dataclass
class ColumnDef:
    """Column declaration in CREATE TABLE."""
    name: str
    field_type: FieldType


@dataclass
class Assignment:
    """`column = expression` in UPDATE ... SET."""
    column: str
    value: Expression


# ----- Statement -----

@dataclass
class Query:
    """
    A parsed statement.

    Which optional parts are set depends on the operation:
    - GET: table, condition
    - PUT: table, values
    - UPDATE: table, assignments, condition
    - CREATE: table + columns, or database
    - DELETE: table (+ condition), or database

    `database` is also set when a table name is qualified (`db.table`).
    """
    operation: Operation
    table: Optional[str] = None
    database: Optional[str] = None
    columns: Optional[List[ColumnDef]] = None
    values: Optional[List[Any]] = None
    assignments: Optional[List[Assignment]] = None
    condition: Optional[Expression] = None

    @property
    def targets_database(self) -> bool:
        """True for CREATE DATABASE / DELETE DATABASE."""
        return self.table is None and self.database is not None
