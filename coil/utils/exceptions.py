"""
Centralized exception hierarchy for Coil.

All custom exceptions inherit from CoilError so callers (the REPL in
particular) can catch every query failure in one place. The intermediate
classes (LexError, ParseError, ArityError, ...) are the error kinds the
front end reports; the leaf classes carry the details.
"""


class CoilError(Exception):
    """Base exception for all Coil errors."""

    kind = "Error"


# ----- Lexing -----

class LexError(CoilError):
    """Raised for an unterminated string, a malformed literal or an unknown character."""

    kind = "LexError"

    def __init__(self, message: str, position: int = None):
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)


# ----- Parsing -----

class ParseError(CoilError):
    """Base class for grammar violations."""

    kind = "ParseError"

    def __init__(self, message: str, position: int = None):
        self.position = position
        if position is not None:
            message = f"{message} at position {position}"
        super().__init__(message)


class UnexpectedTokenError(ParseError):
    """Raised when the parser finds a token it cannot use here."""

    def __init__(self, expected: str, found: str, position: int = None):
        self.expected = expected
        self.found = found
        super().__init__(f"Expected {expected}, found {found}", position)


class UnexpectedEndError(ParseError):
    """Raised when the statement ends before the grammar is satisfied."""

    def __init__(self, expected: str, position: int = None):
        self.expected = expected
        super().__init__(f"Unexpected end of input, expected {expected}", position)


class MissingDelimiterError(ParseError):
    """Raised when a closing bracket or parenthesis is missing."""

    def __init__(self, delimiter: str, found: str, position: int = None):
        self.delimiter = delimiter
        self.found = found
        super().__init__(f"Missing closing '{delimiter}', found {found}", position)


class MalformedColumnError(ParseError):
    """Raised for a bad column declaration in CREATE TABLE."""

    def __init__(self, message: str, position: int = None):
        super().__init__(f"Malformed column declaration: {message}", position)


class NestingTooDeepError(ParseError):
    """Raised when parentheses or unary operators nest past the parser's limit."""

    def __init__(self, limit: int, position: int = None):
        self.limit = limit
        super().__init__(f"Expression nested deeper than {limit} levels", position)


# ----- Insertion arity -----

class ArityError(CoilError):
    """Raised when an inserted row does not have one value per column."""

    kind = "ArityError"

    def __init__(self, table_name: str, expected: int, actual: int, message: str):
        self.table_name = table_name
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class NotEnoughValuesError(ArityError):
    def __init__(self, table_name: str, expected: int, actual: int):
        super().__init__(
            table_name, expected, actual,
            f"Not enough values for table '{table_name}': "
            f"expected {expected}, got {actual}"
        )


class TooManyValuesError(ArityError):
    def __init__(self, table_name: str, expected: int, actual: int):
        super().__init__(
            table_name, expected, actual,
            f"Too many values for table '{table_name}': "
            f"expected {expected}, got {actual}"
        )


# ----- Types -----

class FieldTypeError(CoilError):
    """
    Raised when a value does not fit a column type, or when an operator
    is applied to operands of incompatible kinds.
    """

    kind = "TypeError"

    def __init__(self, message: str):
        super().__init__(message)

    @classmethod
    def for_column(cls, column_name: str, expected_type: str, actual_value) -> 'FieldTypeError':
        error = cls(
            f"Type mismatch for column '{column_name}': "
            f"expected {expected_type}, got {describe_value(actual_value)}"
        )
        error.column_name = column_name
        error.expected_type = expected_type
        error.actual_value = actual_value
        return error


# ----- Lookup -----

class NotFoundError(CoilError):
    kind = "NotFoundError"


class TableNotFoundError(NotFoundError):
    """Raised when attempting to access a non-existent table."""

    def __init__(self, table_name: str, database_name: str = None):
        self.table_name = table_name
        self.database_name = database_name
        msg = f"Table '{table_name}' does not exist"
        if database_name:
            msg += f" in database '{database_name}'"
        super().__init__(msg)


class DatabaseNotFoundError(NotFoundError):
    """Raised when attempting to access a non-existent database."""

    def __init__(self, database_name: str):
        self.database_name = database_name
        super().__init__(f"Database '{database_name}' does not exist")


# ----- Conflicts -----

class ConflictError(CoilError):
    kind = "ConflictError"


class TableAlreadyExistsError(ConflictError):
    """Raised when attempting to create a table that already exists."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Table '{table_name}' already exists")


class DatabaseAlreadyExistsError(ConflictError):
    """Raised when attempting to create a database that already exists."""

    def __init__(self, database_name: str):
        self.database_name = database_name
        super().__init__(f"Database '{database_name}' already exists")


# ----- Evaluation -----

class EvalError(CoilError):
    kind = "EvalError"


class UnknownFieldError(EvalError):
    """Raised when a condition references a field the row does not have."""

    def __init__(self, field_name: str, table_name: str = None):
        self.field_name = field_name
        self.table_name = table_name
        msg = f"Field '{field_name}' does not exist"
        if table_name:
            msg += f" in table '{table_name}'"
        super().__init__(msg)


class DivisionByZeroError(EvalError):
    def __init__(self, operator: str):
        self.operator = operator
        super().__init__(f"Division by zero in '{operator}'")


class IntegerOverflowError(EvalError):
    """Raised when integer arithmetic leaves the signed 64-bit range."""

    def __init__(self, operator: str, left, right=None):
        self.operator = operator
        self.left = left
        self.right = right
        if right is None:
            operation = f"{operator}{left}"
        else:
            operation = f"{left} {operator} {right}"
        super().__init__(f"Integer overflow in {operation}")


class ExpressionTooDeepError(EvalError):
    """Raised when an expression tree is too deep to evaluate."""

    def __init__(self):
        super().__init__("Expression is nested too deeply to evaluate")


# ----- Names -----

class InvalidIdentifierError(CoilError):
    """Raised when a table/column/database name is invalid."""

    kind = "NameError"

    def __init__(self, identifier: str, reason: str):
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Invalid identifier '{identifier}': {reason}")


# ----- Persistence -----

class CorruptDatabaseError(CoilError):
    """Raised when a persisted database document cannot be loaded."""

    kind = "CorruptDatabaseError"

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load database from '{path}': {reason}")


def describe_value(value) -> str:
    """Human readable kind + value, used in type error messages."""
    if value is None:
        return "NONE"
    if isinstance(value, bool):
        return f"BOOLEAN ({value})"
    if isinstance(value, int):
        return f"INTEGER ({value})"
    if isinstance(value, float):
        return f"FLOAT ({value})"
    if isinstance(value, str):
        return f"TEXT ({value!r})"
    return type(value).__name__
