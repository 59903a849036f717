"""
Reusable validation functions used across Coil.

These validators are the single source of truth for identifier and
value-kind rules, shared by the storage layer and the evaluator.
"""

import re
from typing import Any

from .exceptions import InvalidIdentifierError, FieldTypeError

_IDENTIFIER_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# Integer field values are signed 64-bit.
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# Words the lexer turns into keywords can never come back as identifiers.
RESERVED_WORDS = {
    'GET', 'PUT', 'UPDATE', 'CREATE', 'DELETE', 'IN', 'FROM', 'WHERE',
    'TABLE', 'DATABASE', 'NUMBER', 'TEXT', 'SET', 'AND', 'OR', 'XOR',
    'NOT', 'NONE'
}


def validate_identifier(name: str) -> bool:
    """
    Validates table/column/database names.

    Rules:
    - Must start with a letter or underscore
    - Can contain letters, numbers, and underscores
    - Must be between 1 and 64 characters
    - Cannot be a reserved word

    Raises:
        InvalidIdentifierError: If the identifier is invalid
    """
    if not name:
        raise InvalidIdentifierError(name, "Identifier cannot be empty")

    if len(name) > 64:
        raise InvalidIdentifierError(name, "Identifier too long (max 64 characters)")

    if name.upper() in RESERVED_WORDS:
        raise InvalidIdentifierError(name, "Cannot use a reserved word")

    if not _IDENTIFIER_RE.match(name):
        raise InvalidIdentifierError(
            name,
            "Must start with letter or underscore, and contain only letters, numbers, and underscores"
        )

    return True


def is_number(value: Any) -> bool:
    """True for Integer and Float field values (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_text(value: Any) -> bool:
    return isinstance(value, str)


def fits_int64(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def validate_value_for_type(value: Any, field_type: str) -> bool:
    """
    Validates that a value matches a declared column type.

    None is compatible with every type; Float and signed 64-bit Integer
    values satisfy NUMBER; only strings satisfy TEXT.

    Raises:
        FieldTypeError: If value doesn't match the expected type
    """
    if value is None:
        return True

    field_type = field_type.upper()

    if field_type == 'NUMBER':
        if not is_number(value):
            raise FieldTypeError.for_column('', field_type, value)
        if isinstance(value, int) and not fits_int64(value):
            raise FieldTypeError.for_column('', field_type, value)
        return True

    elif field_type == 'TEXT':
        if not is_text(value):
            raise FieldTypeError.for_column('', field_type, value)
        return True

    else:
        raise ValueError(f"Unknown field type: {field_type}")
