"""
Field types and the Column container.

The Column class is the single source of truth for column metadata,
value storage and type validation. Values are plain Python objects:
None, str (Text), int (Integer) and float (Float).
"""

from typing import Any, List, Optional
from enum import Enum

from ..utils.validators import validate_identifier, validate_value_for_type
from ..utils.exceptions import FieldTypeError


class FieldType(Enum):
    """Declared column types."""
    TEXT = "TEXT"
    NUMBER = "NUMBER"

    @classmethod
    def from_string(cls, type_str: str) -> 'FieldType':
        """Convert string representation to FieldType enum."""
        return cls[type_str.upper()]

    def accepts(self, value: Any) -> bool:
        """Check whether a value can be stored in a column of this type."""
        try:
            validate_value_for_type(value, self.value)
        except FieldTypeError:
            return False
        return True


class Column:
    """
    A named, typed, append-only sequence of values.

    Every column of a table holds exactly one value per row, so all
    columns of a table share the same length.
    """

    def __init__(
        self,
        name: str,
        field_type: FieldType,
        values: Optional[List[Any]] = None
    ):
        validate_identifier(name)
        self.name = name
        self.field_type = field_type
        self.values: List[Any] = []
        for value in values or []:
            self.append(value)

    def validate(self, value: Any) -> None:
        """
        Validate a value against this column's type.

        Raises:
            FieldTypeError: If the value's kind doesn't match
        """
        try:
            validate_value_for_type(value, self.field_type.value)
        except FieldTypeError:
            raise FieldTypeError.for_column(self.name, self.field_type.value, value)

    def append(self, value: Any) -> None:
        """Validate and append a value."""
        self.validate(value)
        self.values.append(value)

    def __len__(self) -> int:
        return len(self.values)

    def to_dict(self) -> dict:
        """
        Serialize column to dictionary.

        Used for schema introspection and persistence.
        """
        return {
            'name': self.name,
            'type': self.field_type.value,
            'values': list(self.values)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Column':
        """Deserialize column from dictionary."""
        return cls(
            name=data['name'],
            field_type=FieldType(data['type']),
            values=data.get('values', [])
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Column):
            return NotImplemented
        return (
            self.name == other.name
            and self.field_type == other.field_type
            and _same_values(self.values, other.values)
        )

    def __repr__(self) -> str:
        return f"Column({self.name}, {self.field_type.value}, {len(self.values)} values)"


def _same_values(left: List[Any], right: List[Any]) -> bool:
    """Element-wise equality that also tells Integer 1 from Float 1.0."""
    if len(left) != len(right):
        return False
    return all(
        type(a) is type(b) and a == b
        for a, b in zip(left, right)
    )
