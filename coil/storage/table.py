"""
Columnar table implementation.

The Table class is responsible for:
- Storing values column by column
- Arity and type checking on insert
- Materializing rows on demand
- Filtered retrieval, update and deletion of rows

It does NOT handle:
- Query parsing
- Name resolution across databases
- Result formatting
"""

from typing import List, Dict, Any, Optional, Iterator, Sequence

from .types import Column
from ..parser.ast import Expression, Assignment
from ..executor.evaluator import ExpressionEvaluator
from ..utils.exceptions import (
    UnknownFieldError,
    NotEnoughValuesError,
    TooManyValuesError
)
from ..utils.validators import validate_identifier

Row = Dict[str, Any]


class Table:
    """
    A named set of equally long columns sharing a row index.

    Rows are never stored as such; `materialize_row` builds a
    name -> value mapping from the columns when one is needed.
    """

    def __init__(self, name: str, columns: List[Column]):
        """
        Create a new table.

        Args:
            name: Table name
            columns: Column objects defining the schema, in order

        Raises:
            ValueError: If there are no columns, duplicate column names or
                columns of different lengths
        """
        validate_identifier(name)

        if not columns:
            raise ValueError("Table must have at least one column")

        names = [col.name for col in columns]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate column names in table '{name}'")

        if len({len(col) for col in columns}) > 1:
            raise ValueError(f"Columns of table '{name}' have different lengths")

        self.name = name
        self.columns = list(columns)
        self._by_name = {col.name: col for col in self.columns}
        self._evaluator = ExpressionEvaluator()

    # ----- Schema -----

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def row_count(self) -> int:
        return len(self.columns[0])

    def get_column(self, column_name: str) -> Column:
        """
        Get Column object by name.

        Raises:
            UnknownFieldError: If column doesn't exist
        """
        if column_name not in self._by_name:
            raise UnknownFieldError(column_name, self.name)
        return self._by_name[column_name]

    # ----- Rows -----

    def insert(self, values: Sequence[Any]) -> None:
        """
        Append one row, given one value per column in column order.

        Nothing is appended unless every value passes its column's type
        check.

        Raises:
            NotEnoughValuesError: If fewer values than columns
            TooManyValuesError: If more values than columns
            FieldTypeError: If a value doesn't match its column type
        """
        if len(values) < self.column_count:
            raise NotEnoughValuesError(self.name, self.column_count, len(values))
        if len(values) > self.column_count:
            raise TooManyValuesError(self.name, self.column_count, len(values))

        for column, value in zip(self.columns, values):
            column.validate(value)

        for column, value in zip(self.columns, values):
            column.values.append(value)

    def materialize_row(self, index: int) -> Row:
        """
        Build the row at `index` from all columns.

        Raises:
            IndexError: If index is outside 0..row_count-1
        """
        if not 0 <= index < self.row_count:
            raise IndexError(
                f"Row index {index} out of range for table '{self.name}' "
                f"({self.row_count} rows)"
            )
        return {col.name: col.values[index] for col in self.columns}

    def scan(self) -> Iterator[Row]:
        """
        Iterate over all rows in storage order (full table scan).
        """
        for index in range(self.row_count):
            yield self.materialize_row(index)

    def _matching_indexes(self, condition: Optional[Expression]) -> List[int]:
        if condition is None:
            return list(range(self.row_count))
        return [
            index for index in range(self.row_count)
            if self._evaluator.matches(condition, self.materialize_row(index))
        ]

    def select(self, condition: Optional[Expression] = None) -> List[Row]:
        """
        Get rows, optionally filtered.

        Args:
            condition: Filter expression (None = all rows)

        Returns:
            Matching rows in storage order
        """
        return [self.materialize_row(i) for i in self._matching_indexes(condition)]

    def update(
        self,
        assignments: List[Assignment],
        condition: Optional[Expression] = None
    ) -> int:
        """
        Rewrite fields of the rows matching `condition`.

        Assignment expressions are evaluated against the row as it was
        before the update. All new values are computed and type checked
        before any column is written.

        Returns:
            Number of rows updated

        Raises:
            UnknownFieldError: If an assignment names a missing column
            FieldTypeError: If a new value doesn't match its column type
        """
        for assignment in assignments:
            self.get_column(assignment.column)

        pending = []
        for index in self._matching_indexes(condition):
            row = self.materialize_row(index)
            for assignment in assignments:
                value = self._evaluator.evaluate(assignment.value, row)
                column = self._by_name[assignment.column]
                column.validate(value)
                pending.append((column, index, value))

        for column, index, value in pending:
            column.values[index] = value

        return len({index for _, index, _ in pending})

    def delete(self, condition: Optional[Expression] = None) -> int:
        """
        Remove the rows matching `condition` (all rows if None).

        Remaining rows keep their relative order.

        Returns:
            Number of rows deleted
        """
        doomed = set(self._matching_indexes(condition))
        if not doomed:
            return 0

        for column in self.columns:
            column.values = [
                value for index, value in enumerate(column.values)
                if index not in doomed
            ]
        return len(doomed)

    # ----- Persistence -----

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'columns': [col.to_dict() for col in self.columns]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Table':
        return cls(
            name=data['name'],
            columns=[Column.from_dict(col) for col in data['columns']]
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return self.name == other.name and self.columns == other.columns

    def __repr__(self) -> str:
        return f"Table({self.name}, {self.row_count} rows, {self.column_count} columns)"
