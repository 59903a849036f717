"""
Query executor - routes parsed queries to store operations.

Separates execution logic from:
- Parsing (parser layer)
- Storage (storage layer)
- User interaction (REPL)
"""

import logging
from dataclasses import dataclass
from typing import List, Dict, Any, Optional, Union

from ..storage.database import Catalog, Database
from ..storage.table import Table
from ..storage.types import Column
from ..parser import ast

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """
    What a query produced, handed to the presentation layer.

    - GET: table + rows
    - PUT / UPDATE / row-level DELETE: table + affected
    - CREATE TABLE / DELETE TABLE: table (the created or dropped one)
    - CREATE DATABASE / DELETE DATABASE: database
    """
    operation: ast.Operation
    table: Optional[Table] = None
    database: Optional[Database] = None
    rows: Optional[List[Dict[str, Any]]] = None
    affected: int = 0
    dropped: bool = False


class QueryExecutor:
    """
    Executes parsed queries against a catalog of databases.

    Dispatches on the query's operation; the table store does the actual
    work and raises the errors.
    """

    def __init__(self, catalog: Union[Catalog, Database]):
        """
        Initialize executor.

        Args:
            catalog: Catalog to execute against; a bare Database is
                wrapped in a Catalog with it as the active database
        """
        if isinstance(catalog, Database):
            catalog = Catalog(catalog)
        self.catalog = catalog

    @property
    def database(self) -> Database:
        """The active database."""
        return self.catalog.active

    def execute(self, query: ast.Query) -> QueryResult:
        """
        Execute a parsed query.

        Raises:
            NotFoundError: Missing table or database
            ConflictError: Duplicate table or database
            ArityError, FieldTypeError: Rejected insert or update
            EvalError: Condition could not be evaluated
        """
        logger.debug("Executing %s on %s", query.operation.value, query.table or query.database)

        if query.operation == ast.Operation.GET:
            return self._execute_get(query)
        elif query.operation == ast.Operation.PUT:
            return self._execute_put(query)
        elif query.operation == ast.Operation.UPDATE:
            return self._execute_update(query)
        elif query.operation == ast.Operation.CREATE:
            return self._execute_create(query)
        elif query.operation == ast.Operation.DELETE:
            return self._execute_delete(query)
        else:
            raise ValueError(f"Unknown operation: {query.operation}")

    # ----- Reads and writes -----

    def _execute_get(self, query: ast.Query) -> QueryResult:
        table = self.catalog.resolve_table(query.table, query.database)
        return QueryResult(
            operation=query.operation,
            table=table,
            rows=table.select(query.condition)
        )

    def _execute_put(self, query: ast.Query) -> QueryResult:
        table = self.catalog.resolve_table(query.table, query.database)
        table.insert(query.values)
        return QueryResult(operation=query.operation, table=table, affected=1)

    def _execute_update(self, query: ast.Query) -> QueryResult:
        table = self.catalog.resolve_table(query.table, query.database)
        count = table.update(query.assignments, query.condition)
        return QueryResult(operation=query.operation, table=table, affected=count)

    # ----- Schema changes -----

    def _execute_create(self, query: ast.Query) -> QueryResult:
        if query.targets_database:
            database = self.catalog.create_database(query.database)
            return QueryResult(operation=query.operation, database=database)

        database = self.catalog.get_database(query.database)
        columns = [Column(col.name, col.field_type) for col in query.columns]
        table = database.create_table(query.table, columns)
        return QueryResult(operation=query.operation, table=table, database=database)

    def _execute_delete(self, query: ast.Query) -> QueryResult:
        if query.targets_database:
            database = self.catalog.get_database(query.database)
            self.catalog.drop_database(query.database)
            return QueryResult(operation=query.operation, database=database, dropped=True)

        database = self.catalog.get_database(query.database)
        table = database.get_table(query.table)

        if query.condition is None:
            database.drop_table(query.table)
            return QueryResult(
                operation=query.operation,
                table=table,
                database=database,
                affected=table.row_count,
                dropped=True
            )

        count = table.delete(query.condition)
        return QueryResult(
            operation=query.operation,
            table=table,
            database=database,
            affected=count
        )
