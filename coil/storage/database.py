"""
Database and Catalog classes.

The Database is the container for tables, providing:
- Table creation and deletion
- Table lookup
- Conversion to and from the persisted document

The Catalog holds every top-level Database of a session and knows which
one is active, i.e. which one unqualified table names refer to.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional

from .table import Table
from .types import Column
from ..utils.exceptions import (
    TableNotFoundError,
    TableAlreadyExistsError,
    DatabaseNotFoundError,
    DatabaseAlreadyExistsError,
    ConflictError
)
from ..utils.validators import validate_identifier

logger = logging.getLogger(__name__)


@dataclass
class DatabaseConfig:
    """Where a database keeps its file."""
    root_path: Path = field(default_factory=lambda: Path("."))

    def __post_init__(self):
        self.root_path = Path(self.root_path)

    def to_dict(self) -> Dict[str, Any]:
        return {'root_path': str(self.root_path)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DatabaseConfig':
        return cls(root_path=Path(data['root_path']))


class Database:
    """
    Represents a database containing multiple tables.

    Responsibilities:
    - Manage table lifecycle (create, drop, lookup)
    - Provide database-wide introspection

    Does NOT:
    - Parse statements
    - Execute queries
    - Format results
    """

    def __init__(self, name: str = "default", config: Optional[DatabaseConfig] = None):
        validate_identifier(name)
        self.name = name
        self.config = config or DatabaseConfig()
        self._tables: Dict[str, Table] = {}

    @property
    def path(self) -> Path:
        """File this database is saved to."""
        return self.config.root_path / f"{self.name}.json"

    def create_table(self, table_name: str, columns: List[Column]) -> Table:
        """
        Create a new, empty table in the database.

        Returns:
            The created Table object

        Raises:
            TableAlreadyExistsError: If table already exists
            InvalidIdentifierError: If table name is invalid
        """
        validate_identifier(table_name)

        if table_name in self._tables:
            raise TableAlreadyExistsError(table_name)

        table = Table(table_name, columns)
        self._tables[table_name] = table
        logger.info("Created table %s.%s", self.name, table_name)
        return table

    def add_table(self, table: Table) -> None:
        """Register an existing Table object (used when loading)."""
        if table.name in self._tables:
            raise TableAlreadyExistsError(table.name)
        self._tables[table.name] = table

    def drop_table(self, table_name: str) -> None:
        """
        Remove a table from the database.

        Raises:
            TableNotFoundError: If table doesn't exist
        """
        if table_name not in self._tables:
            raise TableNotFoundError(table_name, self.name)

        del self._tables[table_name]
        logger.info("Dropped table %s.%s", self.name, table_name)

    def get_table(self, table_name: str) -> Table:
        """
        Get a table by name.

        Raises:
            TableNotFoundError: If table doesn't exist
        """
        if table_name not in self._tables:
            raise TableNotFoundError(table_name, self.name)

        return self._tables[table_name]

    def has_table(self, table_name: str) -> bool:
        """Check if a table exists."""
        return table_name in self._tables

    def list_tables(self) -> List[str]:
        """Get list of all table names, in creation order."""
        return list(self._tables.keys())

    @property
    def tables(self) -> List[Table]:
        return list(self._tables.values())

    def table_count(self) -> int:
        """Return number of tables in database."""
        return len(self._tables)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get database statistics.

        Returns:
            Dict with database statistics
        """
        return {
            'name': self.name,
            'table_count': len(self._tables),
            'tables': {
                name: {
                    'row_count': table.row_count,
                    'column_count': table.column_count
                }
                for name, table in self._tables.items()
            }
        }

    def to_dict(self) -> Dict[str, Any]:
        """The persisted document: name, config and tables in order."""
        return {
            'name': self.name,
            'config': self.config.to_dict(),
            'tables': [table.to_dict() for table in self._tables.values()]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Database':
        database = cls(data['name'], DatabaseConfig.from_dict(data['config']))
        for table_data in data['tables']:
            database.add_table(Table.from_dict(table_data))
        return database

    def __eq__(self, other) -> bool:
        if not isinstance(other, Database):
            return NotImplemented
        return (
            self.name == other.name
            and self.config == other.config
            and self.tables == other.tables
        )

    def __repr__(self) -> str:
        return f"Database({self.name}, {len(self._tables)} tables)"


class Catalog:
    """
    The top-level databases of a session.

    Unqualified table names resolve against the active database; a
    qualified name `db.table` resolves against database `db`.
    """

    def __init__(self, active: Optional[Database] = None, config: Optional[DatabaseConfig] = None):
        self.config = config or (active.config if active else DatabaseConfig())
        active = active or Database("default", self.config)
        self._databases: Dict[str, Database] = {active.name: active}
        self.active_name = active.name

    @property
    def active(self) -> Database:
        return self._databases[self.active_name]

    def create_database(self, name: str) -> Database:
        """
        Register a new, empty database sharing the catalog's root path.

        Raises:
            DatabaseAlreadyExistsError: If the name is taken
        """
        validate_identifier(name)
        if name in self._databases:
            raise DatabaseAlreadyExistsError(name)

        database = Database(name, DatabaseConfig(self.config.root_path))
        self._databases[name] = database
        logger.info("Created database %s", name)
        return database

    def add_database(self, database: Database) -> None:
        """Register an already built database, e.g. one loaded from disk."""
        if database.name in self._databases:
            raise DatabaseAlreadyExistsError(database.name)
        self._databases[database.name] = database

    def drop_database(self, name: str) -> None:
        """
        Remove a database.

        Raises:
            DatabaseNotFoundError: If it doesn't exist
            ConflictError: If it is the active database
        """
        if name not in self._databases:
            raise DatabaseNotFoundError(name)
        if name == self.active_name:
            raise ConflictError(f"Cannot delete the active database '{name}'")

        del self._databases[name]
        logger.info("Dropped database %s", name)

    def get_database(self, name: Optional[str] = None) -> Database:
        """
        Get a database by name, or the active one when name is None.

        Raises:
            DatabaseNotFoundError: If it doesn't exist
        """
        if name is None:
            return self.active
        if name not in self._databases:
            raise DatabaseNotFoundError(name)
        return self._databases[name]

    def use(self, name: str) -> Database:
        """
        Make another database the active one.

        Raises:
            DatabaseNotFoundError: If it doesn't exist
        """
        database = self.get_database(name)
        self.active_name = name
        logger.info("Active database is now %s", name)
        return database

    @property
    def databases(self) -> List[Database]:
        return list(self._databases.values())

    def has_database(self, name: str) -> bool:
        return name in self._databases

    def list_databases(self) -> List[str]:
        return list(self._databases.keys())

    def resolve_table(self, table_name: str, database_name: Optional[str] = None) -> Table:
        """
        Find a table, qualified or not.

        Raises:
            DatabaseNotFoundError: If the named database doesn't exist
            TableNotFoundError: If the table doesn't exist
        """
        return self.get_database(database_name).get_table(table_name)

    def __repr__(self) -> str:
        return f"Catalog({len(self._databases)} databases, active={self.active_name})"
