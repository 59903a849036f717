"""
Unit tests for the query executor.
"""

import pytest
from coil.storage.database import Database, Catalog
from coil.parser.parser import QueryParser
from coil.parser import ast
from coil.executor.executor import QueryExecutor, QueryResult
from coil.utils.exceptions import (
    TableNotFoundError,
    TableAlreadyExistsError,
    DatabaseNotFoundError,
    DatabaseAlreadyExistsError,
    ConflictError,
    NotEnoughValuesError,
    FieldTypeError,
    UnknownFieldError
)


class TestExecutor:
    """Test query executor."""

    def setup_method(self):
        """Set up database, parser, and executor for each test."""
        self.db = Database("test")
        self.parser = QueryParser()
        self.executor = QueryExecutor(self.db)

    def run(self, text) -> QueryResult:
        return self.executor.execute(self.parser.parse(text))

    def create_customers(self):
        self.run("CREATE TABLE customers [Name: TEXT, ID: NUMBER]")
        self.run('PUT ["james", 1] IN customers')
        self.run('PUT ["jim", 2] IN customers')
        self.run('PUT ["jimmy", 3] IN customers')

    def test_wraps_database_in_catalog(self):
        assert isinstance(self.executor.catalog, Catalog)
        assert self.executor.database is self.db

    def test_execute_create_table(self):
        result = self.run("CREATE TABLE customers [Name: TEXT, ID: NUMBER]")

        assert result.operation == ast.Operation.CREATE
        assert result.table.name == "customers"
        assert self.db.has_table("customers")
        assert self.db.get_table("customers").column_names == ["Name", "ID"]

    def test_execute_create_duplicate_table(self):
        self.create_customers()
        with pytest.raises(TableAlreadyExistsError):
            self.run("CREATE TABLE customers [Other: TEXT]")

        assert self.db.get_table("customers").column_names == ["Name", "ID"]
        assert self.db.get_table("customers").row_count == 3

    def test_execute_put(self):
        self.run("CREATE TABLE customers [Name: TEXT, ID: NUMBER]")
        result = self.run('PUT ["james", 1] IN customers')

        assert result.affected == 1
        assert self.db.get_table("customers").row_count == 1

    def test_execute_put_arity_error(self):
        self.run("CREATE TABLE customers [Name: TEXT, ID: NUMBER]")
        with pytest.raises(NotEnoughValuesError):
            self.run('PUT ["james"] IN customers')

    def test_execute_put_type_error(self):
        self.run("CREATE TABLE customers [Name: TEXT, ID: NUMBER]")
        with pytest.raises(FieldTypeError):
            self.run('PUT [1, "james"] IN customers')
        assert self.db.get_table("customers").row_count == 0

    def test_execute_put_missing_table(self):
        with pytest.raises(TableNotFoundError):
            self.run('PUT ["james", 1] IN customers')

    def test_execute_get(self):
        self.create_customers()
        result = self.run("GET * FROM customers")

        assert result.operation == ast.Operation.GET
        assert result.table is self.db.get_table("customers")
        assert len(result.rows) == 3

    def test_execute_get_where(self):
        self.create_customers()
        result = self.run("GET * FROM customers WHERE ID > 1")

        assert [r["ID"] for r in result.rows] == [2, 3]

    def test_execute_get_missing_table(self):
        with pytest.raises(TableNotFoundError):
            self.run("GET * FROM customers")

    def test_execute_get_unknown_field(self):
        self.create_customers()
        with pytest.raises(UnknownFieldError):
            self.run("GET * FROM customers WHERE Age = 1")

    def test_execute_update(self):
        self.create_customers()
        result = self.run('UPDATE customers SET Name = "bob" WHERE ID = 2')

        assert result.affected == 1
        rows = self.run('GET * FROM customers WHERE Name = "bob"').rows
        assert rows == [{"Name": "bob", "ID": 2}]

    def test_execute_update_no_match(self):
        self.create_customers()
        result = self.run('UPDATE customers SET Name = "bob" WHERE ID = 99')
        assert result.affected == 0

    def test_execute_update_expression(self):
        self.create_customers()
        self.run("UPDATE customers SET ID = ID + 100")

        ids = [r["ID"] for r in self.run("GET * FROM customers").rows]
        assert ids == [101, 102, 103]

    def test_execute_delete_rows(self):
        self.create_customers()
        result = self.run("DELETE TABLE customers WHERE ID != 2")

        assert result.affected == 2
        assert not result.dropped
        assert self.db.has_table("customers")
        assert [r["Name"] for r in self.run("GET * FROM customers").rows] == ["jim"]

    def test_execute_delete_table(self):
        self.create_customers()
        result = self.run("DELETE TABLE customers")

        assert result.dropped
        assert result.affected == 3
        assert not self.db.has_table("customers")

    def test_execute_delete_missing_table(self):
        with pytest.raises(TableNotFoundError):
            self.run("DELETE TABLE customers")


class TestDatabaseStatements:
    """Test CREATE/DELETE DATABASE and qualified table names."""

    def setup_method(self):
        self.catalog = Catalog(Database("main"))
        self.parser = QueryParser()
        self.executor = QueryExecutor(self.catalog)

    def run(self, text):
        return self.executor.execute(self.parser.parse(text))

    def test_create_database(self):
        result = self.run("CREATE DATABASE shop")

        assert result.database.name == "shop"
        assert self.catalog.has_database("shop")

    def test_create_duplicate_database(self):
        self.run("CREATE DATABASE shop")
        with pytest.raises(DatabaseAlreadyExistsError):
            self.run("CREATE DATABASE shop")

    def test_qualified_tables(self):
        self.run("CREATE DATABASE shop")
        self.run("CREATE TABLE shop.orders [ID: NUMBER]")
        self.run("PUT [7] IN shop.orders")

        assert self.run("GET * FROM shop.orders").rows == [{"ID": 7}]
        assert not self.catalog.active.has_table("orders")
        with pytest.raises(TableNotFoundError):
            self.run("GET * FROM orders")

    def test_same_table_name_in_two_databases(self):
        self.run("CREATE DATABASE shop")
        self.run("CREATE TABLE orders [ID: NUMBER]")
        self.run("CREATE TABLE shop.orders [ID: NUMBER]")
        self.run("PUT [1] IN orders")

        assert self.run("GET * FROM shop.orders").rows == []
        assert self.run("GET * FROM main.orders").rows == [{"ID": 1}]

    def test_unknown_database(self):
        with pytest.raises(DatabaseNotFoundError):
            self.run("GET * FROM shop.orders")

    def test_delete_database(self):
        self.run("CREATE DATABASE shop")
        result = self.run("DELETE DATABASE shop")

        assert result.dropped
        assert not self.catalog.has_database("shop")

    def test_delete_missing_database(self):
        with pytest.raises(DatabaseNotFoundError):
            self.run("DELETE DATABASE shop")

    def test_delete_active_database(self):
        with pytest.raises(ConflictError):
            self.run("DELETE DATABASE main")
