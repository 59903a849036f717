"""
Result formatter for displaying query results.

Separates presentation logic from execution logic.
"""

from typing import List, Dict, Any

from tabulate import tabulate

from .executor.executor import QueryResult
from .parser.ast import Operation


def format_value(value: Any) -> str:
    """Render one field value the way the shell shows it."""
    if value is None:
        return "None"
    return str(value)


def format_get_result(rows: List[Dict[str, Any]], columns: List[str]) -> str:
    """
    Format GET results as an ASCII table.

    Args:
        rows: List of row dicts
        columns: Header names, in table column order

    Returns:
        Formatted string with table and row count
    """
    values = [[format_value(row.get(col)) for col in columns] for row in rows]

    # disable_numparse keeps the text exactly as format_value produced it
    table = tabulate(values, headers=columns, tablefmt='grid', disable_numparse=True)
    row_count = f"\n({len(rows)} row{'s' if len(rows) != 1 else ''})"

    return table + row_count


def format_modify_result(count: int, operation: str) -> str:
    """
    Format PUT/UPDATE/DELETE result.

    Args:
        count: Number of affected rows
        operation: Operation name ("PUT", "UPDATE", "DELETE")
    """
    return f"{operation} OK, {count} row{'s' if count != 1 else ''} affected"


def format_ddl_result(operation: str, object_name: str) -> str:
    """
    Format a CREATE/DELETE of a table or database.

    Args:
        operation: Operation name, e.g. "CREATE TABLE"
        object_name: Name of object created/dropped
    """
    return f"{operation} OK: {object_name}"


def format_result(result: QueryResult) -> str:
    """Pick the right format for any QueryResult."""
    op = result.operation

    if op == Operation.GET:
        return format_get_result(result.rows or [], result.table.column_names)

    if op in (Operation.PUT, Operation.UPDATE):
        return format_modify_result(result.affected, op.value)

    if op == Operation.CREATE:
        if result.table is not None:
            return format_ddl_result("CREATE TABLE", result.table.name)
        return format_ddl_result("CREATE DATABASE", result.database.name)

    if op == Operation.DELETE:
        if not result.dropped:
            return format_modify_result(result.affected, op.value)
        if result.table is not None:
            return format_ddl_result("DELETE TABLE", result.table.name)
        return format_ddl_result("DELETE DATABASE", result.database.name)

    raise ValueError(f"Unknown operation: {op}")
