"""
REPL (Read-Eval-Print Loop) for interactive queries.

Provides the line-oriented command-line interface: every input line is
one statement, run through lexer -> parser -> executor, and the result
or error is printed before the next prompt.
"""

import sys
import logging
from typing import Optional

from .storage.database import Catalog
from .storage.persistence import save_database
from .parser.parser import QueryParser
from .executor.executor import QueryExecutor
from .formatter import format_result
from .utils.exceptions import CoilError

logger = logging.getLogger(__name__)

PROMPT = "coil> "
QUIT_COMMANDS = {'quit', 'exit', '.quit', '.exit', 'q'}


def read_line_raw(prompt):
    """
    Read a line using raw stdin to avoid readline interference.

    Raises:
        EOFError: When stdin is exhausted
    """
    if sys.stdin.isatty():
        sys.stdout.write(prompt)
        sys.stdout.flush()
    line = sys.stdin.readline()
    if not line:  # EOF
        raise EOFError()
    return line.rstrip('\n\r')


def print_banner():
    """Print welcome banner."""
    print("=" * 60)
    print("  Coil - Interactive Query Shell")
    print("=" * 60)
    print("One statement per line. Special commands:")
    print("  .help     - Show help")
    print("  .tables   - List tables of the active database")
    print("  .schema TABLE - Show table schema")
    print("  .exit or .quit - Exit REPL")
    print("=" * 60)
    print()


def print_help():
    """Print help message."""
    print("\n--- Help ---")
    print("Statements:")
    print("  CREATE TABLE name [col: NUMBER, col: TEXT, ...]")
    print("  CREATE DATABASE name")
    print("  PUT [value, ...] IN table")
    print("  GET * FROM table [WHERE condition]")
    print("  UPDATE table SET col = expr [, col = expr] [WHERE condition]")
    print("  DELETE TABLE table [WHERE condition]")
    print("  DELETE DATABASE name")
    print("Tables in another database are written db.table.")
    print("\nSpecial Commands:")
    print("  .help      - Show this help")
    print("  .tables    - List tables of the active database")
    print("  .schema TABLE - Show schema for TABLE")
    print("  .databases - List databases")
    print("  .stats     - Show database statistics")
    print("  .use NAME  - Make NAME the active database")
    print("  .save      - Save every database to <root>/<name>.json")
    print("  .exit / .quit - Exit REPL")
    print()


def handle_special_command(command: str, catalog: Catalog) -> bool:
    """
    Handle special REPL commands (starting with .).

    Returns:
        True if should continue REPL, False to exit
    """
    parts = command.strip().split()
    name = parts[0].lower()
    database = catalog.active

    if name in QUIT_COMMANDS:
        print("Goodbye!")
        return False

    elif name == '.help':
        print_help()

    elif name == '.tables':
        tables = database.list_tables()
        if tables:
            print(f"\nTables in '{database.name}':")
            for table_name in tables:
                row_count = database.get_table(table_name).row_count
                print(f"  - {table_name} ({row_count} rows)")
        else:
            print("\nNo tables.")
        print()

    elif name == '.schema':
        if len(parts) < 2:
            print("Usage: .schema TABLE_NAME")
        else:
            table_ref = parts[1]
            db_name, _, table_name = table_ref.rpartition('.')
            try:
                table = catalog.resolve_table(table_name, db_name or None)
                print(f"\nSchema for table '{table_ref}':")
                for column in table.columns:
                    print(f"  {column.name}: {column.field_type.value}")
                print()
            except CoilError as e:
                print(f"{e.kind}: {e}\n")

    elif name == '.databases':
        print("\nDatabases:")
        for db_name in catalog.list_databases():
            marker = " (active)" if db_name == catalog.active_name else ""
            print(f"  - {db_name}{marker}")
        print()

    elif name == '.stats':
        stats = database.get_stats()
        print("\nDatabase Statistics:")
        print(f"  Name: {stats['name']}")
        print(f"  Tables: {stats['table_count']}")
        for table_name, table_stats in stats['tables'].items():
            print(f"    - {table_name}:")
            print(f"        Rows: {table_stats['row_count']}")
            print(f"        Columns: {table_stats['column_count']}")
        print()

    elif name == '.use':
        if len(parts) < 2:
            print("Usage: .use DATABASE_NAME")
        else:
            try:
                catalog.use(parts[1])
                print(f"Using database '{parts[1]}'\n")
            except CoilError as e:
                print(f"{e.kind}: {e}\n")

    elif name == '.save':
        for db in catalog.databases:
            try:
                path = save_database(db)
                print(f"Saved '{db.name}' to {path}")
            except OSError as e:
                print(f"Error: cannot save '{db.name}': {e}")
        print()

    else:
        print(f"Unknown command: {command}")
        print("Type .help for available commands\n")

    return True


def run_statement(line: str, parser: QueryParser, executor: QueryExecutor) -> str:
    """
    Lex, parse and execute one statement.

    Returns:
        The formatted result

    Raises:
        CoilError: Whatever the pipeline rejected the statement with
    """
    query = parser.parse(line)
    result = executor.execute(query)
    return format_result(result)


def repl(catalog: Optional[Catalog] = None, banner: bool = True):
    """
    Run the interactive REPL until a quit command or EOF.
    """
    if banner:
        print_banner()

    catalog = catalog or Catalog()
    parser = QueryParser()
    executor = QueryExecutor(catalog)

    while True:
        try:
            try:
                line = read_line_raw(PROMPT).strip()
            except EOFError:
                print("\nGoodbye!")
                return

            if not line:
                continue

            if line.lower() in QUIT_COMMANDS or line.startswith('.'):
                if not handle_special_command(line, catalog):
                    break
                continue

            try:
                print(run_statement(line, parser, executor))
                print()
            except CoilError as e:
                logger.debug("Statement failed: %r", line, exc_info=True)
                print(f"{e.kind}: {e}\n")

        except KeyboardInterrupt:
            print("\n\nInterrupted. Type .exit to quit.\n")
            continue


# Entry point for running as module
if __name__ == "__main__":
    repl()
