#!/usr/bin/env python3
"""
Coil - an embedded query language over an in-process columnar store.
Entry point script

Run the REPL:
    python -m coil [--root DIR] [--database NAME] [--load]
"""

import argparse
import logging
import sys
from pathlib import Path

from .storage.database import Catalog, Database, DatabaseConfig
from .storage.persistence import load_database
from .repl import repl
from .utils.exceptions import CoilError, CorruptDatabaseError

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coil",
        description="Interactive shell for the Coil query language"
    )
    parser.add_argument(
        "--root", default=".", type=Path,
        help="directory database files are read from and saved to (default: .)"
    )
    parser.add_argument(
        "--database", default="default",
        help="name of the active database (default: default)"
    )
    parser.add_argument(
        "--load", action="store_true",
        help="load <root>/<database>.json and the other databases saved in <root>"
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level (default: WARNING)"
    )
    parser.add_argument(
        "--no-banner", action="store_true",
        help="don't print the welcome banner"
    )
    return parser


def open_catalog(root: Path, name: str, load: bool) -> Catalog:
    """
    Build the session catalog.

    With `load`, `<root>/<name>.json` becomes the active database and every
    other `<root>/*.json` database file is registered beside it. Other
    files that don't hold a database are skipped with a warning.

    Raises:
        CorruptDatabaseError: If the active database file exists but is unreadable
    """
    config = DatabaseConfig(root)
    path = config.root_path / f"{name}.json"
    if load and path.exists():
        database = load_database(path)
        database.config = config
    else:
        database = Database(name, config)
    catalog = Catalog(database)

    if load:
        for other_path in sorted(config.root_path.glob("*.json")):
            if other_path == path:
                continue
            try:
                other = load_database(other_path)
            except CorruptDatabaseError as e:
                logger.warning("Skipping %s", e)
                continue
            if other.name != other_path.stem or catalog.has_database(other.name):
                logger.warning("Skipping %s: holds database '%s'", other_path, other.name)
                continue
            other.config = DatabaseConfig(root)
            catalog.add_database(other)
    return catalog


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        catalog = open_catalog(args.root, args.database, args.load)
    except CorruptDatabaseError as e:
        print(f"Fatal: {e}", file=sys.stderr)
        return 1
    except CoilError as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
        return 2

    repl(catalog, banner=not args.no_banner)
    return 0


if __name__ == '__main__':
    sys.exit(main())
