"""
JSON persistence for databases.

One file per database, `<root_path>/<name>.json`, holding

    {"name": ..., "config": {"root_path": ...},
     "tables": [{"name": ..., "columns": [{"name", "type", "values"}]}]}

Field names and nesting are a stability contract for external tools.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from .database import Database
from ..utils.exceptions import CoilError, CorruptDatabaseError, DatabaseNotFoundError

logger = logging.getLogger(__name__)


def save_database(database: Database, path: Optional[Union[str, Path]] = None) -> Path:
    """
    Write a database to disk.

    Args:
        database: Database to save
        path: Target file (defaults to `database.path`)

    Returns:
        The path written
    """
    path = Path(path) if path is not None else database.path
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, 'w', encoding='utf-8') as f:
        json.dump(database.to_dict(), f, indent=2)
    os.replace(tmp_path, path)

    logger.info("Saved database %s to %s", database.name, path)
    return path


def load_database(path: Union[str, Path]) -> Database:
    """
    Read a database saved by `save_database`.

    Raises:
        DatabaseNotFoundError: If the file doesn't exist
        CorruptDatabaseError: If the file isn't a valid database document
    """
    path = Path(path)
    if not path.exists():
        raise DatabaseNotFoundError(path.stem)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptDatabaseError(path, str(e))

    try:
        database = Database.from_dict(data)
    except (KeyError, TypeError, ValueError, IndexError, CoilError) as e:
        raise CorruptDatabaseError(path, f"{type(e).__name__}: {e}")

    logger.info("Loaded database %s from %s", database.name, path)
    return database
