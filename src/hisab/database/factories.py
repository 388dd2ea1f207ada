"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from hisab.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "HISAB_DB_PATH"
DEFAULT_DB_PATH = Path("~/.hisab/hisab.db")


def resolve_database_path(database_path: Optional[str] = None) -> Path:
    """Pick the ledger file: explicit path, then $HISAB_DB_PATH, then ~/.hisab/hisab.db.

    An empty HISAB_DB_PATH counts as unset. ``~`` is expanded in every case.
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV) or None

    path = Path(database_path) if database_path is not None else DEFAULT_DB_PATH
    return path.expanduser()


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks the
            DB_PATH_ENV environment variable, then defaults to DEFAULT_DB_PATH

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    path = resolve_database_path(database_path)
    # The ledger directory may not exist yet on first use
    path.parent.mkdir(parents=True, exist_ok=True)

    database_url = f"sqlite:///{path}"
    return SQLAlchemyDatabase(database_url)
