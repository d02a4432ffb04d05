"""Factories for database instances."""

import logging
from pathlib import Path
from typing import Optional

from fintrack.config import Settings
from fintrack.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DEFAULT_DB_DIR = Path.home() / ".fintrack"


def resolve_database_path(database_path: Optional[str] = None) -> Path:
    """Pick the SQLite file to use.

    An explicit path wins, then FINTRACK_DB_PATH, then
    ~/.fintrack/fintrack.db. The parent directory is created if missing.
    """
    if database_path is None:
        database_path = Settings.from_env().db_path
    path = Path(database_path).expanduser() if database_path else DEFAULT_DB_DIR / "fintrack.db"
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite-backed database.

    Args:
        database_path: Path to the SQLite file (see ``resolve_database_path``)

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    path = resolve_database_path(database_path)
    logger.info("Using database %s", path)
    return SQLAlchemyDatabase(f"sqlite:///{path}")
