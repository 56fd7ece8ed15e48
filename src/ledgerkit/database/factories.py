"""Database factory functions for creating database instances."""

from pathlib import Path
from typing import Optional

from ledgerkit.config import get_settings
from ledgerkit.database.memory import InMemoryDatabase
from ledgerkit.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, uses the
            LEDGERKIT_DATABASE_PATH setting, then defaults to ~/.ledgerkit/ledgerkit.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = get_settings().database_path

    if database_path is None:
        db_dir = Path.home() / ".ledgerkit"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "ledgerkit.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def create_memory_database() -> InMemoryDatabase:
    """Create an empty in-memory database."""
    return InMemoryDatabase()
