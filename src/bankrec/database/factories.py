"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from bankrec.database.base import Database
from bankrec.database.memory import InMemoryDatabase
from bankrec.database.sqlalchemy_db import SQLAlchemyDatabase

BACKENDS = ("sqlite", "memory")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks BANKREC_DB_PATH
            environment variable, then defaults to ~/.bankrec/bankrec.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("BANKREC_DB_PATH")

    if database_path is None:
        # Default to ~/.bankrec/bankrec.db
        home = Path.home()
        db_dir = home / ".bankrec"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "bankrec.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def create_memory_database() -> InMemoryDatabase:
    """Create an empty in-memory database."""
    return InMemoryDatabase()


def create_database(
    backend: Optional[str] = None, database_path: Optional[str] = None
) -> Database:
    """Create the configured database backend.

    Args:
        backend: "sqlite" or "memory". If None, checks BANKREC_BACKEND,
            then defaults to "sqlite".
        database_path: SQLite file path, ignored by the memory backend

    Raises:
        ValueError: If the backend name is unknown
    """
    if backend is None:
        backend = os.environ.get("BANKREC_BACKEND", "sqlite")
    backend = backend.strip().lower()

    if backend == "sqlite":
        return create_sqlite_database(database_path=database_path)
    if backend == "memory":
        return create_memory_database()
    raise ValueError(f"Unknown backend '{backend}'. Supported backends: {', '.join(BACKENDS)}")
