"""Database layer for bankrec application."""

from bankrec.database.base import Database
from bankrec.database.factories import (
    create_database,
    create_memory_database,
    create_sqlite_database,
)

__all__ = ["Database", "create_database", "create_memory_database", "create_sqlite_database"]
