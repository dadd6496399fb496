"""Database layer for sitebooks application."""

from sitebooks.database.base import Database
from sitebooks.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
