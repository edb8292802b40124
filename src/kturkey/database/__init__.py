"""Database layer for kturkey application."""

from kturkey.database.base import Database
from kturkey.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
