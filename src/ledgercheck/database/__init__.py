"""Database layer for ledgercheck application."""

from ledgercheck.database.base import Database
from ledgercheck.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
