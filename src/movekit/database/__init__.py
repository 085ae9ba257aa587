"""Persistence gateway for movements, concepts and directories."""

from movekit.database.base import Database
from movekit.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
