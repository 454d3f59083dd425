"""Interchangeable storage drivers."""

from dfind.db.drivers.base import InsertStatus, StorageDriver
from dfind.db.drivers.sqlite import SQLiteDriver

__all__ = ["InsertStatus", "SQLiteDriver", "StorageDriver"]
