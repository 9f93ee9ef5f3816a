"""
Storage layer: the TrendStore contract and its SQLite implementation.
"""

from gitbrief.storage.interfaces import (
    DAILY,
    WEEKLY,
    BaseTrendStore,
    ConnectionError,
    IntegrityError,
    StorageError,
    TrendStore,
)
from gitbrief.storage.sqlite import SQLiteDatabase, SQLiteTrendStore

__all__ = [
    "DAILY",
    "WEEKLY",
    "TrendStore",
    "BaseTrendStore",
    "StorageError",
    "ConnectionError",
    "IntegrityError",
    "SQLiteDatabase",
    "SQLiteTrendStore",
]
