"""Game persistence: store interface, JSON codec, file and SQLite backends."""

from ledger.storage.connection import Database
from ledger.storage.errors import DataCorruptionError, StorageError
from ledger.storage.file_store import FileGameStore
from ledger.storage.repository import GameStore
from ledger.storage.sqlite_store import SqliteGameStore

__all__ = [
    "DataCorruptionError",
    "Database",
    "FileGameStore",
    "GameStore",
    "SqliteGameStore",
    "StorageError",
]
