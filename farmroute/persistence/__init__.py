"""
Persistence for routes, the current-route pointer, the active session and
run history, across a primary SQLite store and a flat-file fallback.
"""

from .base import StorageBackend
from .flat_store import FlatFileBackend
from .gateway import PersistenceGateway, RestoredState
from .sqlite_store import SqliteBackend

__all__ = [
    "StorageBackend",
    "FlatFileBackend",
    "PersistenceGateway",
    "RestoredState",
    "SqliteBackend",
]
