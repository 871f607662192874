"""Pluggable key -> blob stores backing the inverted index.

- base: the ``PostingStore`` capability and shared errors
- memory: dict-backed default store
- sqlite_store: embedded SQLite key/value store
- factory: backend selection from settings
"""

from posting_index.storage.base import MissingKeyError, PostingStore, StoreError
from posting_index.storage.memory import InMemoryStore
from posting_index.storage.sqlite_store import IncompatibleStoreError, SqliteStore


__all__ = [
    "InMemoryStore",
    "IncompatibleStoreError",
    "MissingKeyError",
    "PostingStore",
    "SqliteStore",
    "StoreError",
]
