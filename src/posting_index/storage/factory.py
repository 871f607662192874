"""Storage factory for choosing between in-memory and SQLite backends."""

from __future__ import annotations

from posting_index.config import Settings
from posting_index.storage.base import PostingStore
from posting_index.storage.memory import InMemoryStore
from posting_index.storage.sqlite_store import SqliteStore


def create_store(settings: Settings | None = None) -> PostingStore:
    """Create the store selected by ``settings.store_backend``."""
    settings = settings or Settings()
    if settings.uses_sqlite():
        return SqliteStore(settings.sqlite_path)
    return InMemoryStore()
