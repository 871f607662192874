"""Shared SQLite PRAGMA helpers for the blob store."""

from __future__ import annotations

import sqlite3


def apply_write_pragmas(conn: sqlite3.Connection, *, in_memory: bool = False) -> None:
    """Apply PRAGMAs for a single-writer key/value table."""
    conn.execute("PRAGMA busy_timeout = 30000")
    # WAL is not available for :memory: databases
    if not in_memory:
        conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute("PRAGMA cache_size = -16384")
    conn.execute("PRAGMA temp_store = MEMORY")
