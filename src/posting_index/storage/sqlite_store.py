"""SQLite-backed blob store.

An embedded ordered key/value engine for posting blobs:
- ``WITHOUT ROWID`` table clustered on the term key
- WAL with NORMAL synchronous for file databases
- a ``metadata`` table pinning the codec host layout, since blobs are raw
  host-endian images and cannot be read back on a different layout
"""

from __future__ import annotations

import logging
from pathlib import Path
import sqlite3

from posting_index.codec import HOST_LAYOUT
from posting_index.storage.base import MissingKeyError, StoreError
from posting_index.storage.sqlite_pragmas import apply_write_pragmas


logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS metadata (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    ) WITHOUT ROWID;

    CREATE TABLE IF NOT EXISTS postings (
        term BLOB PRIMARY KEY,
        blob BLOB NOT NULL
    ) WITHOUT ROWID;
"""


class IncompatibleStoreError(RuntimeError):
    """The database was written by a host with a different blob layout."""


class SqliteStore:
    """Posting blobs persisted in a single SQLite table.

    Every ``put`` is committed before returning, so later ``get`` calls in the
    same process observe it.
    """

    def __init__(self, path: str | Path = MEMORY_PATH) -> None:
        self.path = str(path)
        self._in_memory = self.path == MEMORY_PATH
        if not self._in_memory:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)

        self._conn: sqlite3.Connection | None = sqlite3.connect(self.path)
        try:
            apply_write_pragmas(self._conn, in_memory=self._in_memory)
            self._conn.executescript(_SCHEMA)
            self._check_layout()
        except (sqlite3.Error, IncompatibleStoreError):
            self.close()
            raise
        logger.debug("Opened SQLite posting store at %s", self.path)

    def __enter__(self) -> SqliteStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._conn is None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError(f"SQLite posting store {self.path} is closed")
        return self._conn

    def _check_layout(self) -> None:
        conn = self._connection()
        stored = dict(conn.execute("SELECT key, value FROM metadata").fetchall())
        if not stored:
            conn.executemany("INSERT INTO metadata (key, value) VALUES (?, ?)", sorted(HOST_LAYOUT.items()))
            conn.commit()
            return

        mismatched = {key: (stored.get(key), value) for key, value in HOST_LAYOUT.items() if stored.get(key) != value}
        if mismatched:
            details = ", ".join(f"{key}: stored={old!r} host={new!r}" for key, (old, new) in sorted(mismatched.items()))
            raise IncompatibleStoreError(f"Posting store {self.path} was written with a different layout ({details})")

    def exists(self, key: bytes) -> bool:
        row = self._connection().execute("SELECT 1 FROM postings WHERE term = ?", (key,)).fetchone()
        return row is not None

    def get(self, key: bytes) -> bytes:
        row = self._connection().execute("SELECT blob FROM postings WHERE term = ?", (key,)).fetchone()
        if row is None:
            raise MissingKeyError(key)
        return bytes(row[0])

    def put(self, key: bytes, value: bytes) -> None:
        conn = self._connection()
        try:
            conn.execute("INSERT OR REPLACE INTO postings (term, blob) VALUES (?, ?)", (key, value))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"Failed to store posting blob: {e}") from e

    def __len__(self) -> int:
        return self._connection().execute("SELECT COUNT(*) FROM postings").fetchone()[0]

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except sqlite3.Error as close_error:
            logger.warning("Failed to close SQLite connection for %s: %s", self.path, close_error)
        self._conn = None
        logger.debug("Closed SQLite posting store at %s", self.path)
