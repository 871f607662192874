"""Dict-backed default store."""

from __future__ import annotations

from posting_index.storage.base import MissingKeyError, StoreError


class InMemoryStore:
    """Hash map from term key to posting blob, living as long as its owner.

    Like :class:`SqliteStore`, the store refuses every call after ``close()``.
    """

    def __init__(self) -> None:
        self._data: dict[bytes, bytes] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _contents(self) -> dict[bytes, bytes]:
        if self._closed:
            raise StoreError("In-memory posting store is closed")
        return self._data

    def __len__(self) -> int:
        return len(self._contents())

    def exists(self, key: bytes) -> bool:
        return key in self._contents()

    def get(self, key: bytes) -> bytes:
        try:
            return self._contents()[key]
        except KeyError:
            raise MissingKeyError(key) from None

    def put(self, key: bytes, value: bytes) -> None:
        self._contents()[key] = bytes(value)

    def close(self) -> None:
        self._data.clear()
        self._closed = True
