"""Key-to-blob store surface consumed by the inverted index."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class MissingKeyError(KeyError):
    """Raised by ``get`` when the key was never stored."""


class StoreError(RuntimeError):
    """Raised when a backend fails to persist or read a value."""


@runtime_checkable
class PostingStore(Protocol):
    """Minimal key -> blob mapping with no interpretation of values.

    ``put`` is total and last-write-wins; ``get`` after ``put(k, v)`` returns
    exactly ``v`` until the next ``put`` under ``k``.
    """

    def exists(self, key: bytes) -> bool:  # pragma: no cover - Protocol only
        """Return True when ``key`` has a stored value."""

    def get(self, key: bytes) -> bytes:  # pragma: no cover - Protocol only
        """Return the stored blob or raise ``MissingKeyError``."""

    def put(self, key: bytes, value: bytes) -> None:  # pragma: no cover - Protocol only
        """Store ``value`` under ``key``, replacing any previous value."""

    def close(self) -> None:  # pragma: no cover - Protocol only
        """Release backend resources. Safe to call more than once."""
