"""
In-memory inverted index over a pluggable key -> blob store.

- codec: length-prefixed binary encoding of posting lists
- storage: store capability plus in-memory and SQLite backends
- index: ``InvertedIndex`` with ``add`` and ``lookup``
- config: environment-driven settings for the outer layers
"""

from posting_index.codec import CodecError, LengthOverflowError, TrailingBytesError, TruncatedBlobError
from posting_index.index import (
    BlobCorruptionError,
    InvariantViolationError,
    InvertedIndex,
    PostingIndexError,
    StoreCorruptionError,
)
from posting_index.storage import InMemoryStore, MissingKeyError, PostingStore, SqliteStore


__all__ = [
    "BlobCorruptionError",
    "CodecError",
    "InMemoryStore",
    "InvariantViolationError",
    "InvertedIndex",
    "LengthOverflowError",
    "MissingKeyError",
    "PostingIndexError",
    "PostingStore",
    "SqliteStore",
    "StoreCorruptionError",
    "TrailingBytesError",
    "TruncatedBlobError",
]
