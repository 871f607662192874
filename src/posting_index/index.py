"""Inverted index mapping terms to sorted document id lists.

Posting lists only exist in memory for the duration of one operation; between
operations each lives as a codec blob inside the index's store. The write path
is get -> decode -> insert -> encode -> put, so a single ``put`` replaces the
whole list and partial updates cannot be observed.

The index is single-writer: the read-modify-write in ``add`` is not atomic,
and callers sharing a store across writers must serialize ``add`` themselves.
"""

from __future__ import annotations

from array import array
from bisect import bisect_left
import logging

from posting_index.codec import CodecError, decode, encode
from posting_index.observability.tracing import create_span
from posting_index.storage.base import MissingKeyError, PostingStore
from posting_index.storage.memory import InMemoryStore


logger = logging.getLogger(__name__)

MAX_DOC_ID = 2**64 - 1

Term = str | bytes


class PostingIndexError(RuntimeError):
    """Base class for faults surfaced by the index."""


class StoreCorruptionError(PostingIndexError):
    """The store broke its contract, e.g. lost a key it reported present."""


class BlobCorruptionError(PostingIndexError):
    """A stored blob could not be decoded."""


class InvariantViolationError(PostingIndexError):
    """A decoded posting list was empty or not strictly ascending."""


def term_key(term: Term) -> bytes:
    """Return the store key for ``term``; ``str`` terms are keyed by their UTF-8 bytes."""
    if isinstance(term, str):
        key = term.encode("utf-8")
    elif isinstance(term, (bytes, bytearray, memoryview)):
        key = bytes(term)
    else:
        raise TypeError(f"Term must be str or bytes, got {type(term).__name__}")
    if not key:
        raise ValueError("Term must not be empty")
    return key


def _check_doc_id(doc_id: int) -> int:
    if isinstance(doc_id, bool) or not isinstance(doc_id, int):
        raise TypeError(f"Document id must be an int, got {type(doc_id).__name__}")
    if not 0 <= doc_id <= MAX_DOC_ID:
        raise ValueError(f"Document id {doc_id} is outside the unsigned 64-bit range")
    return doc_id


class InvertedIndex:
    """Term -> posting list index over a pluggable blob store.

    The index owns ``store``: closing the index closes the store. When no
    store is given a private :class:`InMemoryStore` is created.
    """

    def __init__(self, store: PostingStore | None = None, *, verify_invariants: bool = False) -> None:
        self._store = store if store is not None else InMemoryStore()
        self.verify_invariants = verify_invariants

    def __enter__(self) -> InvertedIndex:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __contains__(self, term: Term) -> bool:
        return self._store.exists(term_key(term))

    @property
    def store(self) -> PostingStore:
        return self._store

    def close(self) -> None:
        self._store.close()

    def add(self, doc_id: int, term: Term) -> None:
        """Record that ``doc_id`` contains ``term``. Adding the same pair twice is a no-op."""
        doc_id = _check_doc_id(doc_id)
        key = term_key(term)

        with create_span("posting_index.add", attributes={"posting_index.doc_id": str(doc_id)}) as span:
            if not self._store.exists(key):
                self._store.put(key, encode([doc_id]))
                span.set_attribute("posting_index.new_term", True)
                logger.debug("New term %r with doc %d", key, doc_id, extra={"term": key, "doc_id": doc_id})
                return

            postings = self._load(key)
            pos = bisect_left(postings, doc_id)
            if pos < len(postings) and postings[pos] == doc_id:
                logger.debug("Doc %d already listed for %r", doc_id, key, extra={"term": key, "doc_id": doc_id})
                return

            postings.insert(pos, doc_id)
            self._store.put(key, encode(postings))
            span.set_attribute("posting_index.postings", len(postings))
            logger.debug(
                "Inserted doc %d for %r at position %d of %d",
                doc_id,
                key,
                pos,
                len(postings),
                extra={"term": key, "doc_id": doc_id},
            )

    def lookup(self, term: Term) -> list[int] | None:
        """Return the ascending doc ids for ``term``, or None if it was never added."""
        key = term_key(term)
        with create_span("posting_index.lookup") as span:
            if not self._store.exists(key):
                span.set_attribute("posting_index.found", False)
                return None
            postings = self._load(key)
            span.set_attribute("posting_index.found", True)
            span.set_attribute("posting_index.postings", len(postings))
            return postings.tolist()

    def _load(self, key: bytes) -> array:
        try:
            blob = self._store.get(key)
        except MissingKeyError as exc:
            logger.error("Store reported %r present but could not return it", key, extra={"term": key})
            raise StoreCorruptionError(f"Store lost posting blob for term {key!r}") from exc

        try:
            postings = decode(blob)
        except CodecError as exc:
            logger.error("Posting blob for %r is corrupt: %s", key, exc, extra={"term": key})
            raise BlobCorruptionError(f"Posting blob for term {key!r} is corrupt: {exc}") from exc

        if self.verify_invariants:
            self._verify(key, postings)
        return postings

    @staticmethod
    def _verify(key: bytes, postings: array) -> None:
        if not postings:
            raise InvariantViolationError(f"Posting list for term {key!r} is empty")
        for prev, cur in zip(postings, postings[1:]):
            if not prev < cur:
                raise InvariantViolationError(
                    f"Posting list for term {key!r} is not strictly ascending ({prev} before {cur})"
                )
