"""Tests for InvertedIndex."""

import struct

import pytest

from posting_index.codec import encode
from posting_index.index import (
    MAX_DOC_ID,
    BlobCorruptionError,
    InvariantViolationError,
    InvertedIndex,
    PostingIndexError,
    StoreCorruptionError,
    term_key,
)
from posting_index.observability import get_trace_context
from posting_index.storage import InMemoryStore, MissingKeyError, StoreError
from tests.fixtures.demo_corpus import DEMO_ABSENT, DEMO_CORPUS, DEMO_EXPECTED


class TestDemoScenario:
    def test_lookup_results(self, index):
        for doc_id, term in DEMO_CORPUS:
            index.add(doc_id, term)

        for term, expected in DEMO_EXPECTED.items():
            assert index.lookup(term) == expected
        for term in DEMO_ABSENT:
            assert index.lookup(term) is None


class TestAdd:
    def test_first_add_creates_singleton(self, index):
        index.add(5, "x")

        assert index.lookup("x") == [5]

    def test_add_is_idempotent(self, index, store):
        index.add(5, "x")
        blob = store.get(b"x")

        index.add(5, "x")

        assert index.lookup("x") == [5]
        assert store.get(b"x") == blob

    def test_out_of_order_inserts_are_sorted(self, index):
        index.add(9, "a")
        index.add(3, "a")
        index.add(7, "a")

        assert index.lookup("a") == [3, 7, 9]

    @pytest.mark.parametrize(
        ("new_id", "expected"),
        [
            (1, [1, 10, 20, 30]),
            (40, [10, 20, 30, 40]),
            (25, [10, 20, 25, 30]),
            (20, [10, 20, 30]),
        ],
    )
    def test_insert_positions(self, index, new_id, expected):
        for doc_id in (20, 10, 30):
            index.add(doc_id, "t")

        index.add(new_id, "t")

        assert index.lookup("t") == expected

    def test_smallest_and_largest_doc_ids(self, index):
        index.add(MAX_DOC_ID, "edge")
        index.add(0, "edge")
        index.add(MAX_DOC_ID - 1, "edge")

        assert index.lookup("edge") == [0, MAX_DOC_ID - 1, MAX_DOC_ID]

    def test_blob_matches_codec_layout(self, index, store):
        index.add(42, "w")
        index.add(1, "w")

        assert store.get(b"w") == struct.pack("=3Q", 2, 1, 42)

    def test_terms_are_independent(self, index):
        index.add(1, "a")
        index.add(2, "b")

        assert index.lookup("a") == [1]
        assert index.lookup("b") == [2]

    @pytest.mark.parametrize("bad_id", [-1, MAX_DOC_ID + 1])
    def test_out_of_range_doc_id_rejected(self, index, bad_id):
        with pytest.raises(ValueError, match="unsigned 64-bit"):
            index.add(bad_id, "t")
        assert index.lookup("t") is None

    @pytest.mark.parametrize("bad_id", [1.0, "1", True, None])
    def test_non_int_doc_id_rejected(self, index, bad_id):
        with pytest.raises(TypeError):
            index.add(bad_id, "t")


class TestTerms:
    def test_str_and_utf8_bytes_share_a_key(self, index):
        index.add(1, "café")
        index.add(2, "café".encode())

        assert index.lookup("café") == [1, 2]
        assert index.lookup(b"caf\xc3\xa9") == [1, 2]

    def test_terms_compare_bytewise(self, index):
        index.add(1, "Cat")

        assert index.lookup("cat") is None
        assert index.lookup("Cat") == [1]

    def test_empty_term_rejected(self, index):
        with pytest.raises(ValueError, match="empty"):
            index.add(1, "")
        with pytest.raises(ValueError, match="empty"):
            index.lookup(b"")

    def test_non_text_term_rejected(self):
        with pytest.raises(TypeError):
            term_key(12)

    def test_contains(self, index):
        assert "dog" not in index
        index.add(0, "dog")
        assert "dog" in index


class TestLookup:
    def test_absent_term_returns_none_not_empty_list(self, index):
        result = index.lookup("fish")

        assert result is None

    def test_returns_plain_list(self, index):
        index.add(3, "z")

        assert type(index.lookup("z")) is list

    def test_result_is_a_copy(self, index):
        index.add(3, "z")
        index.lookup("z").append(99)

        assert index.lookup("z") == [3]


class TestOwnership:
    def test_default_store_is_private_in_memory(self):
        first = InvertedIndex()
        second = InvertedIndex()
        first.add(1, "a")

        assert isinstance(first.store, InMemoryStore)
        assert second.lookup("a") is None

    def test_close_releases_store(self):
        store = InMemoryStore()
        with InvertedIndex(store) as index:
            index.add(1, "a")

        assert store.closed is True
        with pytest.raises(StoreError):
            store.exists(b"a")

    def test_closed_index_refuses_updates(self):
        index = InvertedIndex()
        index.close()

        with pytest.raises(StoreError):
            index.add(1, "a")
        with pytest.raises(StoreError):
            index.lookup("a")


class _ForgetfulStore(InMemoryStore):
    """Claims every key exists but cannot return any of them."""

    def exists(self, key):
        return True

    def get(self, key):
        raise MissingKeyError(key)


class TestFailures:
    def test_store_losing_key_is_store_corruption(self):
        index = InvertedIndex(_ForgetfulStore())

        with pytest.raises(StoreCorruptionError) as exc_info:
            index.lookup("cat")
        assert isinstance(exc_info.value.__cause__, MissingKeyError)

        with pytest.raises(StoreCorruptionError):
            index.add(1, "cat")

    def test_truncated_blob_is_blob_corruption(self):
        store = InMemoryStore()
        store.put(b"cat", b"\x01\x00")
        index = InvertedIndex(store)

        with pytest.raises(BlobCorruptionError):
            index.lookup("cat")
        with pytest.raises(BlobCorruptionError):
            index.add(4, "cat")
        assert store.get(b"cat") == b"\x01\x00"

    def test_overlong_length_is_blob_corruption(self):
        store = InMemoryStore()
        store.put(b"cat", struct.pack("=Q", 3) + struct.pack("=Q", 1))

        with pytest.raises(BlobCorruptionError, match="cat"):
            InvertedIndex(store).lookup("cat")

    def test_unsorted_blob_is_invariant_violation_when_verifying(self):
        store = InMemoryStore()
        store.put(b"cat", encode([5, 2]))

        with pytest.raises(InvariantViolationError, match="ascending"):
            InvertedIndex(store, verify_invariants=True).lookup("cat")
        assert InvertedIndex(store).lookup("cat") == [5, 2]

    def test_duplicate_blob_is_invariant_violation(self):
        store = InMemoryStore()
        store.put(b"cat", encode([2, 2]))

        with pytest.raises(InvariantViolationError):
            InvertedIndex(store, verify_invariants=True).add(3, "cat")

    def test_empty_blob_is_invariant_violation(self):
        store = InMemoryStore()
        store.put(b"cat", encode([]))

        with pytest.raises(InvariantViolationError, match="empty"):
            InvertedIndex(store, verify_invariants=True).lookup("cat")

    def test_errors_share_base_class(self):
        for exc_type in (StoreCorruptionError, BlobCorruptionError, InvariantViolationError):
            assert issubclass(exc_type, PostingIndexError)


class TestTracing:
    def test_add_and_lookup_emit_spans(self, span_exporter):
        index = InvertedIndex()
        index.add(1, "cat")
        index.add(0, "cat")
        index.lookup("cat")
        index.lookup("dog")

        spans = span_exporter.get_finished_spans()
        names = [span.name for span in spans]
        assert names == ["posting_index.add", "posting_index.add", "posting_index.lookup", "posting_index.lookup"]
        assert spans[0].attributes["posting_index.new_term"] is True
        assert spans[1].attributes["posting_index.postings"] == 2
        assert spans[2].attributes["posting_index.found"] is True
        assert spans[3].attributes["posting_index.found"] is False

    def test_corruption_marks_span_as_error(self, span_exporter):
        store = InMemoryStore()
        store.put(b"cat", b"\x00")

        with pytest.raises(BlobCorruptionError):
            InvertedIndex(store).lookup("cat")

        (span,) = span_exporter.get_finished_spans()
        assert not span.status.is_ok
        assert span.events[0].name == "exception"

    def test_log_context_restored_after_span(self, span_exporter):
        before = dict(get_trace_context())

        InvertedIndex().add(1, "cat")

        (span,) = span_exporter.get_finished_spans()
        after = get_trace_context()
        assert after["span_id"] != format(span.context.span_id, "016x")
        assert after == before


class TestStructuredLogging:
    def test_add_logs_carry_term_and_doc_id(self, caplog):
        index = InvertedIndex()

        with caplog.at_level("DEBUG", logger="posting_index.index"):
            index.add(4, "cat")
            index.add(2, "cat")
            index.add(2, "cat")

        assert [(record.term, record.doc_id) for record in caplog.records] == [(b"cat", 4), (b"cat", 2), (b"cat", 2)]

    def test_corruption_log_carries_term(self, caplog):
        store = InMemoryStore()
        store.put(b"cat", b"\x00")

        with caplog.at_level("ERROR", logger="posting_index.index"), pytest.raises(BlobCorruptionError):
            InvertedIndex(store).lookup("cat")

        (record,) = caplog.records
        assert record.levelname == "ERROR"
        assert record.term == b"cat"
