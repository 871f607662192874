"""Demo driver: index a tiny built-in corpus and print posting lists.

Usage:
    python -m posting_index [--backend memory|sqlite] [--sqlite-path PATH] [TERM ...]
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
import sys

from posting_index.config import Settings
from posting_index.index import InvertedIndex
from posting_index.observability import build_span_exporter, configure_logging, init_tracing
from posting_index.storage.factory import create_store


logger = logging.getLogger(__name__)

DEMO_CORPUS: tuple[tuple[int, str], ...] = (
    (0, "dog"),
    (0, "cat"),
    (1, "cat"),
    (1, "mouse"),
    (1, "house"),
    (2, "cat"),
    (2, "dog"),
    # out of order on purpose; the index keeps ids sorted
    (2, "tree"),
    (1, "tree"),
)

DEFAULT_QUERIES = ("cat", "mouse", "dog", "house", "tree")


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="posting-index-demo",
        description="Index a small demo corpus and print the posting list of each term",
    )
    parser.add_argument(
        "terms",
        nargs="*",
        metavar="TERM",
        help=f"Terms to look up (default: {' '.join(DEFAULT_QUERIES)})",
    )
    parser.add_argument(
        "--backend",
        choices=("memory", "sqlite"),
        help="Store backend (overrides POSTING_INDEX_STORE_BACKEND)",
    )
    parser.add_argument(
        "--sqlite-path",
        help="SQLite database path (overrides POSTING_INDEX_SQLITE_PATH)",
    )
    parser.add_argument(
        "--log-level",
        help="Log level (overrides POSTING_INDEX_LOG_LEVEL)",
    )
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "store_backend": args.backend,
        "sqlite_path": args.sqlite_path,
        "log_level": args.log_level,
    }
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def format_postings(term: str, postings: list[int] | None) -> str:
    if postings is None:
        return f"{term}: not found"
    return f"{term}: {' '.join(str(doc_id) for doc_id in postings)}"


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = _settings_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    configure_logging(settings.log_level, json_output=settings.json_logs)
    provider = None
    if settings.tracing_enabled:
        exporter = build_span_exporter(settings.trace_exporter, settings.otlp_endpoint)
        provider = init_tracing(settings.service_name, exporter=exporter)

    try:
        with InvertedIndex(create_store(settings), verify_invariants=settings.verify_invariants) as index:
            for doc_id, term in DEMO_CORPUS:
                index.add(doc_id, term)
            logger.info("Indexed %d postings from the demo corpus", len(DEMO_CORPUS))

            for term in args.terms or DEFAULT_QUERIES:
                print(format_postings(term, index.lookup(term)))
    finally:
        if provider is not None:
            provider.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
