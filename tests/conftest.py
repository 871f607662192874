"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import sys

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from posting_index.index import InvertedIndex
from posting_index.observability import tracing as tracing_module
from posting_index.storage import InMemoryStore, SqliteStore


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop POSTING_INDEX_* variables so Settings sees defaults."""
    for key in list(os.environ):
        if key.upper().startswith("POSTING_INDEX_"):
            monkeypatch.delenv(key, raising=False)
    # Settings also reads .env from the working directory
    monkeypatch.chdir(Path(__file__).resolve().parent)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each conformant backend in turn."""
    if request.param == "memory":
        backend = InMemoryStore()
    else:
        backend = SqliteStore(tmp_path / "postings.db")
    yield backend
    backend.close()


@pytest.fixture
def index(store):
    return InvertedIndex(store, verify_invariants=True)


@pytest.fixture
def span_exporter(monkeypatch):
    """Route index spans to an in-memory exporter."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(tracing_module, "get_tracer", lambda: provider.get_tracer("posting_index"))
    yield exporter
    provider.shutdown()
