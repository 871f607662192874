"""Observability helpers: structured logging and OpenTelemetry tracing."""

from posting_index.observability.context import get_trace_context, trace_context
from posting_index.observability.logging import JsonFormatter, configure_logging
from posting_index.observability.tracing import (
    build_span_exporter,
    build_tracer_provider,
    create_span,
    get_tracer,
    init_tracing,
)


__all__ = [
    "JsonFormatter",
    "build_span_exporter",
    "build_tracer_provider",
    "configure_logging",
    "create_span",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "trace_context",
]
