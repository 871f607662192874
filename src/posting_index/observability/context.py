"""Context propagation for trace correlation in log records."""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import TYPE_CHECKING
from uuid import uuid4


if TYPE_CHECKING:
    from opentelemetry.trace import Span

trace_context: ContextVar[dict | None] = ContextVar("trace_context", default=None)


def generate_trace_id() -> str:
    """Generate a 32-char hex trace ID."""
    return uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-char hex span ID."""
    return uuid4().hex[:16]


def get_trace_context() -> dict:
    """Get current trace context with trace_id and span_id."""
    ctx = trace_context.get()
    if ctx is None or not ctx.get("trace_id"):
        ctx = {"trace_id": generate_trace_id(), "span_id": generate_span_id()}
        trace_context.set(ctx)
    return ctx


def update_from_span(span: Span) -> Token | None:
    """Point the log context at an OpenTelemetry span.

    Returns the token to hand to ``trace_context.reset`` once the span ends,
    or None when the span carries no valid ids and the context was left alone.
    """
    ctx = span.get_span_context()
    if not ctx.is_valid:
        return None
    current = trace_context.get() or {}
    return trace_context.set(
        {
            **current,
            "trace_id": format(ctx.trace_id, "032x"),
            "span_id": format(ctx.span_id, "016x"),
        }
    )
