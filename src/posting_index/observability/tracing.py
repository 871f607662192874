"""OpenTelemetry tracing for index operations."""

from __future__ import annotations

from contextlib import contextmanager
import logging
import sys
from typing import TYPE_CHECKING, Any, Literal

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter as HttpOTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import SpanKind, Status, StatusCode

from posting_index.observability.context import trace_context, update_from_span


if TYPE_CHECKING:
    from collections.abc import Generator

    from opentelemetry.sdk.trace.export import SpanExporter
    from opentelemetry.trace import Span, Tracer

logger = logging.getLogger(__name__)

_TRACER_NAME = "posting_index"


def build_span_exporter(
    kind: Literal["console", "otlp"] = "console",
    endpoint: str | None = None,
) -> SpanExporter:
    """Return the exporter finished spans are shipped to.

    ``console`` prints spans to stderr so they stay out of the driver's output;
    ``otlp`` posts them to a collector over HTTP (``endpoint`` defaults to the
    exporter's own ``OTEL_EXPORTER_OTLP_*`` resolution when None).
    """
    if kind == "otlp":
        return HttpOTLPSpanExporter(endpoint=endpoint)
    return ConsoleSpanExporter(out=sys.stderr)


def build_tracer_provider(
    service_name: str = "posting-index",
    resource_attributes: dict[str, str] | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Create a provider for ``service_name`` that batches spans into ``exporter``."""
    attributes = {"service.name": service_name}
    if resource_attributes:
        attributes.update(resource_attributes)
    provider = TracerProvider(resource=Resource.create(attributes))
    provider.add_span_processor(BatchSpanProcessor(exporter if exporter is not None else build_span_exporter()))
    return provider


def init_tracing(
    service_name: str = "posting-index",
    resource_attributes: dict[str, str] | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Install a global, exporting tracer provider for ``service_name``.

    Call ``shutdown()`` on the returned provider before exit to flush
    batched spans.
    """
    if exporter is None:
        exporter = build_span_exporter()
    provider = build_tracer_provider(service_name, resource_attributes, exporter=exporter)
    trace.set_tracer_provider(provider)
    logger.info("Tracing initialized for service: %s (exporter: %s)", service_name, type(exporter).__name__)
    return provider


def get_tracer() -> Tracer:
    """Return the tracer from the active provider (a no-op one if none was installed)."""
    return trace.get_tracer(_TRACER_NAME)


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Generator[Span, None, None]:
    """Create a span, mirror its ids into the log context, and record failures.

    The log context is restored when the span ends, so later records are not
    tagged with a finished span.
    """
    with get_tracer().start_as_current_span(
        name, kind=kind, attributes=attributes, record_exception=False, set_status_on_exception=False
    ) as span:
        token = update_from_span(span)
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            span.record_exception(exc)
            raise
        finally:
            if token is not None:
                trace_context.reset(token)
