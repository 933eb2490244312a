# wishwall/observability/tracing.py
"""
Minimal OpenTelemetry tracing bootstrap.
- Initializes a TracerProvider with a Console exporter.
- Idempotent: safe to call multiple times.
- The query executor opens one span per statement through ``query_span``.
"""
from __future__ import annotations

import typing as _t
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

_OTEL_INITIALIZED = False

tracer = trace.get_tracer("wishwall.db")


def init_tracing(config_module: _t.Any | None = None) -> None:
    """Initialize the otel tracer provider (idempotent)."""
    global _OTEL_INITIALIZED

    if _OTEL_INITIALIZED:
        return

    service_name = getattr(config_module, "SERVICE_NAME", None) or "wishwall"

    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    _OTEL_INITIALIZED = True


@contextmanager
def query_span(dialect: str, operation: str) -> _t.Iterator[trace.Span]:
    """Span around a single database round-trip."""
    with tracer.start_as_current_span(f"db.{operation.split()[0].lower()}") as span:
        span.set_attribute("db.system", dialect)
        span.set_attribute("db.operation", operation)
        yield span
