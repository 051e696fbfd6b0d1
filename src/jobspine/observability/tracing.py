"""OpenTelemetry tracing configuration."""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter

TRACER_NAME = "jobspine"


def configure_tracing(
    service_name: str = "jobspine-executor",
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """Install a global SDK tracer provider.

    Args:
        service_name: ``service.name`` resource attribute
        exporter: Span exporter (console exporter if None)

    Returns:
        The installed provider, so callers can ``shutdown()`` it
    """
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter or ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    return provider


def get_tracer() -> trace.Tracer:
    """Get the jobspine tracer from the global provider."""
    return trace.get_tracer(TRACER_NAME)
