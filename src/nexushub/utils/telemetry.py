"""OpenTelemetry tracing helpers for NexusHub.

Thin wrapper around the OpenTelemetry API so the rest of the codebase can
call ``get_tracer()`` without caring whether the SDK is installed.  Without
a configured SDK the API hands back no-op tracers.

Usage::

    from nexushub.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("nexushub.tool.call") as span:
        span.set_attribute(ATTR_TOOL_NAME, name)

Span exporters must never write to stdout: in stdio mode stdout is the
protocol channel.  :func:`configure_telemetry` therefore only supports OTLP.
"""

from __future__ import annotations

from opentelemetry import trace

ATTR_TOOL_NAME = "nexushub.tool.name"
ATTR_ERROR_CODE = "nexushub.error.code"

_INSTRUMENTATION_NAME = "nexushub"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(*, otlp_endpoint: str, service_name: str = "nexushub") -> None:
    """Export spans via OTLP/gRPC (requires the ``otel`` extra).

    Raises:
        ImportError: If the OpenTelemetry SDK or OTLP exporter is missing.
    """
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        msg = (
            "opentelemetry-sdk and opentelemetry-exporter-otlp are required for "
            "configure_telemetry(). Install them with: pip install nexushub[otel]"
        )
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    trace.set_tracer_provider(provider)
