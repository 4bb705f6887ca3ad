"""OpenTelemetry tracing helpers for diymcp.

Provides a thin wrapper around the OpenTelemetry API so the rest of the
codebase can call ``get_tracer()`` without caring whether the SDK is
installed.  When the SDK is *not* configured the API returns no-op
implementations.

Usage::

    from diymcp.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("my.operation") as span:
        span.set_attribute("key", "value")

To activate real tracing, call :func:`configure_telemetry` once at startup
(requires the ``otel`` extra: ``pip install diymcp[otel]``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from opentelemetry import trace

if TYPE_CHECKING:
    from diymcp.config import TelemetrySettings

# ---------------------------------------------------------------------------
# Semantic attribute keys used throughout diymcp instrumentation
# ---------------------------------------------------------------------------

ATTR_MODEL = "diymcp.model"
ATTR_PROVIDER = "diymcp.provider"
ATTR_TOKENS_PROMPT = "diymcp.tokens.prompt"
ATTR_TOKENS_COMPLETION = "diymcp.tokens.completion"
ATTR_TOKENS_TOTAL = "diymcp.tokens.total"
ATTR_FINISH_REASON = "diymcp.finish_reason"
ATTR_TOOL_NAME = "diymcp.tool.name"
ATTR_TOOL_ERROR = "diymcp.tool.error"
ATTR_TURN = "diymcp.loop.turn"
ATTR_REPEAT_COUNT = "diymcp.loop.repeat_count"
ATTR_LOOP_STATUS = "diymcp.loop.status"
ATTR_TOOL_INVOCATIONS = "diymcp.loop.tool_invocations"

_INSTRUMENTATION_NAME = "diymcp"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(settings: TelemetrySettings) -> None:
    """Install an SDK tracer provider built from *settings*.

    Spans go to stdout when ``settings.console`` is set and to an OTLP/gRPC
    collector when ``settings.otlp_endpoint`` is set.

    Raises:
        ImportError: The ``otel`` extra (``pip install diymcp[otel]``) is missing.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        msg = "opentelemetry-sdk is required for tracing; install it with: pip install diymcp[otel]"
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": settings.service_name}))
    for processor in _span_processors(settings):
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)


def _span_processors(settings: TelemetrySettings) -> list[Any]:
    from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    processors: list[Any] = []
    if settings.console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter()))
    if settings.otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
                OTLPSpanExporter,
            )
        except ImportError as exc:
            msg = (
                "opentelemetry-exporter-otlp is required for OTLP export; "
                "install it with: pip install diymcp[otel]"
            )
            raise ImportError(msg) from exc
        processors.append(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    return processors
