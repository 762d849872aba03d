"""OpenTelemetry helpers for the protocol layer.

Server dispatch, tool execution and client requests open spans through
:func:`get_tracer`.  Without a configured SDK the API hands back no-op
tracers, so instrumentation costs nothing by default.

Call :func:`configure_telemetry` once at startup to export spans; it needs
the ``otel`` extra (``pip install mcp-audit[otel]``).
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace

# Span attribute keys
ATTR_METHOD = "mcpaudit.method"
ATTR_REQUEST_ID = "mcpaudit.request.id"
ATTR_SESSION_ID = "mcpaudit.session.id"
ATTR_TOOL_NAME = "mcpaudit.tool.name"
ATTR_ERROR_CODE = "mcpaudit.error.code"
ATTR_SERVER_ENDPOINT = "mcpaudit.server.endpoint"

_INSTRUMENTATION_NAME = "mcpaudit"
_INSTALL_HINT = "Install it with: pip install mcp-audit[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a tracer for *name* (no-op until the SDK is configured)."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "mcpaudit",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install an SDK tracer provider for *service_name*.

    Spans go to stdout when *export_to_console* is set and to an OTLP/gRPC
    collector when *otlp_endpoint* is given.

    Raises:
        ImportError: If ``opentelemetry-sdk`` (or, for OTLP,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = f"opentelemetry-sdk is required for configure_telemetry(). {_INSTALL_HINT}"
        raise ImportError(msg) from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if export_to_console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    if otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(_otlp_exporter(otlp_endpoint)))

    trace.set_tracer_provider(provider)


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
            OTLPSpanExporter,
        )
    except ImportError as exc:
        msg = f"opentelemetry-exporter-otlp is required for OTLP export. {_INSTALL_HINT}"
        raise ImportError(msg) from exc
    return OTLPSpanExporter(endpoint=endpoint)
