"""OpenTelemetry initialization for agentllm.

LLM calls and agent tasks emit spans through the global tracer provider.
Call init_telemetry() once per process to export them.
"""

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

from .. import __version__

logger = logging.getLogger(__name__)

_initialized = False


def init_telemetry(
    service_name: Optional[str] = None,
    otlp_endpoint: Optional[str] = None,
    console: Optional[bool] = None,
) -> None:
    """Initialize OpenTelemetry tracing.

    Args:
        service_name: Service name for traces (default: from OTEL_SERVICE_NAME env or "agentllm")
        otlp_endpoint: OTLP collector endpoint (default: from OTEL_EXPORTER_OTLP_ENDPOINT env or http://localhost:4317)
        console: Print spans to stdout instead of exporting (default: AGENTLLM_TELEMETRY_CONSOLE=1)
    """
    global _initialized
    if _initialized:
        return

    service_name = service_name or os.getenv("OTEL_SERVICE_NAME", "agentllm")
    otlp_endpoint = otlp_endpoint or os.getenv(
        "OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"
    )
    if console is None:
        console = os.getenv("AGENTLLM_TELEMETRY_CONSOLE", "0") == "1"

    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": __version__,
            "deployment.environment": os.getenv("DEPLOYMENT_ENV", "development"),
        }
    )
    provider = TracerProvider(resource=resource)

    if console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        target = "console"
    else:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True),
                schedule_delay_millis=1000,  # flush every second
            )
        )
        target = otlp_endpoint

    trace.set_tracer_provider(provider)
    _initialized = True
    logger.info("OpenTelemetry initialized: service=%s, exporter=%s", service_name, target)


def shutdown_telemetry() -> None:
    """Shutdown OpenTelemetry gracefully, flushing pending spans."""
    global _initialized
    if not _initialized:
        return

    provider = trace.get_tracer_provider()
    if hasattr(provider, "shutdown"):
        provider.shutdown()

    _initialized = False
    logger.info("OpenTelemetry shutdown complete")


__all__ = ["init_telemetry", "shutdown_telemetry"]
