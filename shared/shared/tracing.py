"""OpenTelemetry tracer provider setup."""

from __future__ import annotations

import structlog
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = structlog.get_logger()


def setup_tracing(
    *,
    service_name: str = "boutique",
    environment: str = "development",
    console_export: bool = False,
) -> TracerProvider:
    """Install a global ``TracerProvider`` tagged with the service name.

    Spans are only exported when ``console_export`` is set; otherwise the
    provider still assigns trace ids so log lines and downstream calls can be
    correlated.
    """
    resource = Resource.create(
        {
            "service.name": service_name,
            "deployment.environment": environment,
        }
    )
    provider = TracerProvider(resource=resource)
    if console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    logger.info("tracing_configured", console_export=console_export)
    return provider
