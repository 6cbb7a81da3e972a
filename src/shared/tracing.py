from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from .config import settings


def setup_tracing(app_name: str) -> TracerProvider:
    """Configure OpenTelemetry tracing."""
    resource = Resource.create({"service.name": app_name})
    provider = TracerProvider(resource=resource)

    if settings.TELEMETRY_CONSOLE:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    return provider
