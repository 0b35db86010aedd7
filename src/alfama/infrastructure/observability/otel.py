from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

DEFAULT_SERVICE_NAME = "alfama-tabs"
SERVICE_VERSION_VALUE = "0.1.0"

# Health and metrics probes would otherwise dominate the trace backend.
EXCLUDED_URLS = "health/live,health/ready,metrics"

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None


def _resource() -> Resource:
    return Resource.create(
        {
            SERVICE_NAME: os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME),
            SERVICE_VERSION: SERVICE_VERSION_VALUE,
            "deployment.environment": os.getenv("APP_ENV", "dev").lower(),
        }
    )


def _attach_exporter(provider: TracerProvider) -> None:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if not endpoint:
        return
    try:
        exporter = OTLPSpanExporter(endpoint=endpoint, insecure=endpoint.startswith("http://"))
    except Exception:
        logger.exception("otel_exporter_setup_failed", extra={"endpoint": endpoint})
        return
    provider.add_span_processor(BatchSpanProcessor(exporter))


def tracer_provider() -> TracerProvider:
    """Return the process-wide provider, creating and registering it once."""
    global _provider
    if _provider is None:
        _provider = TracerProvider(resource=_resource())
        _attach_exporter(_provider)
        trace.set_tracer_provider(_provider)
        set_global_textmap(TraceContextTextMapPropagator())
    return _provider


def configure_otel(app: FastAPI) -> None:
    provider = tracer_provider()
    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=provider,
        excluded_urls=EXCLUDED_URLS,
    )
