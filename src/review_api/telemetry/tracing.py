"""
Tracing for the review API.

Spans come from three places: FastAPI instrumentation for inbound requests, one
``store <METHOD> <table>`` span per store call opened by StoreClient, and the
httpx instrumentation of the store's connection pool underneath it. With
tracing disabled OpenTelemetry's no-op provider stays in place and store spans
cost nothing.
"""

from __future__ import annotations

from collections.abc import Iterator
import contextlib
import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Span, SpanKind

from .. import __version__
from ..enums import ServiceEndpoint


if TYPE_CHECKING:
    from fastapi import FastAPI
    import httpx
    from opentelemetry.sdk.trace.export import SpanExporter

    from review_api.config import ApiSettings

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("review_api.store")

UNTRACED_ENDPOINTS = (ServiceEndpoint.HEALTH, ServiceEndpoint.METRICS)


def _build_exporter(settings: ApiSettings) -> SpanExporter:
    try:
        return OTLPSpanExporter(
            endpoint=settings.otel_exporter_endpoint,
            insecure=settings.otel_exporter_insecure,
            timeout=5,
        )
    except Exception as exc:
        logger.warning("OTLP exporter unavailable (%s), writing spans to stdout", exc)
        return ConsoleSpanExporter()


def setup_tracing(settings: ApiSettings, service_name: str) -> TracerProvider | None:
    """
    Install the process tracer provider.

    Args:
        settings: Service settings (ENABLE_TRACING and the OTLP exporter options)
        service_name: Reported as service.name

    Returns:
        The installed provider, or None when tracing is disabled
    """
    if not settings.enable_tracing:
        return None

    resource = Resource.create(
        {
            SERVICE_NAME: service_name,
            SERVICE_VERSION: __version__,
            "review_api.store_schema": settings.store_schema or "default",
        }
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(_build_exporter(settings)))
    trace.set_tracer_provider(provider)

    logger.info(
        "Tracing enabled for %s, exporting to %s",
        service_name,
        settings.otel_exporter_endpoint,
    )
    return provider


@contextlib.contextmanager
def store_span(table: str, method: str) -> Iterator[Span]:
    """
    Span around one store call.

    An exception leaving the block is recorded on the span and marks it as
    failed before propagating.
    """
    with tracer.start_as_current_span(
        f"store {method} {table}",
        kind=SpanKind.CLIENT,
        attributes={
            "db.system": "postgresql",
            "db.sql.table": table,
            "http.request.method": method,
        },
    ) as span:
        yield span


def instrument_store_client(client: httpx.AsyncClient) -> None:
    """Trace the HTTP exchanges of the store's connection pool."""
    try:
        HTTPXClientInstrumentor.instrument_client(client)
    except Exception as exc:
        logger.warning("Unable to instrument the store client: %s", exc)


def instrument_fastapi_app(app: FastAPI) -> None:
    """Trace inbound requests, except health checks and metric scrapes."""
    try:
        FastAPIInstrumentor.instrument_app(
            app,
            excluded_urls=",".join(endpoint.value for endpoint in UNTRACED_ENDPOINTS),
        )
    except Exception as exc:
        logger.warning("Unable to instrument FastAPI app for tracing: %s", exc)
