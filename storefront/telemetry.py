"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics: mutation outcomes, published events, live subscribers

Both are initialised once at startup; the FastAPI app is instrumented after
it is created.
"""
import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Gauge

from storefront.config import settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
MUTATIONS_TOTAL = Counter(
    "graphql_mutations_total",
    "GraphQL mutations executed",
    ["operation", "outcome"],  # outcome: 'ok' | 'error'
)

EVENTS_PUBLISHED_TOTAL = Counter(
    "event_bus_published_total",
    "Events published on the in-process event bus",
    ["topic"],
)

EVENTS_DELIVERED_TOTAL = Counter(
    "event_bus_delivered_total",
    "Event deliveries to individual subscribers",
    ["topic"],
)

ACTIVE_SUBSCRIBERS = Gauge(
    "event_bus_active_subscribers",
    "Subscribers currently registered per topic",
    ["topic"],
)

SUBSCRIBERS_DROPPED_TOTAL = Counter(
    "event_bus_subscribers_dropped_total",
    "Subscribers disconnected because their queue was full",
    ["topic"],
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing() -> None:
    """Configure the global OTel TracerProvider with OTLP/Jaeger export."""
    if not settings.tracing_enabled:
        logger.info("Tracing disabled (TRACING_ENABLED=false)")
        return

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTel tracing configured → %s", settings.otel_exporter_otlp_endpoint
        )
    except Exception as exc:
        logger.warning("Could not connect to OTLP exporter: %s — traces disabled", exc)

    trace.set_tracer_provider(provider)

    SQLAlchemyInstrumentor().instrument()


def instrument_app(app) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    if settings.tracing_enabled:
        FastAPIInstrumentor.instrument_app(app)
