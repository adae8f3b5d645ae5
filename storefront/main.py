"""
Storefront GraphQL API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Create tables if not present
  3. Create the event bus shared by every request of this app
  4. Mount the GraphQL router (HTTP + websocket subscriptions)
  5. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from strawberry.fastapi import GraphQLRouter

from storefront.config import settings
from storefront.database import engine, init_db
from storefront.events import EventBus
from storefront.resolvers.context import get_context
from storefront.schema import schema
from storefront.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the DB schema and the event bus for the lifetime of the app."""
    logger.info("Starting Storefront API (env=%s)", settings.environment)

    await init_db()
    app.state.event_bus = EventBus(queue_size=settings.subscriber_queue_size)

    logger.info("Storefront API ready at %s", settings.graphql_path)
    yield

    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title="Storefront API",
    description="GraphQL API for the blog and product catalogue, with live updates.",
    version="1.0.0",
    lifespan=lifespan,
)

# ── GraphQL ────────────────────────────────────────────────────────────────
graphql_app = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.graphiql_enabled else None,
)
app.include_router(graphql_app, prefix=settings.graphql_path, tags=["GraphQL"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
