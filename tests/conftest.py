import asyncio
import os

# Must be set before storefront.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TRACING_ENABLED", "false")

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.database import Base
from storefront.datasource import Kind, SqlAlchemyDataSource
from storefront.events import EventBus
from storefront.resolvers.context import Context
from storefront.schema import schema


@pytest.fixture
async def session_factory():
    """Create in-memory database for testing"""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def data_source(db_session):
    return SqlAlchemyDataSource(db_session)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def execute(data_source, event_bus):
    """Run one GraphQL operation with a fresh per-request context."""
    async def _execute(query, **variables):
        context = Context(data_source=data_source, event_bus=event_bus)
        return await schema.execute(
            query, variable_values=variables or None, context_value=context
        )
    return _execute


@pytest.fixture
async def subscribe(data_source, event_bus):
    """
    Open a subscription and wait until it is registered on the bus.
    Returns (stream, pending first result).
    """
    opened = []

    async def _subscribe(query, topic):
        context = Context(data_source=data_source, event_bus=event_bus)
        stream = await schema.subscribe(query, context_value=context)
        before = event_bus.subscriber_count(topic)
        first = asyncio.ensure_future(stream.__anext__())
        opened.append(first)
        for _ in range(100):
            if event_bus.subscriber_count(topic) > before:
                break
            await asyncio.sleep(0.01)
        assert event_bus.subscriber_count(topic) == before + 1
        return stream, first

    yield _subscribe

    for pending in opened:
        pending.cancel()
    await asyncio.gather(*opened, return_exceptions=True)


@pytest.fixture
async def alice(data_source):
    return await data_source.create(
        Kind.USER, {"email": "alice@example.com", "name": "Alice"}
    )


@pytest.fixture
async def bob(data_source):
    return await data_source.create(Kind.USER, {"email": "bob@example.com", "name": None})


@pytest.fixture
async def posts(data_source, alice):
    """Three posts by Alice: two published, one draft."""
    rows = []
    for title, content, published in [
        ("GraphQL tips", "Use fragments", True),
        ("Cooking", "foo bar stew", True),
        ("Secret foo", "unpublished draft", False),
    ]:
        rows.append(
            await data_source.create(
                Kind.POST,
                {
                    "title": title,
                    "content": content,
                    "published": published,
                    "author_id": alice.id,
                },
            )
        )
    return rows
