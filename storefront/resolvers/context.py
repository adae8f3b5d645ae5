"""
Per-request resolver context.

Everything a resolver touches arrives through ``info.context``: the data
source, the application's event bus and the relation loaders. Nothing is
looked up from module globals.

Over HTTP a context lives for one request. Over a websocket Strawberry keeps
one context for the whole connection, so the loaders are reset before every
subscription event and the data source opens a session per call.
"""
import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection
from strawberry.dataloader import DataLoader
from strawberry.fastapi import BaseContext

from storefront.database import AsyncSessionLocal, get_db
from storefront.datasource import (
    DataSource,
    Kind,
    SessionPerCallDataSource,
    SqlAlchemyDataSource,
)
from storefront.events import EventBus
from storefront.exceptions import ApplicationError

logger = logging.getLogger(__name__)


class Context(BaseContext):
    def __init__(self, data_source: DataSource, event_bus: EventBus):
        super().__init__()
        self.data_source = data_source
        self.event_bus = event_bus
        self.reset_loaders()

    def reset_loaders(self) -> None:
        """Start a fresh cache: one operation (or event) never sees another's."""
        self.posts_by_author = DataLoader(load_fn=self._load_posts_by_author)
        self.users_by_id = DataLoader(load_fn=self._load_users_by_id)

    async def _load_each(self, fetch, keys: list) -> list:
        # Sequential on purpose: a session cannot run two queries at once.
        # A failing key becomes that key's exception, not the whole batch's.
        results = []
        for key in keys:
            try:
                results.append(await fetch(key))
            except ApplicationError as exc:
                results.append(exc)
        return results

    async def _load_posts_by_author(self, user_ids: list) -> list:
        return await self._load_each(
            lambda id: self.data_source.find_related(Kind.USER, id, "posts"), user_ids
        )

    async def _load_users_by_id(self, user_ids: list) -> list:
        return await self._load_each(
            lambda id: self.data_source.find_by_id(Kind.USER, id), user_ids
        )


def get_event_bus(connection: HTTPConnection) -> EventBus:
    """FastAPI dependency: the bus created in the app lifespan."""
    return connection.app.state.event_bus


async def get_context(
    connection: HTTPConnection,
    db: AsyncSession = Depends(get_db),
    event_bus: EventBus = Depends(get_event_bus),
) -> Context:
    if connection.scope["type"] == "websocket":
        # The request session would live as long as the socket; never query on it
        return Context(
            data_source=SessionPerCallDataSource(AsyncSessionLocal), event_bus=event_bus
        )
    return Context(data_source=SqlAlchemyDataSource(db), event_bus=event_bus)
