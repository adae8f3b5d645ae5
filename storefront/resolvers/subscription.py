"""
Live root fields. Each one relays its topic's payloads unchanged; closing
the stream closes the bus iterator, which deregisters the subscriber.

The context outlives a single event here, so its loaders are reset before
each payload is handed on for field resolution.
"""
from contextlib import aclosing
from typing import AsyncGenerator

import strawberry
from strawberry.types import Info

from storefront.events import Topic
from storefront.resolvers.types import PostType, ProductType


async def _relay(info: Info, topic: Topic):
    async with aclosing(info.context.event_bus.subscribe(topic)) as events:
        async for payload in events:
            info.context.reset_loaders()
            yield payload


@strawberry.type
class Subscription:
    @strawberry.subscription
    async def new_product(self, info: Info) -> AsyncGenerator[ProductType, None]:
        async with aclosing(_relay(info, Topic.NEW_PRODUCT)) as products:
            async for product in products:
                yield product

    @strawberry.subscription
    async def new_post(self, info: Info) -> AsyncGenerator[PostType, None]:
        async with aclosing(_relay(info, Topic.NEW_POST)) as posts:
            async for post in posts:
                yield post

    @strawberry.subscription
    async def post_published(self, info: Info) -> AsyncGenerator[PostType, None]:
        async with aclosing(_relay(info, Topic.POST_PUBLISHED)) as posts:
            async for post in posts:
                yield post
