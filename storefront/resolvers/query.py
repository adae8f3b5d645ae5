"""Read-only root fields."""
from typing import Optional

import strawberry
from strawberry.types import Info

from storefront.datasource import Filter, Kind, OrderBy
from storefront.resolvers.types import PostType, ProductType, UserType
from storefront.schemas import Page, validate


@strawberry.type
class Query:
    @strawberry.field(description="Every user, oldest first. Not paginated.")
    async def all_users(self, info: Info) -> list[UserType]:
        rows = await info.context.data_source.find_many(
            Kind.USER, order_by=OrderBy("created_at")
        )
        return [UserType.from_model(row) for row in rows]

    @strawberry.field(
        description="Published posts, optionally matching title or content."
    )
    async def feed(
        self,
        info: Info,
        search_string: Optional[str] = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
    ) -> list[PostType]:
        page = validate(Page, skip=skip, take=take)
        rows = await info.context.data_source.find_many(
            Kind.POST,
            Filter(
                where={"published": True},
                search=search_string,
                search_fields=("title", "content"),
            ),
            order_by=OrderBy("created_at"),
            skip=page.skip,
            take=page.take,
        )
        return [PostType.from_model(row) for row in rows]

    @strawberry.field(
        description="Products newest first, optionally matching name or description."
    )
    async def products(
        self,
        info: Info,
        search_string: Optional[str] = None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
    ) -> list[ProductType]:
        page = validate(Page, skip=skip, take=take)
        rows = await info.context.data_source.find_many(
            Kind.PRODUCT,
            Filter(search=search_string, search_fields=("name", "description")),
            order_by=OrderBy("created_at", descending=True),
            skip=page.skip,
            take=page.take,
        )
        return [ProductType.from_model(row) for row in rows]
