"""
Write-side root fields.

Each mutation validates its input, writes through the data source and only
then publishes on the event bus, so a failed write never produces an event.
The event is published before the resolver returns.
"""
import logging
from contextlib import contextmanager
from typing import Optional

import strawberry
from opentelemetry import trace
from strawberry.types import Info

from storefront.datasource import Kind, find_one
from storefront.events import Topic
from storefront.exceptions import NotFoundError
from storefront.resolvers.types import PostType, ProductType
from storefront.schemas import PostAuthor, PostCreate, ProductCreate, validate
from storefront.telemetry import MUTATIONS_TOTAL

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


@strawberry.input
class ProductCreateInput:
    name: str
    price: Optional[float] = None
    image: Optional[str] = None
    description: Optional[str] = None


@strawberry.input
class PostCreateInput:
    title: str
    content: Optional[str] = None


@contextmanager
def _observed(operation: str):
    """Span + outcome counter around one mutation."""
    with tracer.start_as_current_span(operation) as span:
        try:
            yield span
        except Exception:
            MUTATIONS_TOTAL.labels(operation=operation, outcome="error").inc()
            raise
        MUTATIONS_TOTAL.labels(operation=operation, outcome="ok").inc()


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def create_product(
        self, info: Info, data: ProductCreateInput
    ) -> Optional[ProductType]:
        with _observed("create_product") as span:
            product_in = validate(
                ProductCreate,
                name=data.name,
                price=data.price,
                image=data.image,
                description=data.description,
            )
            row = await info.context.data_source.create(
                Kind.PRODUCT, product_in.model_dump()
            )
            product = ProductType.from_model(row)
            span.set_attribute("product.id", product.id)

            info.context.event_bus.publish(Topic.NEW_PRODUCT, product)
            logger.info("Product created: %s (%s)", product.id, product.name)
            return product

    @strawberry.mutation
    async def create_draft(
        self,
        info: Info,
        data: PostCreateInput,
        author_email: Optional[str] = None,
    ) -> Optional[PostType]:
        """
        Create an unpublished post. When ``authorEmail`` is given the author
        must already exist; there is no way to create users through the API.
        """
        with _observed("create_draft") as span:
            post_in = validate(PostCreate, title=data.title, content=data.content)
            fields = {**post_in.model_dump(), "published": False}

            if author_email is not None:
                email = validate(PostAuthor, email=author_email).email
                author = await find_one(info.context.data_source, Kind.USER, email=email)
                if author is None:
                    raise NotFoundError(Kind.USER.value, "email", email)
                fields["author_id"] = author.id

            row = await info.context.data_source.create(Kind.POST, fields)
            post = PostType.from_model(row)
            span.set_attribute("post.id", post.id)

            info.context.event_bus.publish(Topic.NEW_POST, post)
            logger.info("Draft created: %s by %s", post.id, author_email or "nobody")
            return post

    @strawberry.mutation
    async def toggle_publish_post(
        self, info: Info, id: strawberry.ID
    ) -> Optional[PostType]:
        """
        Flip ``published``. Going draft → published also emits
        ``postPublished`` carrying the post as it was before the flip.
        """
        with _observed("toggle_publish_post") as span:
            span.set_attribute("post.id", id)
            source = info.context.data_source

            row = await source.find_by_id(Kind.POST, id)
            if row is None:
                raise NotFoundError(Kind.POST.value, "id", id)
            before = PostType.from_model(row)

            updated = PostType.from_model(
                await source.update(Kind.POST, id, {"published": not before.published})
            )

            if not before.published:
                info.context.event_bus.publish(Topic.POST_PUBLISHED, before)
            logger.info("Post %s published=%s", id, updated.published)
            return updated
