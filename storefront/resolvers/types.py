"""
GraphQL object types and their relation resolvers.

Scalar fields are copied off the ORM row when the type is built; the
relation fields are resolved lazily through the request's loaders, so they
cost nothing unless selected. User.posts is keyed by the user id; Post.author
by the author_id carried on the post, so the post is never re-read.
"""
from typing import Optional

import strawberry
from strawberry.types import Info

from storefront.models import Post, Product, User


@strawberry.type(name="User")
class UserType:
    id: strawberry.ID
    name: Optional[str]
    email: str

    @strawberry.field(description="Posts written by this user, oldest first.")
    async def posts(self, info: Info) -> list["PostType"]:
        rows = await info.context.posts_by_author.load(self.id)
        return [PostType.from_model(row) for row in rows]

    @classmethod
    def from_model(cls, user: User) -> "UserType":
        return cls(id=strawberry.ID(user.id), name=user.name, email=user.email)


@strawberry.type(name="Post")
class PostType:
    id: strawberry.ID
    title: str
    content: Optional[str]
    published: bool
    author_id: strawberry.Private[Optional[str]] = None

    @strawberry.field
    async def author(self, info: Info) -> Optional[UserType]:
        if self.author_id is None:
            return None
        row = await info.context.users_by_id.load(self.author_id)
        return UserType.from_model(row) if row is not None else None

    @classmethod
    def from_model(cls, post: Post) -> "PostType":
        return cls(
            id=strawberry.ID(post.id),
            title=post.title,
            content=post.content,
            published=post.published,
            author_id=post.author_id,
        )


@strawberry.type(name="Product")
class ProductType:
    id: strawberry.ID
    name: str
    image: str
    price: float
    description: str

    @classmethod
    def from_model(cls, product: Product) -> "ProductType":
        return cls(
            id=strawberry.ID(product.id),
            name=product.name,
            image=product.image,
            price=product.price,
            description=product.description,
        )
