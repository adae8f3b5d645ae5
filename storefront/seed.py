"""
Demo dataset.

Users cannot be created through the GraphQL API, so this is how authors get
into the database. Posts and products are written through the same data
source the resolvers use. Re-running is safe: existing emails are skipped.
"""
import logging
from dataclasses import dataclass, field

from storefront.datasource import DataSource, Kind, find_one

logger = logging.getLogger(__name__)


BASE_USERS = [
    ("alice@storefront.dev", "Alice Chen"),
    ("bob@storefront.dev", "Bob Martinez"),
    ("carol@storefront.dev", "Carol Singh"),
    ("dave@storefront.dev", None),
]

# (author email, title, content, published)
SAMPLE_POSTS = [
    ("alice@storefront.dev", "Launching the shop", "Our first products are live.", True),
    ("alice@storefront.dev", "Behind the photos", "How we shoot product images.", False),
    ("bob@storefront.dev", "Subscriptions over websockets", "graphql-transport-ws in practice.", True),
    ("carol@storefront.dev", "Pricing notes", None, False),
]

# (name, image, price, description)
SAMPLE_PRODUCTS = [
    ("Canvas Tote", "https://picsum.photos/seed/tote/640/480", 18.0, "Heavy cotton tote bag."),
    ("Enamel Mug", "https://picsum.photos/seed/mug/640/480", 12.5, "Camp mug, 350 ml."),
    ("Sticker Pack", "https://picsum.photos/seed/stickers/640/480", 4.0, "Six vinyl stickers."),
]


@dataclass
class SeedSummary:
    user_ids: list = field(default_factory=list)
    post_ids: list = field(default_factory=list)
    product_ids: list = field(default_factory=list)


async def seed(source: DataSource) -> SeedSummary:
    summary = SeedSummary()

    # ── Users ─────────────────────────────────────────────────────────────
    authors = {}
    for email, name in BASE_USERS:
        user = await find_one(source, Kind.USER, email=email)
        if user is not None:
            logger.info("User %s already present, skipping", email)
            authors[email] = user
            continue
        user = await source.create(Kind.USER, {"email": email, "name": name})
        authors[email] = user
        summary.user_ids.append(user.id)
    logger.info("Seeded %d user(s)", len(summary.user_ids))

    if not summary.user_ids:
        # Dataset already loaded; posts/products would be duplicated
        return summary

    # ── Posts ─────────────────────────────────────────────────────────────
    for email, title, content, published in SAMPLE_POSTS:
        post = await source.create(
            Kind.POST,
            {
                "title": title,
                "content": content,
                "published": published,
                "author_id": authors[email].id,
            },
        )
        summary.post_ids.append(post.id)
    logger.info("Seeded %d post(s)", len(summary.post_ids))

    # ── Products ──────────────────────────────────────────────────────────
    for name, image, price, description in SAMPLE_PRODUCTS:
        product = await source.create(
            Kind.PRODUCT,
            {"name": name, "image": image, "price": price, "description": description},
        )
        summary.product_ids.append(product.id)
    logger.info("Seeded %d product(s)", len(summary.product_ids))

    return summary
