import pytest

from storefront.datasource import Kind, SqlAlchemyDataSource

FEED = """
query Feed($search: String, $skip: Int, $take: Int) {
  feed(searchString: $search, skip: $skip, take: $take) { title published }
}
"""

PRODUCTS = """
query Products($search: String, $skip: Int, $take: Int) {
  products(searchString: $search, skip: $skip, take: $take) { name price }
}
"""


class CountingDataSource(SqlAlchemyDataSource):
    def __init__(self, session):
        super().__init__(session)
        self.related_calls = []
        self.lookups = []

    async def find_by_id(self, kind, id):
        self.lookups.append((kind, id))
        return await super().find_by_id(kind, id)

    async def find_related(self, kind, id, relation):
        self.related_calls.append((kind, id, relation))
        return await super().find_related(kind, id, relation)


@pytest.fixture
def data_source(db_session):
    return CountingDataSource(db_session)


@pytest.fixture
async def catalogue(data_source):
    rows = []
    for name, description in [
        ("Canvas Tote", "cotton bag"),
        ("Enamel Mug", "camp mug"),
        ("Tote Deluxe", "leather handles"),
        ("Sticker Pack", "six stickers for your mug"),
    ]:
        rows.append(
            await data_source.create(
                Kind.PRODUCT,
                {"name": name, "description": description, "image": "img.png", "price": 5.0},
            )
        )
    return rows


async def test_all_users(execute, alice, bob):
    result = await execute("{ allUsers { email name } }")
    assert result.errors is None
    assert result.data["allUsers"] == [
        {"email": "alice@example.com", "name": "Alice"},
        {"email": "bob@example.com", "name": None},
    ]


async def test_feed_only_returns_published(execute, posts):
    result = await execute(FEED)
    assert result.errors is None
    assert [p["title"] for p in result.data["feed"]] == ["GraphQL tips", "Cooking"]
    assert all(p["published"] for p in result.data["feed"])


async def test_feed_search_matches_title_or_content(execute, data_source, posts):
    await data_source.create(Kind.POST, {"title": "foo fighters", "published": True})

    result = await execute(FEED, search="foo")
    titles = [p["title"] for p in result.data["feed"]]
    # "Secret foo" matches but is a draft
    assert titles == ["Cooking", "foo fighters"]


async def test_feed_empty_search_is_no_filter(execute, posts):
    result = await execute(FEED, search="")
    assert len(result.data["feed"]) == 2


async def test_feed_pagination(execute, posts):
    result = await execute(FEED, skip=1, take=5)
    assert [p["title"] for p in result.data["feed"]] == ["Cooking"]


async def test_products_newest_first(execute, catalogue):
    result = await execute(PRODUCTS)
    assert result.errors is None
    assert [p["name"] for p in result.data["products"]] == [
        "Sticker Pack",
        "Tote Deluxe",
        "Enamel Mug",
        "Canvas Tote",
    ]


async def test_products_search_name_or_description(execute, catalogue):
    result = await execute(PRODUCTS, search="mug")
    assert [p["name"] for p in result.data["products"]] == ["Sticker Pack", "Enamel Mug"]


async def test_products_skip_zero_same_as_no_skip(execute, catalogue):
    with_zero = await execute(PRODUCTS, skip=0, take=2)
    without = await execute(PRODUCTS, take=2)
    assert with_zero.data == without.data
    assert len(with_zero.data["products"]) == 2


async def test_products_take_zero_is_honoured(execute, catalogue):
    result = await execute(PRODUCTS, take=0)
    assert result.errors is None
    assert result.data["products"] == []


async def test_negative_pagination_rejected(execute, catalogue):
    result = await execute(PRODUCTS, skip=-1)
    assert result.data is None
    assert result.errors[0].extensions["code"] == "BAD_USER_INPUT"
    assert "skip" in result.errors[0].message


async def test_user_without_posts_has_empty_list(execute, alice, bob, posts):
    result = await execute("{ allUsers { email posts { title } } }")
    by_email = {u["email"]: u["posts"] for u in result.data["allUsers"]}
    assert by_email["bob@example.com"] == []
    assert [p["title"] for p in by_email["alice@example.com"]] == [
        "GraphQL tips",
        "Cooking",
        "Secret foo",
    ]


async def test_post_author(execute, data_source, posts):
    await data_source.create(Kind.POST, {"title": "Anonymous", "published": True})

    result = await execute("{ feed { title author { email } } }")
    authors = {p["title"]: p["author"] for p in result.data["feed"]}
    assert authors["GraphQL tips"] == {"email": "alice@example.com"}
    assert authors["Anonymous"] is None


async def test_relation_fetched_once_per_request(execute, data_source, alice, bob):
    result = await execute(
        "{ a: allUsers { posts { id } } b: allUsers { posts { id } } }"
    )
    assert result.errors is None
    assert sorted(call[1] for call in data_source.related_calls) == sorted([alice.id, bob.id])


async def test_post_author_loaded_from_author_id(execute, data_source, posts):
    result = await execute("{ feed { title author { email } } }")

    assert result.errors is None
    assert [p["author"] for p in result.data["feed"]] == [{"email": "alice@example.com"}] * 2
    # Both posts share one author: one lookup, and no post re-read
    assert data_source.lookups == [(Kind.USER, posts[0].author_id)]
    assert not any(call[0] is Kind.POST for call in data_source.related_calls)
