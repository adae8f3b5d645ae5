#!/usr/bin/env python3
"""
Seed script: loads the demo dataset straight into the database.

Creates:
  • 4 users (the API has no way to create them)
  • 4 posts, two of them published
  • 3 products

Run once the database is reachable:
  python scripts/seed_data.py
  DATABASE_URL=sqlite+aiosqlite:///./storefront.db python scripts/seed_data.py
"""
import argparse
import asyncio
import logging

from storefront.config import settings
from storefront.database import AsyncSessionLocal, engine, init_db
from storefront.datasource import SqlAlchemyDataSource
from storefront.seed import seed


async def main(create_tables: bool) -> None:
    if create_tables:
        await init_db()

    async with AsyncSessionLocal() as session:
        summary = await seed(SqlAlchemyDataSource(session))
    await engine.dispose()

    print("\n" + "=" * 60)
    print(f"Seed complete: {len(summary.user_ids)} users, "
          f"{len(summary.post_ids)} posts, {len(summary.product_ids)} products\n")
    print("# Start the API:")
    print("  uvicorn storefront.main:app --reload\n")
    print("# Query the feed:")
    print("  curl -s -X POST 'http://localhost:8000/graphql' \\")
    print("    -H 'Content-Type: application/json' \\")
    print("    -d '{\"query\": \"{ feed { id title author { email } } }\"}' | python3 -m json.tool\n")
    print(f"# GraphiQL: http://localhost:8000{settings.graphql_path}")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Storefront database")
    parser.add_argument(
        "--no-create-tables",
        action="store_true",
        help="Assume the tables already exist",
    )
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    )
    asyncio.run(main(create_tables=not args.no_create_tables))
