#!/usr/bin/env python3
"""
Write the GraphQL SDL to disk so the frontend codegen can read it.

  python scripts/export_schema.py               # → ./schema.graphql
  python scripts/export_schema.py -o api.graphql
"""
import argparse
from pathlib import Path

from storefront.schema import schema


def main(output: Path) -> None:
    output.write_text(schema.as_str() + "\n", encoding="utf-8")
    print(f"Schema written to {output}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Export the GraphQL schema")
    parser.add_argument("-o", "--output", type=Path, default=Path("schema.graphql"))
    args = parser.parse_args()
    main(args.output)
