#!/usr/bin/env python3
"""Seed the sample product catalog.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --no-clear
    python scripts/seed_catalog.py --create-tables
"""

import argparse
import asyncio

from storefront.catalog.seed import seed_catalog
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import async_session_factory, create_tables
from storefront.infrastructure.logging_config import configure_logging


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the sample product catalog")
    parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Keep existing products and only add missing sample products",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create database tables first (instead of running alembic)",
    )
    args = parser.parse_args()

    configure_logging(settings.log_level)

    if args.create_tables:
        print("Creating database tables...")
        await create_tables()

    async with async_session_factory() as session:
        result = await seed_catalog(session, clear_existing=not args.no_clear)

    print(f"  Deleted: {result['deleted']} existing products")
    print(f"  Created: {result['products_created']} products")
    print(f"  Variants: {result['variants_created']}")


if __name__ == "__main__":
    asyncio.run(main())
