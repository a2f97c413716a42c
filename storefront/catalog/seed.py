"""Sample catalog for local development and demos.

Prices are in minor units (paise).
"""

from typing import Any

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.models import Product, ProductStatus, ProductVariant
from storefront.catalog.repository import CatalogRepository

logger = structlog.get_logger()

SAMPLE_PRODUCTS: list[dict[str, Any]] = [
    {
        "id": "prod-white-shirt",
        "name": "Classic White Cotton Shirt",
        "image_url": "/uploads/products/sample-shirt-1.jpg",
        "price": 299900,
        "sale_price": 249900,
        "variants": [
            ("S", "White", "WSH-S-WHT", 15),
            ("M", "White", "WSH-M-WHT", 20),
            ("L", "White", "WSH-L-WHT", 18),
            ("XL", "White", "WSH-XL-WHT", 10),
        ],
    },
    {
        "id": "prod-denim-jeans",
        "name": "Premium Slim Fit Denim Jeans",
        "image_url": "/uploads/products/sample-jeans-1.jpg",
        "price": 499900,
        "sale_price": None,
        "variants": [
            ("S", "Indigo", "JNS-S-IND", 12),
            ("M", "Indigo", "JNS-M-IND", 25),
            ("L", "Indigo", "JNS-L-IND", 20),
            ("M", "Black", "JNS-M-BLK", 15),
            ("L", "Black", "JNS-L-BLK", 18),
        ],
    },
    {
        "id": "prod-printed-tee",
        "name": "Printed Designer T-Shirt",
        "image_url": "/uploads/products/sample-tshirt-1.jpg",
        "price": 149900,
        "sale_price": 99900,
        "variants": [
            ("S", "Black", "TSH-S-BLK", 30),
            ("M", "Black", "TSH-M-BLK", 40),
            ("L", "Black", "TSH-L-BLK", 35),
            ("XL", "Black", "TSH-XL-BLK", 20),
            ("M", "White", "TSH-M-WHT", 25),
        ],
    },
    {
        "id": "prod-evening-dress",
        "name": "Elegant Evening Dress",
        "image_url": "/uploads/products/sample-dress-1.jpg",
        "price": 1299900,
        "sale_price": 999900,
        "variants": [
            ("S", "Navy", "DRS-S-NVY", 5),
            ("M", "Navy", "DRS-M-NVY", 8),
            ("L", "Burgundy", "DRS-L-BRG", 6),
        ],
    },
]


def build_product(data: dict[str, Any]) -> Product:
    return Product(
        id=data["id"],
        name=data["name"],
        image_url=data["image_url"],
        price=data["price"],
        sale_price=data["sale_price"],
        currency="INR",
        status=ProductStatus.ACTIVE,
        variants=[
            ProductVariant(size=size, color=color, sku=sku, stock=stock)
            for size, color, sku, stock in data["variants"]
        ],
    )


async def seed_catalog(session: AsyncSession, clear_existing: bool = True) -> dict[str, int]:
    """Load the sample catalog.

    Args:
        session: Database session; committed on success.
        clear_existing: Whether to delete every existing product first.
            Otherwise products whose id already exists are left alone.

    Returns:
        Counts of deleted products, created products and created variants.
    """
    repository = CatalogRepository(session)

    deleted = 0
    if clear_existing:
        count_result = await session.execute(select(func.count()).select_from(Product))
        deleted = count_result.scalar_one()
        await session.execute(delete(ProductVariant))
        await session.execute(delete(Product))

    created: list[Product] = []
    for data in SAMPLE_PRODUCTS:
        if not clear_existing and await repository.get_by_id(data["id"], include_variants=False):
            continue
        created.append(await repository.save(build_product(data)))
    await session.commit()

    result = {
        "deleted": deleted,
        "products_created": len(created),
        "variants_created": sum(len(p.variants) for p in created),
    }
    logger.info("Catalog seeded", **result)
    return result
