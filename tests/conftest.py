"""Shared fixtures for storefront tests.

Every test gets its own SQLite database file with the full schema, so
service and API tests run against real SQL (conditional updates,
unique constraints, RETURNING) without a PostgreSQL server.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncIterator  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import storefront.infrastructure.models  # noqa: E402,F401
from storefront.catalog.models import Product, ProductStatus, ProductVariant  # noqa: E402
from storefront.catalog.repository import CatalogRepository  # noqa: E402
from storefront.domain.value_objects import Address  # noqa: E402
from storefront.infrastructure.config import settings  # noqa: E402
from storefront.infrastructure.database import Base, get_session  # noqa: E402
from storefront.main import app  # noqa: E402

USER_ID = "user-123"
OTHER_USER_ID = "user-456"
ADMIN_ID = "admin-1"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """Create a fresh database with all tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


async def _read_stock(session_factory, product_id: str, size: str, color: str) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(ProductVariant.stock).where(
                ProductVariant.product_id == product_id,
                ProductVariant.size == size,
                ProductVariant.color == color,
            )
        )
        return result.scalar_one()


async def _read_total_stock(session_factory, product_id: str) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(Product.total_stock).where(Product.id == product_id)
        )
        return result.scalar_one()


@pytest.fixture
def stock_of(session_factory):
    """Read a variant's stock counter in a separate session."""

    async def read(product_id: str, size: str, color: str) -> int:
        return await _read_stock(session_factory, product_id, size, color)

    return read


@pytest.fixture
def total_stock_of(session_factory):
    async def read(product_id: str) -> int:
        return await _read_total_stock(session_factory, product_id)

    return read


@pytest.fixture
def user_id() -> str:
    return USER_ID


# ============================================================================
# Catalog Fixtures
# ============================================================================


async def seed_product(session_factory, product: Product) -> Product:
    async with session_factory() as session:
        await CatalogRepository(session).save(product)
        await session.commit()
    return product


@pytest.fixture
async def tee(session_factory) -> Product:
    """T-shirt priced at 500 with two variants (M/Black x10, L/White x1)."""
    return await seed_product(
        session_factory,
        Product(
            id="prod-tee",
            name="Classic Tee",
            image_url="https://cdn.example.com/tee.jpg",
            price=50000,
            currency="INR",
            status=ProductStatus.ACTIVE,
            variants=[
                ProductVariant(size="M", color="Black", sku="TEE-M-BLK", stock=10),
                ProductVariant(size="L", color="White", sku="TEE-L-WHT", stock=1),
            ],
        ),
    )


@pytest.fixture
async def cap(session_factory) -> Product:
    """Cap on sale: base 299, sale 249, one variant with 3 units."""
    return await seed_product(
        session_factory,
        Product(
            id="prod-cap",
            name="Canvas Cap",
            image_url=None,
            price=29900,
            sale_price=24900,
            currency="INR",
            status=ProductStatus.ACTIVE,
            variants=[
                ProductVariant(size="Free", color="Red", sku="CAP-RED", stock=3),
            ],
        ),
    )


@pytest.fixture
async def draft_product(session_factory) -> Product:
    return await seed_product(
        session_factory,
        Product(
            id="prod-draft",
            name="Unreleased Jacket",
            price=250000,
            currency="INR",
            status=ProductStatus.DRAFT,
            variants=[ProductVariant(size="M", color="Olive", stock=4)],
        ),
    )


@pytest.fixture
def address() -> Address:
    return Address(
        name="Asha Rao",
        phone="9876543210",
        street="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        zip_code="560001",
    )


@pytest.fixture
def address_payload() -> dict[str, str]:
    return {
        "name": "Asha Rao",
        "phone": "9876543210",
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "zipCode": "560001",
    }


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
async def client(session_factory) -> AsyncIterator[httpx.AsyncClient]:
    """Create an async test client bound to the per-test database."""

    async def override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Get authentication headers for a shopper."""
    return {
        "Authorization": f"Bearer {settings.storefront_api_key}",
        "X-User-ID": USER_ID,
    }


@pytest.fixture
def other_user_headers() -> dict[str, str]:
    return {
        "Authorization": f"Bearer {settings.storefront_api_key}",
        "X-User-ID": OTHER_USER_ID,
    }


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Get authentication headers for an admin."""
    return {
        "Authorization": f"Bearer {settings.storefront_api_key}",
        "X-User-ID": ADMIN_ID,
        "X-User-Role": "admin",
    }
