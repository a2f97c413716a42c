"""Database configuration and session management.

Provides async SQLAlchemy engine and session factory.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from storefront.infrastructure.config import settings

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Services commit their own units of work; anything left pending
    when the request finishes is committed here, and any error rolls
    the session back.

    Yields:
        AsyncSession for database operations.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create all tables that do not exist yet.

    Used for local development when ``auto_create_tables`` is enabled;
    deployed databases are migrated with alembic.
    """
    # Import models so they register with Base.metadata
    import storefront.catalog.models  # noqa: F401
    import storefront.infrastructure.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a block as one transaction on an existing session.

    Commits when the block completes and rolls back if it raises, so a
    failed business operation leaves no partial state behind.

    Yields:
        The same session.
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
