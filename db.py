"""Database configuration and session management."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

# Base class for declarative models
Base = declarative_base()


def create_engine(database_url: str) -> AsyncEngine:
    """
    Create the async engine for the given database URL.

    The engine is owned by the service container and disposed on shutdown.
    """
    return create_async_engine(
        database_url,
        echo=False,  # Set to True for SQL query logging
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize database (create tables).
    This should be called on application startup.
    """
    # Register every model on Base.metadata before create_all
    import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """
    Close database connections.
    This should be called on application shutdown.
    """
    await engine.dispose()
