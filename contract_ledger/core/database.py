"""Database connection and session management for the world state.

Transaction Guarantees:
- Each ledger operation gets its own session
- A block commit is atomic: all writes of the block or none
- On any exception, the session is rolled back
- Sessions are properly closed after use
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


def build_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create an async engine for the configured world state database."""
    settings = settings or get_settings()
    logger.info(f"World state database (masked): {settings.database_url_async[:30]}...")
    return create_async_engine(
        settings.database_url_async,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory - creates new sessions for each ledger operation."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
        autoflush=False,         # Manual flush for better control
    )


engine = build_engine()
async_session_factory = build_session_factory(engine)


@asynccontextmanager
async def get_session_context(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Context manager for a transactional session."""
    factory = session_factory or async_session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(target: AsyncEngine | None = None) -> None:
    """Initialize database (create tables if needed)."""
    from ..models import Base

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(target: AsyncEngine | None = None) -> None:
    """Close database connections."""
    await (target or engine).dispose()
