"""
Database Connection
===================

Async engine and session factory for the SQL event store and the profile
cache repository. Engines are created lazily so importing the package never
opens a connection pool.
"""

import logging
from functools import lru_cache
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from decision_intel.config import settings
from decision_intel.models import Base

logger = logging.getLogger(__name__)


def create_engine(url: Optional[str] = None, **kwargs) -> AsyncEngine:
    """Create an async engine; defaults to the configured PostgreSQL database."""
    if url is None:
        url = settings.async_database_url
        kwargs.setdefault("pool_size", settings.db_pool_size)
        kwargs.setdefault("max_overflow", settings.db_max_overflow)
    return create_async_engine(
        url,
        echo=settings.db_echo,
        pool_pre_ping=True,
        **kwargs,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Process-wide engine for the configured database."""
    return create_engine()


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return create_session_factory(get_engine())


async def init_models(engine: AsyncEngine) -> None:
    """Create every table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# =============================================================================
# HEALTH CHECK
# =============================================================================

async def check_database_connection(engine: AsyncEngine) -> bool:
    """Check if database is accessible."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False
