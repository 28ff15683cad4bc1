"""
Async SQLAlchemy database session configuration.
Optimized for Supabase/PostgreSQL with connection pooling handled upstream.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config import settings

logger = logging.getLogger(__name__)

# NullPool: the transaction pooler in front of PostgreSQL does the pooling
engine = create_async_engine(
    settings.database_url,
    poolclass=NullPool,
    echo=not settings.is_production,  # SQL logging in dev
    connect_args={
        "statement_cache_size": 0,  # Required for Supabase Transaction Pooler
    },
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.
    Usage:
        @router.get("/plans")
        async def list_plans(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

