"""
Pytest configuration and fixtures.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.models import Base, SubscriptionPlan
from src.services.settings_store import SettingsVersionStore


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FREE_PLAN_ID = "00000000-0000-0000-0000-000000000001"
PRO_PLAN_ID = "00000000-0000-0000-0000-000000000002"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    # One shared connection, so every session sees the same in-memory database
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def plans(session_factory):
    """Free and PRO subscription plans."""
    async with session_factory() as db:
        db.add_all(
            [
                SubscriptionPlan(
                    id=FREE_PLAN_ID,
                    name="Free",
                    monthly_price=Decimal("0"),
                    yearly_price=Decimal("0"),
                ),
                SubscriptionPlan(
                    id=PRO_PLAN_ID,
                    name="PRO",
                    monthly_price=Decimal("999"),
                    yearly_price=Decimal("9990"),
                ),
            ]
        )
        await db.commit()
    return {"free": FREE_PLAN_ID, "pro": PRO_PLAN_ID}


@pytest.fixture
def store(session_factory):
    """Settings store on the test database."""
    return SettingsVersionStore(session_factory)
