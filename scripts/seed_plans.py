"""
Seed subscription plans and the initial commission settings.

Usage:
    python scripts/seed_plans.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql://..." python scripts/seed_plans.py

This script creates:
- The Free and PRO subscription plans (if missing)
- Commission settings version 1 with default values (if no version exists)
"""

import asyncio
import os
import sys
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config import settings
from src.models import SubscriptionPlan
from src.services.settings_store import SettingsVersionStore


# ===== PLANS =====

PLANS = [
    {"name": "Free", "monthly_price": Decimal("0"), "yearly_price": Decimal("0")},
    {"name": "PRO", "monthly_price": Decimal("999"), "yearly_price": Decimal("9990")},
]


async def create_plan(db: AsyncSession, name: str, monthly_price: Decimal, yearly_price: Decimal):
    """Create a subscription plan unless one with the same name exists."""
    result = await db.execute(select(SubscriptionPlan).where(SubscriptionPlan.name == name))
    plan = result.scalar_one_or_none()

    if plan:
        print(f"Plan already exists: {name} (id={plan.id})")
        return plan

    plan = SubscriptionPlan(
        name=name,
        monthly_price=monthly_price,
        yearly_price=yearly_price,
        is_active=True,
    )
    db.add(plan)
    await db.flush()
    print(f"Created plan: {name} (id={plan.id})")
    return plan


async def seed_all(database_url: str):
    """Seed plans and default commission settings."""
    print("\nConnecting to database...")
    print(f"URL: {database_url[:50]}...")

    engine = create_async_engine(database_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as db:
        print("\n=== Creating subscription plans ===\n")
        for plan in PLANS:
            await create_plan(db, **plan)
        await db.commit()

    print("\n=== Commission settings ===\n")
    active = await SettingsVersionStore(session_factory).ensure_default_settings()
    print(f"Active commission settings: version {active.version} (created by {active.created_by})")

    await engine.dispose()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed subscription plans and commission settings")
    parser.add_argument("--database-url", default=settings.database_url, help="Async database URL")

    args = parser.parse_args()

    asyncio.run(seed_all(args.database_url))
