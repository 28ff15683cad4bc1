"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.db import get_db

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns 200 if the service is running.
    """
    return {"status": "healthy", "service": "storefront-commissions"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """
    Readiness check with database connectivity.

    Returns 200 if the service can reach the commission tables.
    """
    try:
        await db.execute(text("SELECT 1 FROM commission_settings LIMIT 1"))
    except Exception as e:
        return {
            "status": "not_ready",
            "database": f"error: {str(e)}",
        }

    return {
        "status": "ready",
        "database": "connected",
    }
