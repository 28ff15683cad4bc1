"""API router aggregation."""

from fastapi import APIRouter

from src.api.commission_settings import router as commission_settings_router
from src.api.commissions import router as commissions_router
from src.api.health import router as health_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(commission_settings_router)
api_router.include_router(commissions_router)

__all__ = ["api_router"]
