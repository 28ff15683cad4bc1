"""
Storefront Commissions - helper commission engine

Main FastAPI application with:
- Versioned commission settings (super admin)
- Settings validation and change summaries
- Commission computation for the billing side
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api import api_router
from src.config import settings
from src.db import AsyncSessionLocal
from src.services.settings_store import SettingsVersionStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates version 1 of the commission settings if none exists

    Shutdown:
    - Cleanup tasks
    """
    logger.info("Starting Storefront Commissions...")

    if settings.seed_default_settings:
        active = await SettingsVersionStore(AsyncSessionLocal).ensure_default_settings()
        logger.info(f"Active commission settings: version {active.version}")

    logger.info("Storefront Commissions started successfully!")

    yield

    # Shutdown
    logger.info("Shutting down Storefront Commissions...")


# Create FastAPI application
app = FastAPI(
    title="Storefront Commissions",
    description="Helper commission calculation and settings versioning",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# Include routers
app.include_router(api_router)  # /api/* endpoints


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
