"""Shared API dependencies."""

import logging

from fastapi import Header, HTTPException, status

from src.db import AsyncSessionLocal
from src.services.exceptions import (
    CommissionError,
    ConfigurationError,
    ConflictError,
    PersistenceError,
    ValidationError,
)
from src.services.settings_store import SettingsVersionStore

logger = logging.getLogger(__name__)

UNKNOWN_OPERATOR = "unknown"


def get_settings_store() -> SettingsVersionStore:
    """Settings store bound to the application session factory."""
    return SettingsVersionStore(AsyncSessionLocal)


async def get_changed_by(x_changed_by: str = Header(UNKNOWN_OPERATOR)) -> str:
    """Operator identity recorded in the audit trail."""
    return x_changed_by.strip() or UNKNOWN_OPERATOR


def http_error(error: CommissionError) -> HTTPException:
    """Map a commission engine error to an HTTP error response."""
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=422,
            detail={"errors": error.errors},
        )
    if isinstance(error, ConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(error),
                "expected_version": error.expected_version,
                "actual_version": error.actual_version,
            },
        )
    if isinstance(error, ConfigurationError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(error),
        )
    if isinstance(error, PersistenceError):
        logger.error(f"Commission settings storage failed: {error}")
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(error),
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error),
    )
