"""Commission settings API endpoints (super admin)."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import get_changed_by, get_settings_store, http_error
from src.schemas.commission import (
    ActivateSettingsRequest,
    ActivateSettingsResponse,
    AuditRecord,
    ChangeSummary,
    CommissionSettings,
    SettingsVersionInfo,
    SubscriptionPlanInfo,
    ValidationResult,
)
from src.services.exceptions import CommissionError
from src.services.settings_store import SettingsVersionStore
from src.services.settings_validator import validate_settings

router = APIRouter(prefix="/commission-settings", tags=["Commission Settings"])


@router.get("/active", response_model=CommissionSettings)
async def get_active_settings(
    store: SettingsVersionStore = Depends(get_settings_store),
):
    """Get the active commission settings."""
    try:
        active = await store.get_active()
    except CommissionError as e:
        raise http_error(e) from e

    if not active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active commission settings",
        )
    return active


@router.get("/versions", response_model=List[SettingsVersionInfo])
async def list_versions(
    store: SettingsVersionStore = Depends(get_settings_store),
    limit: int = Query(50, ge=1, le=200),
):
    """List stored versions, newest first."""
    try:
        return await store.list_versions(limit)
    except CommissionError as e:
        raise http_error(e) from e


@router.get("/versions/{version}", response_model=CommissionSettings)
async def get_version(
    version: int,
    store: SettingsVersionStore = Depends(get_settings_store),
):
    """Get one historical version."""
    try:
        found = await store.get_version(version)
    except CommissionError as e:
        raise http_error(e) from e

    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Commission settings version {version} not found",
        )
    return found


@router.post("/validate", response_model=ValidationResult)
async def validate_candidate(
    candidate: CommissionSettings,
    store: SettingsVersionStore = Depends(get_settings_store),
):
    """Validate a candidate without saving it."""
    try:
        plan_names = await store.plan_names()
    except CommissionError as e:
        raise http_error(e) from e
    return validate_settings(candidate, plan_names)


@router.put("", response_model=ActivateSettingsResponse)
async def activate_settings(
    data: ActivateSettingsRequest,
    store: SettingsVersionStore = Depends(get_settings_store),
    changed_by: str = Depends(get_changed_by),
):
    """Save a candidate as the new active version."""
    try:
        activated = await store.activate(
            data.settings,
            changed_by=changed_by,
            reason=data.reason,
            expected_version=data.expected_version,
        )
        summary: Optional[ChangeSummary] = None
        if activated.version > 1:
            summary = await store.diff_versions(activated.version - 1, activated.version)
    except CommissionError as e:
        raise http_error(e) from e

    return ActivateSettingsResponse(settings=activated, summary=summary or ChangeSummary())


@router.get("/diff", response_model=ChangeSummary)
async def diff_versions(
    from_version: int = Query(..., ge=1),
    to_version: int = Query(..., ge=1),
    store: SettingsVersionStore = Depends(get_settings_store),
):
    """Summary of changes between two stored versions."""
    try:
        summary = await store.diff_versions(from_version, to_version)
    except CommissionError as e:
        raise http_error(e) from e

    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Version {from_version} or {to_version} not found",
        )
    return summary


@router.get("/audit", response_model=List[AuditRecord])
async def list_audit(
    store: SettingsVersionStore = Depends(get_settings_store),
    limit: Optional[int] = Query(None, ge=1, le=500),
    settings_id: Optional[int] = Query(None),
):
    """Audit trail of settings changes, newest first."""
    try:
        return await store.list_audit(limit=limit, settings_id=settings_id)
    except CommissionError as e:
        raise http_error(e) from e


@router.get("/plans", response_model=List[SubscriptionPlanInfo])
async def list_plans(
    store: SettingsVersionStore = Depends(get_settings_store),
    active_only: bool = Query(False),
):
    """Subscription plans that can carry a commission override."""
    try:
        return await store.list_plans(active_only)
    except CommissionError as e:
        raise http_error(e) from e
