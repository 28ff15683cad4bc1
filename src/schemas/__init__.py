"""Pydantic schemas for request/response validation."""

from src.schemas.commission import (
    ActivateSettingsRequest,
    ActivateSettingsResponse,
    AuditRecord,
    ChangeSummary,
    CommissionComputation,
    CommissionEvent,
    CommissionPayout,
    CommissionRule,
    CommissionSettings,
    FieldChange,
    NetworkCommissionConfig,
    PlanCommissionOverride,
    ResolvedRule,
    SettingsVersionInfo,
    SubscriptionPlanInfo,
    ValidationResult,
)

__all__ = [
    # Settings
    "CommissionRule",
    "NetworkCommissionConfig",
    "PlanCommissionOverride",
    "CommissionSettings",
    "SettingsVersionInfo",
    "SubscriptionPlanInfo",
    # Validation / changes
    "ValidationResult",
    "FieldChange",
    "ChangeSummary",
    "AuditRecord",
    # Billing
    "CommissionEvent",
    "CommissionPayout",
    "CommissionComputation",
    "ResolvedRule",
    # Admin
    "ActivateSettingsRequest",
    "ActivateSettingsResponse",
]
