"""
Database models for the commission engine.

All models are exported here for convenient imports:
    from src.models import CommissionSettingsVersion, PlanCommission, etc.
"""

from src.models.audit import AuditAction, CommissionAudit
from src.models.base import Base, CreatedAtMixin
from src.models.commission import (
    AmountType,
    Cadence,
    CommissionModel,
    CommissionSettingsVersion,
    NetworkCommission,
    PaymentSchedule,
    PlanCommission,
)
from src.models.plan import SubscriptionPlan

__all__ = [
    # Base
    "Base",
    "CreatedAtMixin",
    # Enums
    "AmountType",
    "Cadence",
    "CommissionModel",
    "PaymentSchedule",
    # Commission settings
    "CommissionSettingsVersion",
    "NetworkCommission",
    "PlanCommission",
    # Plans
    "SubscriptionPlan",
    # Audit
    "CommissionAudit",
    "AuditAction",
]
