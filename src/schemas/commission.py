"""Commission settings schemas.

These are the immutable snapshots the commission engine works with. They
carry raw operator input, so value ranges are NOT enforced here: the
settings validator reports every violation at once instead of pydantic
rejecting the first one.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models import AmountType, AuditAction, Cadence, CommissionModel, PaymentSchedule


class CommissionRule(BaseModel):
    """One commission rule for one subscription cadence."""

    model_config = ConfigDict(frozen=True)

    model: CommissionModel = Field(default=CommissionModel.RECURRING)
    onetime_type: AmountType = Field(default=AmountType.PERCENTAGE)
    onetime_value: Decimal = Field(default=Decimal("0"))
    recurring_type: AmountType = Field(default=AmountType.PERCENTAGE)
    recurring_value: Decimal = Field(default=Decimal("0"))
    recurring_duration: int = Field(default=12)  # billing cycles of the rule's cadence

    @property
    def uses_onetime(self) -> bool:
        return self.model in (CommissionModel.ONE_TIME, CommissionModel.HYBRID)

    @property
    def uses_recurring(self) -> bool:
        return self.model in (CommissionModel.RECURRING, CommissionModel.HYBRID)


class NetworkCommissionConfig(BaseModel):
    """Default (network) commission: one rule per cadence."""

    model_config = ConfigDict(frozen=True)

    monthly: CommissionRule = Field(default_factory=CommissionRule)
    yearly: CommissionRule = Field(default_factory=CommissionRule)

    def for_cadence(self, cadence: Cadence) -> CommissionRule:
        return self.monthly if Cadence(cadence) == Cadence.MONTHLY else self.yearly


class PlanCommissionOverride(BaseModel):
    """Plan-specific commission. Disabled means the plan pays nothing."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    monthly: CommissionRule = Field(default_factory=CommissionRule)
    yearly: CommissionRule = Field(default_factory=CommissionRule)

    def for_cadence(self, cadence: Cadence) -> CommissionRule:
        return self.monthly if Cadence(cadence) == Cadence.MONTHLY else self.yearly


class CommissionSettings(BaseModel):
    """
    A complete commission configuration.

    Candidates built by an operator have no id/version; the settings store
    assigns both on activation.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    version: Optional[int] = None
    is_active: bool = False
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    # Feature toggles
    enable_multi_tier: bool = True
    auto_approve_applications: bool = False
    send_welcome_email: bool = True
    send_commission_notifications: bool = True

    # Payment settings
    min_payout_threshold: Decimal = Field(default=Decimal("500"))
    payment_schedule: PaymentSchedule = Field(default=PaymentSchedule.MONTHLY)
    payment_day: str = Field(default="1st")

    # Recruitment settings
    max_helpers_per_recruiter: int = Field(default=-1)  # -1 = unlimited
    referral_code_prefix: str = Field(default="HELP")
    auto_generate_codes: bool = True

    network: Optional[NetworkCommissionConfig] = None
    plan_overrides: Dict[str, PlanCommissionOverride] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Outcome of validating a candidate configuration."""

    is_valid: bool
    errors: List[str] = Field(default_factory=list)


ChangeCategory = Literal[
    "commission_model",
    "commission_rates",
    "feature_toggles",
    "payment_settings",
    "recruitment_settings",
]


class FieldChange(BaseModel):
    """One changed leaf field between two configurations."""

    model_config = ConfigDict(frozen=True)

    category: ChangeCategory
    table_name: str
    field: str
    old_value: Any = None
    new_value: Any = None
    description: str


class ChangeSummary(BaseModel):
    """Human-readable changes between two configurations, by category."""

    commission_model: List[str] = Field(default_factory=list)
    commission_rates: List[str] = Field(default_factory=list)
    feature_toggles: List[str] = Field(default_factory=list)
    payment_settings: List[str] = Field(default_factory=list)
    recruitment_settings: List[str] = Field(default_factory=list)

    @classmethod
    def from_changes(cls, changes: List[FieldChange]) -> "ChangeSummary":
        grouped: Dict[str, List[str]] = {}
        for change in changes:
            grouped.setdefault(change.category, []).append(change.description)
        return cls(**grouped)

    @property
    def total_changes(self) -> int:
        return (
            len(self.commission_model)
            + len(self.commission_rates)
            + len(self.feature_toggles)
            + len(self.payment_settings)
            + len(self.recruitment_settings)
        )


class AuditRecord(BaseModel):
    """Single audit trail entry."""

    id: Optional[int] = None
    settings_id: Optional[int] = None
    created_at: Optional[datetime] = None
    changed_by: Optional[str] = None
    action: AuditAction
    table_name: str
    field_changed: Optional[str] = None
    old_value: Any = None
    new_value: Any = None
    reason: Optional[str] = None


class SubscriptionPlanInfo(BaseModel):
    """Read-only view of a subscription plan."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    monthly_price: Decimal
    yearly_price: Decimal
    is_active: bool


class SettingsVersionInfo(BaseModel):
    """Short description of one stored version."""

    id: int
    version: int
    is_active: bool
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None


# ── Billing ──────────────────────────────────────────────


class CommissionEvent(BaseModel):
    """A subscription payment reported by the billing side."""

    plan_id: str = Field(..., min_length=1)
    cadence: Cadence
    cycle_index: int = Field(..., ge=1)
    subscription_amount: Decimal
    direct_helper_id: Optional[str] = None
    recruiter_id: Optional[str] = None


class CommissionPayout(BaseModel):
    """Commission owed to one participant for one payment."""

    helper_id: str
    tier: int  # 1 = direct helper, 2 = the helper who recruited them
    kind: Literal["direct", "network"]
    amount: Decimal


class CommissionComputation(BaseModel):
    """Result of computing commission for a billing event."""

    settings_version: int
    amount: Decimal
    payouts: List[CommissionPayout] = Field(default_factory=list)


# ── Admin requests / responses ───────────────────────────


class ActivateSettingsRequest(BaseModel):
    """Save a candidate configuration as the new active version."""

    settings: CommissionSettings
    reason: Optional[str] = Field(None, max_length=2000)
    expected_version: Optional[int] = Field(None, ge=0)


class ActivateSettingsResponse(BaseModel):
    """Newly activated version plus what changed."""

    settings: CommissionSettings
    summary: ChangeSummary


class ResolvedRule(BaseModel):
    """Rule that applies to a plan and cadence, and whether it pays at all."""

    model_config = ConfigDict(frozen=True)

    rule: CommissionRule
    earns: bool
    source: Literal["plan", "network"]
