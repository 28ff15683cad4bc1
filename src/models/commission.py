"""
Commission settings models.

Settings are versioned: every save inserts a new commission_settings row
together with its network_commission and plan_commission rows, and flips
the previous row to inactive. Rows are never updated otherwise and never
deleted.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, CreatedAtMixin


class CommissionModel(str, Enum):
    """How a commission is paid over the life of a subscription."""
    ONE_TIME = "onetime"      # First billing cycle only
    RECURRING = "recurring"   # Every cycle inside the duration window
    HYBRID = "hybrid"         # One-time on cycle 1, then recurring


class AmountType(str, Enum):
    """How a commission value is interpreted."""
    PERCENTAGE = "percentage"  # Percent of the subscription amount
    FIXED = "fixed"            # Flat amount in the platform currency


class Cadence(str, Enum):
    """Subscription billing frequency."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class PaymentSchedule(str, Enum):
    """How often helper payouts are made."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


def _enum_column(enum_cls):
    return SQLAlchemyEnum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda x: [e.value for e in x],
    )


class CommissionRuleMixin:
    """Columns shared by network_commission and plan_commission."""

    subscription_type: Mapped[Cadence] = mapped_column(
        _enum_column(Cadence),
        nullable=False,
    )
    commission_model: Mapped[CommissionModel] = mapped_column(
        _enum_column(CommissionModel),
        nullable=False,
    )
    onetime_type: Mapped[AmountType] = mapped_column(
        _enum_column(AmountType),
        nullable=False,
        default=AmountType.PERCENTAGE,
    )
    onetime_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )
    recurring_type: Mapped[AmountType] = mapped_column(
        _enum_column(AmountType),
        nullable=False,
        default=AmountType.PERCENTAGE,
    )
    recurring_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )
    recurring_duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=12,
        comment="Billing cycles of the rule's own cadence",
    )


def _rule_constraints(suffix: str) -> tuple:
    return (
        CheckConstraint(
            "onetime_value >= 0 AND recurring_value >= 0",
            name=f"valid_values{suffix}",
        ),
        CheckConstraint(
            "(onetime_type != 'percentage' OR onetime_value <= 100) AND "
            "(recurring_type != 'percentage' OR recurring_value <= 100)",
            name=f"valid_percentages{suffix}",
        ),
        CheckConstraint(
            "recurring_duration > 0 AND recurring_duration <= 24",
            name=f"valid_duration{suffix}",
        ),
    )


class CommissionSettingsVersion(Base, CreatedAtMixin):
    """
    One version of the commission settings.

    Exactly one row has is_active = true once the first version exists;
    the partial unique index enforces it in the database.
    """

    __tablename__ = "commission_settings"
    __table_args__ = (
        CheckConstraint(
            "payment_schedule IN ('weekly', 'biweekly', 'monthly')",
            name="valid_payment_schedule",
        ),
        CheckConstraint("min_payout_threshold >= 0", name="valid_payout_threshold"),
        CheckConstraint("max_helpers_per_recruiter >= -1", name="valid_max_helpers"),
        Index(
            "idx_active_commission_settings",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    version: Mapped[int] = mapped_column(
        Integer,
        unique=True,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_by: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    # Feature toggles
    enable_multi_tier: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    auto_approve_applications: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    send_welcome_email: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    send_commission_notifications: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Payment settings
    min_payout_threshold: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        default=Decimal("500.00"),
        nullable=False,
    )
    payment_schedule: Mapped[PaymentSchedule] = mapped_column(
        _enum_column(PaymentSchedule),
        default=PaymentSchedule.MONTHLY,
        nullable=False,
    )
    payment_day: Mapped[str] = mapped_column(
        String(20),
        default="1st",
        nullable=False,
    )

    # Recruitment settings
    max_helpers_per_recruiter: Mapped[int] = mapped_column(
        Integer,
        default=-1,
        nullable=False,
        comment="-1 means unlimited recruitment",
    )
    referral_code_prefix: Mapped[str] = mapped_column(
        String(10),
        default="HELP",
        nullable=False,
    )
    auto_generate_codes: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    network_commissions: Mapped[List["NetworkCommission"]] = relationship(
        "NetworkCommission",
        back_populates="settings",
        cascade="all, delete-orphan",
        order_by="NetworkCommission.id",
    )
    plan_commissions: Mapped[List["PlanCommission"]] = relationship(
        "PlanCommission",
        back_populates="settings",
        cascade="all, delete-orphan",
        order_by="PlanCommission.id",
    )

    def __repr__(self) -> str:
        return (
            f"<CommissionSettingsVersion(id={self.id}, version={self.version}, "
            f"is_active={self.is_active})>"
        )


class NetworkCommission(Base, CreatedAtMixin, CommissionRuleMixin):
    """Commission a helper earns for recruiting another helper."""

    __tablename__ = "network_commission"
    __table_args__ = (
        UniqueConstraint(
            "settings_id", "subscription_type", name="idx_network_commission_unique"
        ),
        *_rule_constraints(""),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    settings_id: Mapped[int] = mapped_column(
        ForeignKey("commission_settings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    settings: Mapped["CommissionSettingsVersion"] = relationship(
        "CommissionSettingsVersion",
        back_populates="network_commissions",
    )

    def __repr__(self) -> str:
        return (
            f"<NetworkCommission(settings_id={self.settings_id}, "
            f"type={self.subscription_type}, model={self.commission_model})>"
        )


class PlanCommission(Base, CreatedAtMixin, CommissionRuleMixin):
    """
    Commission a helper earns for bringing a store owner onto a plan.

    enabled = false means the plan pays NO commission at all; it does not
    fall back to the network rule.
    """

    __tablename__ = "plan_commission"
    __table_args__ = (
        UniqueConstraint(
            "settings_id", "plan_id", "subscription_type", name="idx_plan_commission_unique"
        ),
        *_rule_constraints("_plan"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    settings_id: Mapped[int] = mapped_column(
        ForeignKey("commission_settings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    plan_id: Mapped[str] = mapped_column(
        ForeignKey("subscription_plans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    settings: Mapped["CommissionSettingsVersion"] = relationship(
        "CommissionSettingsVersion",
        back_populates="plan_commissions",
    )

    def __repr__(self) -> str:
        return (
            f"<PlanCommission(settings_id={self.settings_id}, plan_id='{self.plan_id}', "
            f"type={self.subscription_type}, enabled={self.enabled})>"
        )
