"""
SubscriptionPlan model.

Plans are owned by the billing side of the platform; the commission
engine only reads their identity and prices.
"""

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, CreatedAtMixin


def generate_plan_id() -> str:
    """Generate a UUID string primary key."""
    return str(uuid.uuid4())


class SubscriptionPlan(Base, CreatedAtMixin):
    """A store subscription plan (Free, Pro, Business, ...)."""

    __tablename__ = "subscription_plans"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_plan_id,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    monthly_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )
    yearly_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SubscriptionPlan(id='{self.id}', name='{self.name}')>"
