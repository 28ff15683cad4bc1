"""
CommissionAudit model for tracking commission settings changes.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, JSON, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class AuditAction(str, Enum):
    """Types of auditable actions."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class CommissionAudit(Base):
    """
    Append-only audit trail of commission settings changes.

    One row is written per changed field when a new settings version is
    activated. Rows are never updated or deleted.
    """

    __tablename__ = "commission_audit"

    id: Mapped[int] = mapped_column(primary_key=True)
    settings_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("commission_settings.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    changed_by: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="Identity of the operator (usually an email)",
    )
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            native_enum=False,
            length=20,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    table_name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    field_changed: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Dotted path of the field, e.g. monthly.onetime_value",
    )
    old_value: Mapped[Optional[Any]] = mapped_column(
        JSON,
        nullable=True,
    )
    new_value: Mapped[Optional[Any]] = mapped_column(
        JSON,
        nullable=True,
    )
    change_reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<CommissionAudit(id={self.id}, action={self.action}, "
            f"table='{self.table_name}', field='{self.field_changed}')>"
        )
