"""
Audit logging utilities.

Every commission settings change is recorded for super admin review.
"""

from typing import Any, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.audit import AuditAction, CommissionAudit
from src.schemas.commission import AuditRecord, CommissionSettings
from src.services.change_summary import SETTINGS_TABLE, collect_changes


def log_change(
    db: AsyncSession,
    action: AuditAction,
    table_name: str,
    settings_id: Optional[int] = None,
    changed_by: Optional[str] = None,
    field_changed: Optional[str] = None,
    old_value: Optional[Any] = None,
    new_value: Optional[Any] = None,
    change_reason: Optional[str] = None,
) -> CommissionAudit:
    """
    Log one audited change.

    Args:
        db: Database session
        action: created / updated / deleted
        table_name: Table the change belongs to
        settings_id: Settings version the change produced
        changed_by: Operator identity (usually an email)
        field_changed: Dotted field path, e.g. "monthly.onetime_value"
        old_value: JSON-serializable previous value
        new_value: JSON-serializable new value
        change_reason: Free-text reason given by the operator

    Returns:
        Created CommissionAudit entry
    """
    log_entry = CommissionAudit(
        settings_id=settings_id,
        changed_by=changed_by,
        action=action,
        table_name=table_name,
        field_changed=field_changed,
        old_value=old_value,
        new_value=new_value,
        change_reason=change_reason,
    )
    db.add(log_entry)
    # Note: commit should happen in the calling context
    return log_entry


def build_audit_records(
    previous: Optional[CommissionSettings],
    new_settings: CommissionSettings,
    settings_id: int,
    changed_by: Optional[str],
    reason: Optional[str] = None,
    plan_names: Optional[Mapping[str, str]] = None,
) -> List[AuditRecord]:
    """
    Audit records for activating new_settings over previous.

    The first version gets a single "created" record holding the whole
    configuration; later versions get one "updated" record per changed field.
    """
    if previous is None:
        return [
            AuditRecord(
                settings_id=settings_id,
                changed_by=changed_by,
                action=AuditAction.CREATED,
                table_name=SETTINGS_TABLE,
                new_value=new_settings.model_dump(
                    mode="json", exclude={"id", "version", "is_active", "created_at"}
                ),
                reason=reason,
            )
        ]

    return [
        AuditRecord(
            settings_id=settings_id,
            changed_by=changed_by,
            action=AuditAction.UPDATED,
            table_name=change.table_name,
            field_changed=change.field,
            old_value=change.old_value,
            new_value=change.new_value,
            reason=reason,
        )
        for change in collect_changes(previous, new_settings, plan_names)
    ]
