"""
Database access for commission settings.

Maps the commission_settings / network_commission / plan_commission rows
to the immutable CommissionSettings snapshot and back. The repository
never commits: the caller owns the transaction.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.models import (
    Cadence,
    CommissionAudit,
    CommissionSettingsVersion,
    NetworkCommission,
    PlanCommission,
    SubscriptionPlan,
)
from src.schemas.commission import (
    AuditRecord,
    CommissionRule,
    CommissionSettings,
    NetworkCommissionConfig,
    PlanCommissionOverride,
    SettingsVersionInfo,
    SubscriptionPlanInfo,
)
from src.utils.audit import log_change

SETTINGS_FIELDS = (
    "enable_multi_tier",
    "auto_approve_applications",
    "send_welcome_email",
    "send_commission_notifications",
    "min_payout_threshold",
    "payment_schedule",
    "payment_day",
    "max_helpers_per_recruiter",
    "referral_code_prefix",
    "auto_generate_codes",
)


def rule_from_row(row) -> CommissionRule:
    """Build a CommissionRule from a network_commission or plan_commission row."""
    return CommissionRule(
        model=row.commission_model,
        onetime_type=row.onetime_type,
        onetime_value=row.onetime_value,
        recurring_type=row.recurring_type,
        recurring_value=row.recurring_value,
        recurring_duration=row.recurring_duration,
    )


def rule_columns(rule: CommissionRule) -> dict:
    """Column values for storing a CommissionRule."""
    return {
        "commission_model": rule.model,
        "onetime_type": rule.onetime_type,
        "onetime_value": rule.onetime_value,
        "recurring_type": rule.recurring_type,
        "recurring_value": rule.recurring_value,
        "recurring_duration": rule.recurring_duration,
    }


def settings_from_row(row: CommissionSettingsVersion) -> CommissionSettings:
    """Build the CommissionSettings snapshot from a loaded settings row."""
    network = None
    if row.network_commissions:
        rules = {n.subscription_type: rule_from_row(n) for n in row.network_commissions}
        network = NetworkCommissionConfig(
            monthly=rules.get(Cadence.MONTHLY, CommissionRule()),
            yearly=rules.get(Cadence.YEARLY, CommissionRule()),
        )

    by_plan: Dict[str, List[PlanCommission]] = defaultdict(list)
    for plan_row in row.plan_commissions:
        by_plan[plan_row.plan_id].append(plan_row)

    overrides = {}
    for plan_id, plan_rows in by_plan.items():
        rules = {p.subscription_type: rule_from_row(p) for p in plan_rows}
        overrides[plan_id] = PlanCommissionOverride(
            enabled=any(p.enabled for p in plan_rows),
            monthly=rules.get(Cadence.MONTHLY, CommissionRule()),
            yearly=rules.get(Cadence.YEARLY, CommissionRule()),
        )

    return CommissionSettings(
        id=row.id,
        version=row.version,
        is_active=row.is_active,
        created_at=row.created_at,
        created_by=row.created_by,
        network=network,
        plan_overrides=overrides,
        **{field: getattr(row, field) for field in SETTINGS_FIELDS},
    )


class CommissionRepository:
    """Storage operations for commission settings, plans and the audit trail."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _settings_query(self):
        return (
            select(CommissionSettingsVersion)
            .options(
                selectinload(CommissionSettingsVersion.network_commissions),
                selectinload(CommissionSettingsVersion.plan_commissions),
            )
            .execution_options(populate_existing=True)
        )

    async def get_active_settings(self) -> Optional[CommissionSettings]:
        """Get the active settings version, or None before the first activation."""
        result = await self.db.execute(
            self._settings_query().where(CommissionSettingsVersion.is_active.is_(True))
        )
        row = result.scalar_one_or_none()
        return settings_from_row(row) if row else None

    async def get_settings_version(self, version: int) -> Optional[CommissionSettings]:
        """Get any stored version by its version number."""
        result = await self.db.execute(
            self._settings_query().where(CommissionSettingsVersion.version == version)
        )
        row = result.scalar_one_or_none()
        return settings_from_row(row) if row else None

    async def list_versions(self, limit: int = 50) -> List[SettingsVersionInfo]:
        """List stored versions, newest first."""
        result = await self.db.execute(
            select(CommissionSettingsVersion)
            .order_by(CommissionSettingsVersion.version.desc())
            .limit(limit)
        )
        return [
            SettingsVersionInfo(
                id=row.id,
                version=row.version,
                is_active=row.is_active,
                created_at=row.created_at,
                created_by=row.created_by,
            )
            for row in result.scalars().all()
        ]

    async def insert_settings(
        self,
        candidate: CommissionSettings,
        version: int,
        changed_by: Optional[str],
    ) -> int:
        """Insert a new active settings row and return its id.

        Only the commission_settings row is flushed here; rules are added
        by insert_rules so the caller can tell a version clash apart from
        a bad rule row.
        """
        row = CommissionSettingsVersion(
            version=version,
            is_active=True,
            created_by=changed_by,
            **{field: getattr(candidate, field) for field in SETTINGS_FIELDS},
        )
        self.db.add(row)
        await self.db.flush()
        return row.id

    async def insert_rules(self, settings_id: int, candidate: CommissionSettings) -> None:
        """Insert network rules (monthly + yearly) and one plan row per plan and cadence."""
        if candidate.network is not None:
            for cadence in Cadence:
                self.db.add(
                    NetworkCommission(
                        settings_id=settings_id,
                        subscription_type=cadence,
                        **rule_columns(candidate.network.for_cadence(cadence)),
                    )
                )

        for plan_id, override in candidate.plan_overrides.items():
            for cadence in Cadence:
                self.db.add(
                    PlanCommission(
                        settings_id=settings_id,
                        plan_id=plan_id,
                        subscription_type=cadence,
                        enabled=override.enabled,
                        **rule_columns(override.for_cadence(cadence)),
                    )
                )

        await self.db.flush()

    async def deactivate(self, settings_id: int) -> bool:
        """Mark a settings row inactive.

        Returns:
            False if the row was not active anymore (someone else got there first)
        """
        result = await self.db.execute(
            update(CommissionSettingsVersion)
            .where(
                CommissionSettingsVersion.id == settings_id,
                CommissionSettingsVersion.is_active.is_(True),
            )
            .values(is_active=False)
        )
        return result.rowcount > 0

    async def list_plans(self, active_only: bool = False) -> List[SubscriptionPlanInfo]:
        """List subscription plans ordered by monthly price."""
        query = select(SubscriptionPlan).order_by(
            SubscriptionPlan.monthly_price, SubscriptionPlan.name
        )
        if active_only:
            query = query.where(SubscriptionPlan.is_active.is_(True))
        result = await self.db.execute(query)
        return [SubscriptionPlanInfo.model_validate(plan) for plan in result.scalars().all()]

    def append_audit_record(self, record: AuditRecord) -> CommissionAudit:
        """Add an audit record to the session. Commit happens in the calling context."""
        return log_change(
            self.db,
            action=record.action,
            table_name=record.table_name,
            settings_id=record.settings_id,
            changed_by=record.changed_by,
            field_changed=record.field_changed,
            old_value=record.old_value,
            new_value=record.new_value,
            change_reason=record.reason,
        )

    async def list_audit_records(
        self,
        limit: int = 50,
        settings_id: Optional[int] = None,
    ) -> List[AuditRecord]:
        """List audit records, newest first."""
        query = select(CommissionAudit)
        if settings_id is not None:
            query = query.where(CommissionAudit.settings_id == settings_id)
        query = query.order_by(CommissionAudit.created_at.desc(), CommissionAudit.id.desc())
        result = await self.db.execute(query.limit(limit))
        return [
            AuditRecord(
                id=entry.id,
                settings_id=entry.settings_id,
                created_at=entry.created_at,
                changed_by=entry.changed_by,
                action=entry.action,
                table_name=entry.table_name,
                field_changed=entry.field_changed,
                old_value=entry.old_value,
                new_value=entry.new_value,
                reason=entry.change_reason,
            )
            for entry in result.scalars().all()
        ]
