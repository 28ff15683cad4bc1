"""
Tests for the versioned commission settings store.

Covers:
- Versions 1..N with exactly one active row
- Audit trail per activation
- Failed validation writes nothing
- Version conflicts
- Amounts rounded to the stored precision
- Default settings seeding
- Diffs between stored versions
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from src.models import (
    AuditAction,
    CommissionAudit,
    CommissionModel,
    CommissionSettingsVersion,
    NetworkCommission,
    PlanCommission,
)
from src.schemas.commission import (
    CommissionRule,
    CommissionSettings,
    NetworkCommissionConfig,
    PlanCommissionOverride,
)
from src.services.commission_repository import CommissionRepository
from src.services.exceptions import ConflictError, ValidationError
from src.services.settings_store import default_settings


def _candidate(**kwargs) -> CommissionSettings:
    defaults = {
        "network": NetworkCommissionConfig(
            monthly=CommissionRule(
                model=CommissionModel.HYBRID,
                onetime_value=Decimal("10"),
                recurring_value=Decimal("5"),
                recurring_duration=12,
            ),
        ),
    }
    defaults.update(kwargs)
    return CommissionSettings(**defaults)


async def _count(db, model) -> int:
    return await db.scalar(select(func.count()).select_from(model))


async def _active_versions(db):
    result = await db.execute(
        select(CommissionSettingsVersion.version).where(
            CommissionSettingsVersion.is_active.is_(True)
        )
    )
    return result.scalars().all()


# ── activate ──────────────────────────────────────────────


class TestActivate:
    @pytest.mark.asyncio
    async def test_first_activation_is_version_one(self, store, plans, db_session):
        activated = await store.activate(_candidate(), changed_by="admin@example.com")

        assert activated.version == 1
        assert activated.is_active is True
        assert activated.created_by == "admin@example.com"
        assert activated.id is not None
        assert await _active_versions(db_session) == [1]

    @pytest.mark.asyncio
    async def test_versions_are_sequential_with_one_active(self, store, plans, db_session):
        for n in range(1, 6):
            activated = await store.activate(
                _candidate(referral_code_prefix=f"REF{n}"), changed_by="admin@example.com"
            )
            assert activated.version == n
            assert await _active_versions(db_session) == [n]

        versions = await store.list_versions()
        assert [v.version for v in versions] == [5, 4, 3, 2, 1]
        assert [v.is_active for v in versions] == [True, False, False, False, False]

    @pytest.mark.asyncio
    async def test_get_active_returns_latest(self, store, plans):
        assert await store.get_active() is None

        await store.activate(_candidate())
        await store.activate(_candidate(referral_code_prefix="REF"))

        active = await store.get_active()
        assert active.version == 2
        assert active.referral_code_prefix == "REF"

    @pytest.mark.asyncio
    async def test_rules_stored_per_cadence_and_plan(self, store, plans, db_session):
        pro_rule = CommissionRule(recurring_value=Decimal("20"), recurring_duration=6)
        candidate = _candidate(
            plan_overrides={
                plans["pro"]: PlanCommissionOverride(enabled=True, monthly=pro_rule),
                plans["free"]: PlanCommissionOverride(enabled=False),
            }
        )

        activated = await store.activate(candidate)

        assert await _count(db_session, NetworkCommission) == 2
        assert await _count(db_session, PlanCommission) == 4
        assert activated.plan_overrides[plans["pro"]].enabled is True
        assert activated.plan_overrides[plans["pro"]].monthly.recurring_value == Decimal("20")
        assert activated.plan_overrides[plans["pro"]].monthly.recurring_duration == 6
        assert activated.plan_overrides[plans["free"]].enabled is False
        assert activated.network.monthly.model == CommissionModel.HYBRID

    @pytest.mark.asyncio
    async def test_unused_values_are_normalized(self, store, plans):
        candidate = _candidate(
            network=NetworkCommissionConfig(
                monthly=CommissionRule(
                    model=CommissionModel.ONE_TIME,
                    onetime_value=Decimal("10"),
                    recurring_value=Decimal("40"),
                    recurring_duration=0,
                ),
            )
        )

        activated = await store.activate(candidate)

        assert activated.network.monthly.recurring_value == Decimal("0")
        assert activated.network.monthly.recurring_duration == 12

    @pytest.mark.asyncio
    async def test_old_versions_stay_readable(self, store, plans):
        await store.activate(_candidate())
        await store.activate(_candidate(enable_multi_tier=False))

        first = await store.get_version(1)

        assert first.is_active is False
        assert first.enable_multi_tier is True
        assert await store.get_version(99) is None


# ── Validation ────────────────────────────────────────────


class TestActivateValidation:
    @pytest.mark.asyncio
    async def test_invalid_candidate_writes_nothing(self, store, plans, db_session):
        await store.activate(_candidate())

        with pytest.raises(ValidationError) as exc_info:
            await store.activate(
                _candidate(referral_code_prefix="", min_payout_threshold=Decimal("-5"))
            )

        assert len(exc_info.value.errors) == 2
        assert await _count(db_session, CommissionSettingsVersion) == 1
        assert await _count(db_session, CommissionAudit) == 1
        assert await _active_versions(db_session) == [1]

    @pytest.mark.asyncio
    async def test_validation_uses_plan_names(self, store, plans):
        candidate = _candidate(plan_overrides={plans["pro"]: PlanCommissionOverride(enabled=True)})

        with pytest.raises(ValidationError) as exc_info:
            await store.activate(candidate)

        assert exc_info.value.errors == [
            "PRO: Commission is enabled but all values are 0 - helpers will not earn anything"
        ]

    @pytest.mark.asyncio
    async def test_disabled_override_out_of_range_rejected(self, store, plans, db_session):
        broken = CommissionRule(recurring_value=Decimal("150"), recurring_duration=6)
        candidate = _candidate(
            plan_overrides={plans["pro"]: PlanCommissionOverride(enabled=False, monthly=broken)}
        )

        with pytest.raises(ValidationError) as exc_info:
            await store.activate(candidate)

        assert exc_info.value.errors == [
            "PRO (Monthly): Recurring percentage must be between 0-100%"
        ]
        assert await _count(db_session, CommissionSettingsVersion) == 0
        assert await _count(db_session, PlanCommission) == 0

    @pytest.mark.asyncio
    async def test_unknown_plan_rejected(self, store, plans, db_session):
        candidate = _candidate(
            plan_overrides={"no-such-plan": PlanCommissionOverride(enabled=False)}
        )

        with pytest.raises(ValidationError) as exc_info:
            await store.activate(candidate)

        assert exc_info.value.errors == ["Subscription plan 'no-such-plan' does not exist"]
        assert await _count(db_session, CommissionSettingsVersion) == 0


# ── Conflicts ─────────────────────────────────────────────


class TestActivateConflicts:
    @pytest.mark.asyncio
    async def test_stale_expected_version_rejected(self, store, plans, db_session):
        await store.activate(_candidate())
        await store.activate(_candidate(referral_code_prefix="REF"))

        with pytest.raises(ConflictError) as exc_info:
            await store.activate(_candidate(referral_code_prefix="NEW"), expected_version=1)

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        assert await _count(db_session, CommissionSettingsVersion) == 2
        assert await _active_versions(db_session) == [2]

    @pytest.mark.asyncio
    async def test_matching_expected_version_accepted(self, store, plans):
        await store.activate(_candidate())
        activated = await store.activate(_candidate(referral_code_prefix="REF"), expected_version=1)
        assert activated.version == 2

    @pytest.mark.asyncio
    async def test_lost_deactivation_is_conflict(self, store, plans, db_session, monkeypatch):
        await store.activate(_candidate())

        async def already_deactivated(self, settings_id):
            return False

        monkeypatch.setattr(CommissionRepository, "deactivate", already_deactivated)

        with pytest.raises(ConflictError):
            await store.activate(_candidate(referral_code_prefix="REF"))

        assert await _count(db_session, CommissionSettingsVersion) == 1
        assert await _active_versions(db_session) == [1]

    @pytest.mark.asyncio
    async def test_competing_version_row_is_conflict(self, store, plans, db_session):
        await store.activate(_candidate())
        db_session.add(CommissionSettingsVersion(version=2, is_active=False, created_by="other"))
        await db_session.commit()

        with pytest.raises(ConflictError):
            await store.activate(_candidate(referral_code_prefix="REF"))

        assert await _count(db_session, CommissionSettingsVersion) == 2
        assert await _active_versions(db_session) == [1]
        assert (await store.get_active()).version == 1


# ── Rounding ──────────────────────────────────────────────


class TestStoredAmounts:
    @pytest.mark.asyncio
    async def test_values_rounded_to_cents(self, store, plans):
        candidate = _candidate(
            network=NetworkCommissionConfig(
                monthly=CommissionRule(recurring_value=Decimal("12.345"), recurring_duration=12),
            ),
            min_payout_threshold=Decimal("99.999"),
        )

        activated = await store.activate(candidate)

        assert activated.network.monthly.recurring_value == Decimal("12.35")
        assert activated.min_payout_threshold == Decimal("100.00")
        records = await store.list_audit()
        assert records[0].new_value["network"]["monthly"]["recurring_value"] == "12.35"

    @pytest.mark.asyncio
    async def test_reactivating_unrounded_candidate_records_no_changes(self, store, plans):
        candidate = _candidate(
            network=NetworkCommissionConfig(
                monthly=CommissionRule(recurring_value=Decimal("12.345"), recurring_duration=12),
            ),
        )
        await store.activate(candidate)

        second = await store.activate(candidate)

        assert await store.list_audit(settings_id=second.id) == []
        summary = await store.diff_versions(1, 2)
        assert summary.total_changes == 0


# ── Audit trail ───────────────────────────────────────────


class TestAuditTrail:
    @pytest.mark.asyncio
    async def test_first_version_gets_created_record(self, store, plans):
        await store.activate(_candidate(), changed_by="admin@example.com", reason="Launch")

        records = await store.list_audit()

        assert len(records) == 1
        assert records[0].action == AuditAction.CREATED
        assert records[0].table_name == "commission_settings"
        assert records[0].changed_by == "admin@example.com"
        assert records[0].reason == "Launch"
        assert records[0].new_value["referral_code_prefix"] == "HELP"

    @pytest.mark.asyncio
    async def test_one_record_per_changed_field(self, store, plans):
        first = await store.activate(_candidate())
        second = await store.activate(
            _candidate(referral_code_prefix="REF", enable_multi_tier=False),
            changed_by="ops@example.com",
        )

        records = await store.list_audit(settings_id=second.id)

        assert {r.field_changed for r in records} == {"referral_code_prefix", "enable_multi_tier"}
        assert all(r.action == AuditAction.UPDATED for r in records)
        assert all(r.changed_by == "ops@example.com" for r in records)
        prefix = next(r for r in records if r.field_changed == "referral_code_prefix")
        assert prefix.old_value == "HELP"
        assert prefix.new_value == "REF"
        assert len(await store.list_audit(settings_id=first.id)) == 1

    @pytest.mark.asyncio
    async def test_no_changes_no_records(self, store, plans):
        await store.activate(_candidate())
        second = await store.activate(_candidate())

        assert second.version == 2
        assert await store.list_audit(settings_id=second.id) == []

    @pytest.mark.asyncio
    async def test_list_audit_newest_first_and_limited(self, store, plans):
        await store.activate(_candidate())
        for prefix in ("A", "B", "C"):
            await store.activate(_candidate(referral_code_prefix=prefix))

        records = await store.list_audit(limit=2)

        assert len(records) == 2
        assert [r.new_value for r in records] == ["C", "B"]


# ── Defaults and history ──────────────────────────────────


class TestDefaultsAndHistory:
    @pytest.mark.asyncio
    async def test_ensure_default_settings_creates_version_one(self, store, plans):
        created = await store.ensure_default_settings()

        assert created.version == 1
        assert created.created_by == "system"
        assert created.network == default_settings().network

    @pytest.mark.asyncio
    async def test_ensure_default_settings_keeps_existing(self, store, plans):
        await store.activate(_candidate(referral_code_prefix="REF"))

        active = await store.ensure_default_settings()

        assert active.version == 1
        assert active.referral_code_prefix == "REF"
        assert len(await store.list_versions()) == 1

    @pytest.mark.asyncio
    async def test_diff_between_any_two_versions(self, store, plans):
        await store.activate(_candidate())
        await store.activate(_candidate(referral_code_prefix="REF"))
        await store.activate(_candidate(referral_code_prefix="REF", enable_multi_tier=False))

        summary = await store.diff_versions(1, 3)

        assert summary.recruitment_settings == ["Code Prefix: HELP → REF"]
        assert summary.feature_toggles == ["Multi-Tier Program: Disabled"]
        assert await store.diff_versions(1, 42) is None

    @pytest.mark.asyncio
    async def test_list_plans(self, store, plans):
        names = [plan.name for plan in await store.list_plans()]
        assert names == ["Free", "PRO"]
        assert await store.plan_names() == {plans["free"]: "Free", plans["pro"]: "PRO"}
