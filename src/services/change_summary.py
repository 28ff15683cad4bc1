"""
Change summaries between two commission settings versions.

Compares field by field and produces one categorized, human-readable
line per changed field. Works on any two versions, not only consecutive
ones. Pure: no I/O, no side effects.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from src.config import settings as app_settings
from src.models import AmountType, Cadence
from src.schemas.commission import (
    ChangeSummary,
    CommissionRule,
    CommissionSettings,
    FieldChange,
)
from src.services.commission import to_decimal

MODEL_NAMES = {
    "onetime": "One-time",
    "recurring": "Recurring",
    "hybrid": "Hybrid",
}

AMOUNT_TYPE_NAMES = {
    "percentage": "Percentage",
    "fixed": "Fixed",
}

FEATURE_TOGGLES = (
    ("enable_multi_tier", "Multi-Tier Program"),
    ("auto_approve_applications", "Auto-approve Applications"),
    ("send_welcome_email", "Welcome Email"),
    ("send_commission_notifications", "Commission Notifications"),
)

SETTINGS_TABLE = "commission_settings"
NETWORK_TABLE = "network_commission"
PLAN_TABLE = "plan_commission"


def format_number(value: Decimal) -> str:
    """500.00 -> '500', 12.50 -> '12.5'."""
    value = to_decimal(value)
    if value == value.to_integral_value():
        return str(int(value))
    return format(value.normalize(), "f")


def format_commission(amount_type: AmountType, value: Decimal, currency: str) -> str:
    if AmountType(amount_type) == AmountType.PERCENTAGE:
        return f"{format_number(value)}%"
    return f"{currency}{format_number(value)}"


def _on_off(flag: bool) -> str:
    return "Enabled" if flag else "Disabled"


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return format_number(value)
    return value


class _Collector:
    """Accumulates FieldChange entries."""

    def __init__(self) -> None:
        self.changes: List[FieldChange] = []

    def add(self, category, table_name, field, old, new, description) -> None:
        self.changes.append(
            FieldChange(
                category=category,
                table_name=table_name,
                field=field,
                old_value=_jsonable(old),
                new_value=_jsonable(new),
                description=description,
            )
        )


def _rule_changes(
    out: _Collector,
    label: str,
    table_name: str,
    field_prefix: str,
    cadence: Cadence,
    old: CommissionRule,
    new: CommissionRule,
    currency: str,
) -> None:
    if old.model != new.model:
        out.add(
            "commission_model", table_name, f"{field_prefix}.model", old.model, new.model,
            f"{label}: {MODEL_NAMES[old.model.value]} → {MODEL_NAMES[new.model.value]}",
        )

    for kind, name in (("onetime", "One-time"), ("recurring", "Recurring")):
        old_type = getattr(old, f"{kind}_type")
        new_type = getattr(new, f"{kind}_type")
        old_value = to_decimal(getattr(old, f"{kind}_value"))
        new_value = to_decimal(getattr(new, f"{kind}_value"))

        if old_type != new_type:
            out.add(
                "commission_rates", table_name, f"{field_prefix}.{kind}_type", old_type, new_type,
                f"{label} {name} Type: "
                f"{AMOUNT_TYPE_NAMES[old_type.value]} → {AMOUNT_TYPE_NAMES[new_type.value]}",
            )
        if old_value != new_value:
            out.add(
                "commission_rates", table_name, f"{field_prefix}.{kind}_value", old_value, new_value,
                f"{label} {name}: {format_commission(old_type, old_value, currency)} → "
                f"{format_commission(new_type, new_value, currency)}",
            )

    if old.recurring_duration != new.recurring_duration:
        unit = "months" if cadence == Cadence.MONTHLY else "years"
        out.add(
            "commission_rates", table_name, f"{field_prefix}.recurring_duration",
            old.recurring_duration, new.recurring_duration,
            f"{label} Duration: {old.recurring_duration} → {new.recurring_duration} {unit}",
        )


def collect_changes(
    previous: Optional[CommissionSettings],
    next_settings: CommissionSettings,
    plan_names: Optional[Mapping[str, str]] = None,
    currency: Optional[str] = None,
) -> List[FieldChange]:
    """
    List every changed leaf field between two configurations.

    Returns an empty list when there is no previous version.
    """
    if previous is None:
        return []

    plan_names = plan_names or {}
    currency = currency if currency is not None else app_settings.currency_symbol
    out = _Collector()
    prev, new = previous, next_settings

    # Network commission
    if prev.network is not None and new.network is not None:
        for cadence in Cadence:
            _rule_changes(
                out,
                f"Network {cadence.value.capitalize()}",
                NETWORK_TABLE,
                cadence.value,
                cadence,
                prev.network.for_cadence(cadence),
                new.network.for_cadence(cadence),
                currency,
            )
    elif prev.network != new.network:
        out.add(
            "commission_model", NETWORK_TABLE, "network", prev.network, new.network,
            "Network commission: " + ("Configured" if new.network is not None else "Removed"),
        )

    # Plan-specific commission
    plan_ids = list(new.plan_overrides) + [
        plan_id for plan_id in prev.plan_overrides if plan_id not in new.plan_overrides
    ]
    for plan_id in plan_ids:
        name = plan_names.get(plan_id, plan_id)
        old_override = prev.plan_overrides.get(plan_id)
        new_override = new.plan_overrides.get(plan_id)

        if old_override is None:
            out.add(
                "feature_toggles", PLAN_TABLE, plan_id, None, new_override,
                f"{name}: Override added ({_on_off(new_override.enabled)})",
            )
            continue
        if new_override is None:
            out.add(
                "feature_toggles", PLAN_TABLE, plan_id, old_override, None,
                f"{name}: Override removed",
            )
            continue

        if old_override.enabled != new_override.enabled:
            out.add(
                "feature_toggles", PLAN_TABLE, f"{plan_id}.enabled",
                old_override.enabled, new_override.enabled,
                f"{name}: {_on_off(new_override.enabled)}",
            )
        for cadence in Cadence:
            _rule_changes(
                out,
                f"{name} {cadence.value.capitalize()}",
                PLAN_TABLE,
                f"{plan_id}.{cadence.value}",
                cadence,
                old_override.for_cadence(cadence),
                new_override.for_cadence(cadence),
                currency,
            )

    # Feature toggles
    for field, label in FEATURE_TOGGLES:
        old_flag, new_flag = getattr(prev, field), getattr(new, field)
        if old_flag != new_flag:
            out.add(
                "feature_toggles", SETTINGS_TABLE, field, old_flag, new_flag,
                f"{label}: {_on_off(new_flag)}",
            )

    # Payment settings
    old_threshold = to_decimal(prev.min_payout_threshold)
    new_threshold = to_decimal(new.min_payout_threshold)
    if old_threshold != new_threshold:
        out.add(
            "payment_settings", SETTINGS_TABLE, "min_payout_threshold", old_threshold, new_threshold,
            f"Minimum Payout: {currency}{format_number(old_threshold)} → "
            f"{currency}{format_number(new_threshold)}",
        )
    if prev.payment_schedule != new.payment_schedule:
        out.add(
            "payment_settings", SETTINGS_TABLE, "payment_schedule",
            prev.payment_schedule, new.payment_schedule,
            f"Schedule: {prev.payment_schedule.value} → {new.payment_schedule.value}",
        )
    if prev.payment_day != new.payment_day:
        out.add(
            "payment_settings", SETTINGS_TABLE, "payment_day", prev.payment_day, new.payment_day,
            f"Payment Day: {prev.payment_day} → {new.payment_day}",
        )

    # Recruitment settings
    if prev.max_helpers_per_recruiter != new.max_helpers_per_recruiter:
        def _limit(value: int) -> str:
            return "Unlimited" if value == -1 else str(value)

        out.add(
            "recruitment_settings", SETTINGS_TABLE, "max_helpers_per_recruiter",
            prev.max_helpers_per_recruiter, new.max_helpers_per_recruiter,
            f"Max Helpers: {_limit(prev.max_helpers_per_recruiter)} → "
            f"{_limit(new.max_helpers_per_recruiter)}",
        )
    if prev.referral_code_prefix != new.referral_code_prefix:
        out.add(
            "recruitment_settings", SETTINGS_TABLE, "referral_code_prefix",
            prev.referral_code_prefix, new.referral_code_prefix,
            f"Code Prefix: {prev.referral_code_prefix} → {new.referral_code_prefix}",
        )
    if prev.auto_generate_codes != new.auto_generate_codes:
        out.add(
            "recruitment_settings", SETTINGS_TABLE, "auto_generate_codes",
            prev.auto_generate_codes, new.auto_generate_codes,
            f"Auto-generate Codes: {_on_off(new.auto_generate_codes)}",
        )

    return out.changes


def diff_settings(
    previous: Optional[CommissionSettings],
    next_settings: CommissionSettings,
    plan_names: Optional[Mapping[str, str]] = None,
    currency: Optional[str] = None,
) -> ChangeSummary:
    """Categorized summary of what changed from previous to next_settings."""
    return ChangeSummary.from_changes(
        collect_changes(previous, next_settings, plan_names=plan_names, currency=currency)
    )
