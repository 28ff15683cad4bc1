"""
Validation of candidate commission settings.

Every rule is checked and every problem is reported, so the admin UI
can show all of them at once. validate_settings never raises.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from src.models import AmountType, Cadence, PaymentSchedule
from src.schemas.commission import (
    CommissionRule,
    CommissionSettings,
    PlanCommissionOverride,
    ValidationResult,
)
from src.services.commission import (
    MAX_RECURRING_DURATION,
    MIN_RECURRING_DURATION,
    ZERO,
    to_decimal,
)

logger = logging.getLogger(__name__)

MAX_REFERRAL_PREFIX_LENGTH = 6

# Payment days offered for each payout schedule
PAYMENT_DAYS: Dict[PaymentSchedule, tuple] = {
    PaymentSchedule.WEEKLY: ("monday", "tuesday", "wednesday", "thursday", "friday"),
    PaymentSchedule.BIWEEKLY: ("1st-15th", "monday"),
    PaymentSchedule.MONTHLY: ("1st", "15th", "last"),
}

DURATION_UNITS = {
    Cadence.MONTHLY: "months",
    Cadence.YEARLY: "years",
}


def _check_value(label: str, kind: str, amount_type: AmountType, value: Decimal) -> List[str]:
    value = to_decimal(value)
    if amount_type == AmountType.PERCENTAGE:
        if value < 0 or value > 100:
            return [f"{label}: {kind} percentage must be between 0-100%"]
    elif value < 0:
        return [f"{label}: {kind} fixed amount cannot be negative"]
    return []


def validate_rule(label: str, rule: CommissionRule, cadence: Cadence) -> List[str]:
    """Validate one rule. Values the rule's model does not use are ignored."""
    errors: List[str] = []

    if rule.uses_onetime:
        errors += _check_value(label, "One-time", rule.onetime_type, rule.onetime_value)

    if rule.uses_recurring:
        errors += _check_value(label, "Recurring", rule.recurring_type, rule.recurring_value)
        if not MIN_RECURRING_DURATION <= rule.recurring_duration <= MAX_RECURRING_DURATION:
            errors.append(
                f"{label}: Duration must be between "
                f"{MIN_RECURRING_DURATION}-{MAX_RECURRING_DURATION} {DURATION_UNITS[cadence]}"
            )

    return errors


def rule_earns_something(rule: CommissionRule) -> bool:
    """True if any value used by the rule's model is above zero."""
    if rule.uses_onetime and to_decimal(rule.onetime_value) > ZERO:
        return True
    if rule.uses_recurring and to_decimal(rule.recurring_value) > ZERO:
        return True
    return False


def _validate_override(plan_name: str, override: PlanCommissionOverride) -> List[str]:
    errors: List[str] = []
    for cadence in Cadence:
        label = f"{plan_name} ({cadence.value.capitalize()})"
        errors += validate_rule(label, override.for_cadence(cadence), cadence)

    earns = rule_earns_something(override.monthly) or rule_earns_something(override.yearly)
    if override.enabled and not earns:
        errors.append(
            f"{plan_name}: Commission is enabled but all values are 0 - "
            "helpers will not earn anything"
        )
    return errors


def validate_settings(
    candidate: CommissionSettings,
    plan_names: Optional[Mapping[str, str]] = None,
) -> ValidationResult:
    """
    Validate a candidate configuration before activation.

    Checks network rules and every plan override for both cadences, then
    payment and recruitment settings. Disabled overrides are stored too, so
    their values must be in range, but they may earn nothing.

    Args:
        candidate: Settings to validate
        plan_names: Optional plan id -> display name map of existing plans;
            when given, overrides for any other plan id are rejected

    Returns:
        ValidationResult with all errors found
    """
    known_plans = plan_names is not None
    plan_names = plan_names or {}
    errors: List[str] = []

    # 1. Network commission
    if candidate.network is None:
        errors.append("Network commission is not configured")
    else:
        for cadence in Cadence:
            label = f"Network {cadence.value.capitalize()}"
            errors += validate_rule(label, candidate.network.for_cadence(cadence), cadence)

    # 2. Plan-specific commission
    for plan_id, override in candidate.plan_overrides.items():
        if known_plans and plan_id not in plan_names:
            errors.append(f"Subscription plan '{plan_id}' does not exist")
            continue
        errors += _validate_override(plan_names.get(plan_id, plan_id), override)

    # 3. Payment settings
    if to_decimal(candidate.min_payout_threshold) < 0:
        errors.append("Minimum Payout Threshold cannot be negative")

    allowed_days = PAYMENT_DAYS[candidate.payment_schedule]
    if candidate.payment_day not in allowed_days:
        errors.append(
            f"Payment Day '{candidate.payment_day}' is not valid for a "
            f"{candidate.payment_schedule.value} schedule (use one of: {', '.join(allowed_days)})"
        )

    # 4. Recruitment settings
    prefix = candidate.referral_code_prefix or ""
    if not prefix.strip():
        errors.append("Referral Code Prefix cannot be empty")
    if len(prefix) > MAX_REFERRAL_PREFIX_LENGTH:
        errors.append(
            f"Referral Code Prefix must be {MAX_REFERRAL_PREFIX_LENGTH} characters or less"
        )

    if candidate.max_helpers_per_recruiter < -1:
        errors.append("Max Helpers Per Recruiter must be -1 (unlimited) or a positive number")

    if errors:
        logger.info(f"Commission settings candidate failed validation with {len(errors)} error(s)")

    return ValidationResult(is_valid=not errors, errors=errors)
