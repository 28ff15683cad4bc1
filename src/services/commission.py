"""
Commission amount calculation for a single billing cycle.

Rules:
- One-time: paid on cycle 1 only
- Recurring: paid on cycles 1..duration
- Hybrid: one-time on cycle 1, recurring on cycles 2..duration + 1
- Percentage values are a percent of the subscription amount,
  fixed values are paid as-is
- A zero or negative subscription amount never earns commission
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from src.config import settings
from src.models import AmountType, CommissionModel
from src.schemas.commission import CommissionRule

logger = logging.getLogger(__name__)

MIN_RECURRING_DURATION = 1
MAX_RECURRING_DURATION = 24

ZERO = Decimal("0")
CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert a number to Decimal without float noise (0.1 -> Decimal('0.1'))."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_amount(
    amount_type: AmountType,
    value: Decimal,
    subscription_amount: Decimal,
) -> Decimal:
    """Apply one percentage or fixed value to a subscription amount."""
    if amount_type == AmountType.PERCENTAGE:
        amount = subscription_amount * to_decimal(value) / HUNDRED
    else:
        amount = to_decimal(value)
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def evaluate_rule(
    rule: CommissionRule,
    cycle_index: int,
    subscription_amount: Union[Decimal, int, float, str],
) -> Decimal:
    """Calculate the commission owed for one billing cycle.

    The rule is expected to have passed the settings validator already.
    A broken rule here is a programming error, so preconditions are
    asserted rather than handled.

    Args:
        rule: The resolved commission rule
        cycle_index: Billing cycle of the subscription, 1 = first payment
        subscription_amount: Amount the subscriber paid for this cycle

    Returns:
        Commission amount rounded to 2 decimal places (0 if nothing is owed)
    """
    assert cycle_index >= 1, f"cycle_index must be >= 1, got {cycle_index}"
    if rule.uses_recurring:
        assert MIN_RECURRING_DURATION <= rule.recurring_duration <= MAX_RECURRING_DURATION, (
            f"recurring_duration out of range: {rule.recurring_duration}"
        )

    amount = to_decimal(subscription_amount)
    if amount <= ZERO:
        return ZERO

    if rule.model == CommissionModel.ONE_TIME:
        if cycle_index == 1:
            return calculate_amount(rule.onetime_type, rule.onetime_value, amount)
        return ZERO

    if rule.model == CommissionModel.RECURRING:
        if cycle_index <= rule.recurring_duration:
            return calculate_amount(rule.recurring_type, rule.recurring_value, amount)
        return ZERO

    # Hybrid: the recurring window starts after the one-time cycle
    if cycle_index == 1:
        return calculate_amount(rule.onetime_type, rule.onetime_value, amount)
    if cycle_index <= rule.recurring_duration + 1:
        return calculate_amount(rule.recurring_type, rule.recurring_value, amount)
    return ZERO


def last_paying_cycle(rule: CommissionRule) -> int:
    """Last cycle index that can pay anything under this rule."""
    if rule.model == CommissionModel.ONE_TIME:
        return 1
    if rule.model == CommissionModel.RECURRING:
        return rule.recurring_duration
    return rule.recurring_duration + 1


def to_cents(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round to the 2 decimal places commission values are stored with."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_rule(
    rule: CommissionRule,
    default_duration: Optional[int] = None,
) -> CommissionRule:
    """Zero out the values a rule's model does not use and round the rest to cents.

    One-time rules keep a valid placeholder duration so the stored row
    still satisfies the duration constraint.
    """
    rule = rule.model_copy(
        update={
            "onetime_value": to_cents(rule.onetime_value),
            "recurring_value": to_cents(rule.recurring_value),
        }
    )
    if rule.model == CommissionModel.ONE_TIME:
        if default_duration is None:
            default_duration = settings.default_recurring_duration
        return rule.model_copy(
            update={"recurring_value": ZERO, "recurring_duration": default_duration}
        )
    if rule.model == CommissionModel.RECURRING:
        return rule.model_copy(update={"onetime_value": ZERO})
    return rule
