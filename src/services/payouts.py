"""
Recruiting-chain payout split.

A store owner pays for a plan. The helper who brought them in earns the
plan commission (tier 1). If multi-tier is enabled, the helper who
recruited that helper earns the network commission for the same cycle
(tier 2).
"""

import logging
from decimal import Decimal
from typing import List, Union

from src.schemas.commission import CommissionEvent, CommissionPayout, CommissionSettings
from src.services.commission import ZERO, evaluate_rule, to_decimal
from src.services.commission_resolver import compute_commission, network_rule

logger = logging.getLogger(__name__)


def split_commission(
    settings: CommissionSettings,
    event: CommissionEvent,
) -> List[CommissionPayout]:
    """Compute what each participant in the chain earns for one payment.

    Participants with a zero amount are left out.
    """
    payouts: List[CommissionPayout] = []

    if event.direct_helper_id:
        direct = compute_commission(
            settings,
            event.plan_id,
            event.cadence,
            event.cycle_index,
            event.subscription_amount,
        )
        if direct > ZERO:
            payouts.append(
                CommissionPayout(
                    helper_id=event.direct_helper_id,
                    tier=1,
                    kind="direct",
                    amount=direct,
                )
            )

    if event.recruiter_id and settings.enable_multi_tier:
        network = evaluate_rule(
            network_rule(settings, event.cadence),
            event.cycle_index,
            event.subscription_amount,
        )
        if network > ZERO:
            payouts.append(
                CommissionPayout(
                    helper_id=event.recruiter_id,
                    tier=2,
                    kind="network",
                    amount=network,
                )
            )
    elif event.recruiter_id:
        logger.debug(f"Multi-tier disabled, recruiter {event.recruiter_id} earns nothing")

    return payouts


def is_payout_due(
    balance: Union[Decimal, int, float, str],
    settings: CommissionSettings,
) -> bool:
    """True when an unpaid balance has reached the minimum payout threshold."""
    balance = to_decimal(balance)
    return balance > ZERO and balance >= to_decimal(settings.min_payout_threshold)
