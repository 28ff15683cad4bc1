"""
Commission rule resolution.

Picks the rule that applies to a plan and cadence:
- Plan override present and enabled: the override's rule
- Plan override present and disabled: no commission (no fallback)
- No override: the network default rule
"""

import logging
from decimal import Decimal
from typing import Union

from src.models import Cadence
from src.schemas.commission import CommissionRule, CommissionSettings, ResolvedRule
from src.services.commission import ZERO, evaluate_rule
from src.services.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def network_rule(settings: CommissionSettings, cadence: Union[Cadence, str]) -> CommissionRule:
    """Get the network default rule for a cadence.

    Raises:
        ConfigurationError: If the settings have no network commission
    """
    if settings.network is None:
        raise ConfigurationError(
            f"Commission settings version {settings.version} has no network commission configured"
        )
    return settings.network.for_cadence(Cadence(cadence))


def resolve_rule(
    settings: CommissionSettings,
    plan_id: str,
    cadence: Union[Cadence, str],
) -> ResolvedRule:
    """Select the effective rule for a plan and cadence.

    A disabled plan override means "this plan pays no commission".
    It deliberately does NOT fall back to the network rule.

    Args:
        settings: Active commission settings
        plan_id: Subscription plan ID
        cadence: "monthly" or "yearly"

    Returns:
        ResolvedRule with the rule, whether it earns, and where it came from

    Raises:
        ConfigurationError: No override exists and no network rule is configured
    """
    cadence = Cadence(cadence)
    override = settings.plan_overrides.get(plan_id)

    if override is not None:
        if not override.enabled:
            logger.debug(f"Plan {plan_id} has commission disabled")
        return ResolvedRule(
            rule=override.for_cadence(cadence),
            earns=override.enabled,
            source="plan",
        )

    return ResolvedRule(
        rule=network_rule(settings, cadence),
        earns=True,
        source="network",
    )


def compute_commission(
    settings: CommissionSettings,
    plan_id: str,
    cadence: Union[Cadence, str],
    cycle_index: int,
    subscription_amount: Union[Decimal, int, float, str],
) -> Decimal:
    """Commission owed to the direct helper for one plan payment."""
    resolved = resolve_rule(settings, plan_id, cadence)
    if not resolved.earns:
        return ZERO
    return evaluate_rule(resolved.rule, cycle_index, subscription_amount)
