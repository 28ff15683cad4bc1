"""
Tests for commission rule resolution.

Covers:
- Enabled override wins over the network rule
- Disabled override pays nothing and never falls back
- Missing override falls back to the network rule
- Missing network rule is a configuration error
"""

from decimal import Decimal

import pytest

from src.models import AmountType, Cadence, CommissionModel
from src.schemas.commission import (
    CommissionRule,
    CommissionSettings,
    NetworkCommissionConfig,
    PlanCommissionOverride,
)
from src.services.commission_resolver import compute_commission, network_rule, resolve_rule
from src.services.exceptions import ConfigurationError


NETWORK_MONTHLY = CommissionRule(
    model=CommissionModel.ONE_TIME,
    onetime_type=AmountType.PERCENTAGE,
    onetime_value=Decimal("10"),
)
NETWORK_YEARLY = CommissionRule(
    model=CommissionModel.ONE_TIME,
    onetime_type=AmountType.FIXED,
    onetime_value=Decimal("1000"),
)
PRO_MONTHLY = CommissionRule(
    model=CommissionModel.RECURRING,
    recurring_value=Decimal("20"),
    recurring_duration=6,
)


def _settings(overrides=None, network=True) -> CommissionSettings:
    return CommissionSettings(
        version=3,
        network=NetworkCommissionConfig(monthly=NETWORK_MONTHLY, yearly=NETWORK_YEARLY)
        if network
        else None,
        plan_overrides=overrides or {},
    )


# ── resolve_rule ──────────────────────────────────────────


class TestResolveRule:
    def test_enabled_override_used(self):
        settings = _settings({"Pro": PlanCommissionOverride(enabled=True, monthly=PRO_MONTHLY)})

        resolved = resolve_rule(settings, "Pro", "monthly")

        assert resolved.earns is True
        assert resolved.source == "plan"
        assert resolved.rule == PRO_MONTHLY

    def test_override_is_per_cadence(self):
        settings = _settings({"Pro": PlanCommissionOverride(enabled=True, monthly=PRO_MONTHLY)})

        resolved = resolve_rule(settings, "Pro", Cadence.YEARLY)

        assert resolved.source == "plan"
        assert resolved.rule == CommissionRule()

    @pytest.mark.parametrize(
        "override_rule",
        [
            CommissionRule(),
            PRO_MONTHLY,
            CommissionRule(
                model=CommissionModel.HYBRID,
                onetime_value=Decimal("50"),
                recurring_value=Decimal("50"),
            ),
        ],
    )
    def test_disabled_override_never_earns(self, override_rule):
        settings = _settings(
            {"Pro": PlanCommissionOverride(enabled=False, monthly=override_rule, yearly=override_rule)}
        )

        for cadence in ("monthly", "yearly"):
            resolved = resolve_rule(settings, "Pro", cadence)
            assert resolved.earns is False
            assert resolved.source == "plan"

    def test_no_override_falls_back_to_network(self):
        settings = _settings()

        monthly = resolve_rule(settings, "Free", "monthly")
        yearly = resolve_rule(settings, "Free", "yearly")

        assert monthly.earns is True
        assert monthly.source == "network"
        assert monthly.rule == NETWORK_MONTHLY
        assert yearly.rule == NETWORK_YEARLY

    def test_missing_network_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            resolve_rule(_settings(network=False), "Free", "monthly")

    def test_override_works_without_network(self):
        settings = _settings(
            {"Pro": PlanCommissionOverride(enabled=True, monthly=PRO_MONTHLY)},
            network=False,
        )
        assert resolve_rule(settings, "Pro", "monthly").rule == PRO_MONTHLY

    def test_network_rule_requires_network(self):
        with pytest.raises(ConfigurationError):
            network_rule(_settings(network=False), Cadence.MONTHLY)


# ── compute_commission ────────────────────────────────────


class TestComputeCommission:
    def test_disabled_plan_pays_zero_even_if_network_would_pay(self):
        settings = _settings({"Pro": PlanCommissionOverride(enabled=False)})

        assert compute_commission(settings, "Free", "monthly", 1, Decimal("100")) == Decimal("10.00")
        assert compute_commission(settings, "Pro", "monthly", 1, 100) == Decimal("0")

    def test_enabled_override_amount(self):
        settings = _settings({"Pro": PlanCommissionOverride(enabled=True, monthly=PRO_MONTHLY)})

        assert compute_commission(settings, "Pro", "monthly", 6, Decimal("999")) == Decimal("199.80")
        assert compute_commission(settings, "Pro", "monthly", 7, Decimal("999")) == Decimal("0")

    def test_network_yearly_fixed(self):
        assert compute_commission(_settings(), "Free", "yearly", 1, Decimal("9990")) == Decimal("1000.00")

    def test_unknown_cadence_rejected(self):
        with pytest.raises(ValueError):
            compute_commission(_settings(), "Free", "weekly", 1, Decimal("100"))
