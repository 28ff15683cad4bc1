"""Business logic services."""

from src.services.change_summary import diff_settings
from src.services.commission import evaluate_rule, normalize_rule
from src.services.commission_resolver import compute_commission, resolve_rule
from src.services.exceptions import (
    CommissionError,
    ConfigurationError,
    ConflictError,
    PersistenceError,
    ValidationError,
)
from src.services.payouts import is_payout_due, split_commission
from src.services.settings_validator import validate_settings

__all__ = [
    # Evaluation
    "evaluate_rule",
    "normalize_rule",
    "resolve_rule",
    "compute_commission",
    "split_commission",
    "is_payout_due",
    # Settings
    "validate_settings",
    "diff_settings",
    # Errors
    "CommissionError",
    "ValidationError",
    "ConflictError",
    "ConfigurationError",
    "PersistenceError",
]
