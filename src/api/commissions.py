"""Commission computation endpoint for the billing side."""

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import get_settings_store, http_error
from src.schemas.commission import CommissionComputation, CommissionEvent
from src.services.commission_resolver import compute_commission
from src.services.exceptions import CommissionError, ConfigurationError
from src.services.payouts import split_commission
from src.services.settings_store import SettingsVersionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commissions", tags=["Commissions"])


@router.post("/compute", response_model=CommissionComputation)
async def compute(
    event: CommissionEvent,
    store: SettingsVersionStore = Depends(get_settings_store),
):
    """
    Compute commission for one subscription payment.

    Uses the settings version active at the time of the call.
    """
    try:
        settings = await store.get_active()
        if settings is None:
            raise ConfigurationError("No active commission settings")

        amount = compute_commission(
            settings,
            event.plan_id,
            event.cadence,
            event.cycle_index,
            event.subscription_amount,
        )
        payouts = split_commission(settings, event)
    except CommissionError as e:
        logger.warning(f"Commission computation failed for plan {event.plan_id}: {e}")
        raise http_error(e) from e

    return CommissionComputation(
        settings_version=settings.version,
        amount=amount,
        payouts=payouts,
    )
