"""
Versioned commission settings store.

All changes to commission settings go through activate():
1. Read the active version
2. Validate the candidate (nothing is written if it fails)
3. Deactivate the old version and insert the new one
4. Insert the network and plan rules for the new version
5. Write one audit record per changed field

Steps 1-5 run in a single transaction, so readers see either the old
or the new version, never both or neither.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config import settings as app_settings
from src.schemas.commission import (
    AuditRecord,
    ChangeSummary,
    CommissionSettings,
    NetworkCommissionConfig,
    PlanCommissionOverride,
    SettingsVersionInfo,
    SubscriptionPlanInfo,
)
from src.services.change_summary import diff_settings
from src.services.commission import normalize_rule, to_cents
from src.services.commission_repository import CommissionRepository
from src.services.exceptions import (
    ConflictError,
    PersistenceError,
    ValidationError,
)
from src.services.settings_validator import validate_settings
from src.utils.audit import build_audit_records

logger = logging.getLogger(__name__)

SYSTEM_IDENTITY = "system"


def default_settings() -> CommissionSettings:
    """Initial configuration: recurring 0% for 12 cycles on both cadences."""
    return CommissionSettings(network=NetworkCommissionConfig())


def normalize_settings(candidate: CommissionSettings) -> CommissionSettings:
    """Zero out unused rule values and round amounts to cents everywhere in a candidate."""
    network = candidate.network
    if network is not None:
        network = NetworkCommissionConfig(
            monthly=normalize_rule(network.monthly),
            yearly=normalize_rule(network.yearly),
        )
    overrides = {
        plan_id: PlanCommissionOverride(
            enabled=override.enabled,
            monthly=normalize_rule(override.monthly),
            yearly=normalize_rule(override.yearly),
        )
        for plan_id, override in candidate.plan_overrides.items()
    }
    return candidate.model_copy(
        update={
            "network": network,
            "plan_overrides": overrides,
            "min_payout_threshold": to_cents(candidate.min_payout_threshold),
        }
    )


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Surface database failures as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Database error while {action}: {e}")
        raise PersistenceError(str(e)) from e


class SettingsVersionStore:
    """
    Lifecycle of commission settings versions.

    Each call opens its own session from the factory, so the store can be
    shared across requests.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_active(self) -> Optional[CommissionSettings]:
        """Get the active settings, or None before the first activation."""
        with storage_errors("reading active settings"):
            async with self._session_factory() as db:
                return await CommissionRepository(db).get_active_settings()

    async def get_version(self, version: int) -> Optional[CommissionSettings]:
        """Get a historical (or the active) version by number."""
        with storage_errors(f"reading settings version {version}"):
            async with self._session_factory() as db:
                return await CommissionRepository(db).get_settings_version(version)

    async def list_versions(self, limit: int = 50) -> List[SettingsVersionInfo]:
        with storage_errors("listing settings versions"):
            async with self._session_factory() as db:
                return await CommissionRepository(db).list_versions(limit)

    async def list_plans(self, active_only: bool = False) -> List[SubscriptionPlanInfo]:
        with storage_errors("listing subscription plans"):
            async with self._session_factory() as db:
                return await CommissionRepository(db).list_plans(active_only)

    async def list_audit(
        self,
        limit: Optional[int] = None,
        settings_id: Optional[int] = None,
    ) -> List[AuditRecord]:
        """Audit trail, newest first."""
        if limit is None:
            limit = app_settings.audit_list_limit
        with storage_errors("listing audit records"):
            async with self._session_factory() as db:
                return await CommissionRepository(db).list_audit_records(limit, settings_id)

    async def plan_names(self) -> dict:
        """Plan id -> plan name, for readable messages."""
        return {plan.id: plan.name for plan in await self.list_plans()}

    async def diff_versions(self, from_version: int, to_version: int) -> Optional[ChangeSummary]:
        """Summary of changes between any two stored versions.

        Returns None if either version does not exist.
        """
        previous = await self.get_version(from_version)
        target = await self.get_version(to_version)
        if previous is None or target is None:
            return None
        return diff_settings(previous, target, plan_names=await self.plan_names())

    async def activate(
        self,
        candidate: CommissionSettings,
        changed_by: str = SYSTEM_IDENTITY,
        reason: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> CommissionSettings:
        """
        Validate and save a candidate as the new active version.

        Args:
            candidate: Settings to activate (id/version/is_active are ignored)
            changed_by: Operator identity recorded in the audit trail
            reason: Optional explanation stored with the audit records
            expected_version: Version the operator edited; if the active
                version is different, the activation is refused

        Returns:
            The newly active settings

        Raises:
            ValidationError: The candidate breaks a business rule
            ConflictError: The active version changed concurrently
            PersistenceError: The database failed
        """
        with storage_errors("activating commission settings"):
            async with self._session_factory() as db:
                try:
                    async with db.begin():
                        return await self._activate(
                            db, candidate, changed_by, reason, expected_version
                        )
                except IntegrityError as e:
                    # Unique version / single-active index tripped at commit
                    logger.warning(f"Activation lost a race: {e}")
                    raise ConflictError("Commission settings were activated concurrently") from e

    async def _activate(
        self,
        db: AsyncSession,
        candidate: CommissionSettings,
        changed_by: str,
        reason: Optional[str],
        expected_version: Optional[int],
    ) -> CommissionSettings:
        repo = CommissionRepository(db)

        previous = await repo.get_active_settings()
        previous_version = previous.version if previous else 0

        if expected_version is not None and expected_version != previous_version:
            logger.warning(
                f"Activation based on version {expected_version} refused, "
                f"active version is {previous_version}"
            )
            raise ConflictError(
                f"Settings were changed by someone else (version {previous_version} is active)",
                expected_version=expected_version,
                actual_version=previous_version,
            )

        plan_names = {plan.id: plan.name for plan in await repo.list_plans()}
        result = validate_settings(candidate, plan_names)
        if not result.is_valid:
            raise ValidationError(result.errors)

        normalized = normalize_settings(candidate)
        new_version = previous_version + 1

        if previous is not None and not await repo.deactivate(previous.id):
            logger.warning(f"Settings version {previous_version} was deactivated concurrently")
            raise ConflictError(
                f"Settings version {previous_version} is no longer active",
                expected_version=previous_version,
            )

        try:
            settings_id = await repo.insert_settings(normalized, new_version, changed_by)
        except IntegrityError as e:
            logger.warning(f"Settings version {new_version} already exists: {e}")
            raise ConflictError(
                f"Settings version {new_version} was created concurrently",
                expected_version=previous_version,
            ) from e

        try:
            await repo.insert_rules(settings_id, normalized)
        except IntegrityError as e:
            logger.error(f"Could not store commission rules for version {new_version}: {e}")
            raise PersistenceError(str(e)) from e

        records = build_audit_records(
            previous, normalized, settings_id, changed_by, reason, plan_names
        )
        for record in records:
            repo.append_audit_record(record)
        await db.flush()

        activated = await repo.get_settings_version(new_version)
        logger.info(
            f"Commission settings version {new_version} activated by {changed_by} "
            f"({len(records)} audit record(s))"
        )
        return activated

    async def ensure_default_settings(self) -> CommissionSettings:
        """Create version 1 with default values if no version exists yet."""
        active = await self.get_active()
        if active is not None:
            return active

        logger.info("No commission settings found, creating defaults")
        try:
            return await self.activate(
                default_settings(),
                changed_by=SYSTEM_IDENTITY,
                reason="Default commission settings",
                expected_version=0,
            )
        except ConflictError:
            # Another worker seeded first
            active = await self.get_active()
            if active is None:
                raise
            return active

