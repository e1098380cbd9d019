"""UpdatePeriod / DeletePeriod Use Cases"""

import logging
from datetime import datetime

from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.services.cache_service import CacheService, invalidate_period_cache
from messledger.app.services.notification_service import (
    LedgerEvent,
    LedgerEventType,
    NotificationService,
)
from messledger.app.services.unit_of_work import UnitOfWork
from messledger.domain.errors import PeriodNotFound
from .dtos import PeriodDTO, UpdatePeriodCommandDTO
from .rules import check_date_range, check_overlap, resolve_unique_name

logger = logging.getLogger(__name__)


class UpdatePeriod:
    """
    Use Case: Partial period update

    Business Rules:
    1. Only fields present in the patch are applied
    2. Name uniqueness is re-resolved only when the name changes
    3. Date range and overlap are re-validated only when a date changes
    """

    def __init__(
        self,
        uow: UnitOfWork,
        period_repo: PeriodRepository,
        cache: CacheService,
        notifier: NotificationService,
    ):
        self.uow = uow
        self.period_repo = period_repo
        self.cache = cache
        self.notifier = notifier

    async def execute(
        self,
        group_id: str,
        actor_id: str,
        period_id: str,
        patch: UpdatePeriodCommandDTO,
    ) -> PeriodDTO:
        """
        Raises:
            PeriodNotFound: Unknown or deleted period
            InvalidDateRange: The resulting range is empty or inverted
            PeriodOverlap: The resulting range intersects another live period
        """
        changes = patch.model_dump(exclude_unset=True)

        try:
            period = await self.period_repo.get_by_id(period_id, group_id=group_id)
            if not period:
                raise PeriodNotFound(period_id=period_id)

            # Name
            if changes.get("name") and changes["name"] != period.name:
                changes["name"] = await resolve_unique_name(
                    self.period_repo, group_id, changes["name"], exclude_id=period_id
                )
            else:
                changes.pop("name", None)

            # Dates
            if "start_date" in changes or "end_date" in changes:
                start_date = changes.get("start_date") or period.start_date
                end_date = changes["end_date"] if "end_date" in changes else period.end_date
                check_date_range(start_date, end_date)
                await check_overlap(
                    self.period_repo, group_id, start_date, end_date, exclude_id=period_id
                )
                changes["start_date"] = start_date

            for field, value in changes.items():
                if field in ("opening_balance", "carry_forward") and value is None:
                    continue
                setattr(period, field, value)
            period.updated_at = datetime.utcnow()
            updated = await self.period_repo.update(period)

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(
            f"Period updated: {period_id} fields={sorted(changes)} "
            f"(group={group_id}, actor={actor_id})"
        )

        await invalidate_period_cache(self.cache, group_id, period_id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.PERIOD_UPDATED,
                group_id=group_id,
                actor_id=actor_id,
                period_id=period_id,
                payload={"name": updated.name, "fields": sorted(changes)},
            )
        )

        return PeriodDTO.model_validate(updated)


class DeletePeriod:
    """
    Use Case: Soft-delete a period

    The row is kept so meals, expenses and transactions keep a valid
    reference; every read excludes it from then on.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        period_repo: PeriodRepository,
        cache: CacheService,
        notifier: NotificationService,
    ):
        self.uow = uow
        self.period_repo = period_repo
        self.cache = cache
        self.notifier = notifier

    async def execute(self, group_id: str, actor_id: str, period_id: str) -> None:
        try:
            period = await self.period_repo.get_by_id(period_id, group_id=group_id)
            if not period:
                raise PeriodNotFound(period_id=period_id)

            now = datetime.utcnow()
            period.deleted_at = now
            period.updated_at = now
            await self.period_repo.update(period)

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(f"Period deleted: {period_id} (group={group_id}, actor={actor_id})")

        await invalidate_period_cache(self.cache, group_id, period_id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.PERIOD_DELETED,
                group_id=group_id,
                actor_id=actor_id,
                period_id=period_id,
                payload={"name": period.name},
            )
        )
