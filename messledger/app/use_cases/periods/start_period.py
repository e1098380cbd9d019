"""StartPeriod Use Case

Opens a new ACTIVE accounting period for a group.
"""

import logging

from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.services.cache_service import CacheService, invalidate_period_cache
from messledger.app.services.notification_service import (
    LedgerEvent,
    LedgerEventType,
    NotificationService,
)
from messledger.app.services.unit_of_work import UnitOfWork
from messledger.domain.period import Period, PeriodStatus
from .dtos import PeriodDTO, StartPeriodCommandDTO
from .rules import check_date_range, check_overlap, ensure_no_active_period, resolve_unique_name

logger = logging.getLogger(__name__)


class StartPeriod:
    """
    Use Case: Start a period

    Business Rules:
    1. At most one ACTIVE period per group
    2. start_date < end_date when an end date is given
    3. Closed ranges never overlap another live period
    4. Name collisions are resolved with a " (n)" suffix, never rejected

    Flow:
    1. Validate (no active period, date range, overlap)
    2. Resolve a unique name
    3. Insert the period (the store rejects a concurrent second ACTIVE period)
    4. Commit, invalidate cached reads, publish PERIOD_STARTED
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

    async def execute(self, command: StartPeriodCommandDTO) -> PeriodDTO:
        """
        Execute period start

        Args:
            command: StartPeriodCommandDTO with group, actor and period attributes

        Returns:
            PeriodDTO of the created period

        Raises:
            ActivePeriodExists: Another period is already active
            InvalidDateRange: start_date is not before end_date
            PeriodOverlap: The range intersects a live period
        """
        try:
            # Step 1: Validate, all reads in the insert's transaction
            await ensure_no_active_period(self.period_repo, command.group_id)
            check_date_range(command.start_date, command.end_date)
            await check_overlap(
                self.period_repo, command.group_id, command.start_date, command.end_date
            )

            # Step 2: Resolve name collisions
            name = await resolve_unique_name(self.period_repo, command.group_id, command.name)

            # Step 3: Insert
            period = Period(
                group_id=command.group_id,
                name=name,
                start_date=command.start_date,
                end_date=command.end_date,
                status=PeriodStatus.ACTIVE,
                opening_balance=command.opening_balance,
                carry_forward=command.carry_forward,
                notes=command.notes,
                created_by=command.actor_id,
            )
            created = await self.period_repo.create(period)

            # Step 4: Commit
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(
            f"Period started: {created.id} '{created.name}' "
            f"(group={command.group_id}, actor={command.actor_id})"
        )

        await invalidate_period_cache(self.cache, command.group_id, created.id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.PERIOD_STARTED,
                group_id=command.group_id,
                actor_id=command.actor_id,
                period_id=created.id,
                payload={
                    "name": created.name,
                    "start_date": created.start_date.isoformat(),
                    "end_date": created.end_date.isoformat() if created.end_date else None,
                },
            )
        )

        return PeriodDTO.model_validate(created)
