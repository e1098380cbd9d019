"""RestartPeriod Use Case

Starts a fresh ACTIVE period continuing a previous one.
"""

import logging
from datetime import datetime
from decimal import Decimal

from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.services.cache_service import CacheService, invalidate_period_cache
from messledger.app.services.notification_service import (
    LedgerEvent,
    LedgerEventType,
    NotificationService,
)
from messledger.app.services.unit_of_work import UnitOfWork
from messledger.domain.errors import PeriodNotFound
from messledger.domain.period import Period, PeriodStatus
from .dtos import PeriodDTO, RestartPeriodCommandDTO
from .rules import ensure_no_active_period, resolve_restart_name, resolve_unique_name

logger = logging.getLogger(__name__)


class RestartPeriod:
    """
    Use Case: Restart a period

    Business Rules:
    1. No other period may be ACTIVE
    2. opening_balance = previous closing_balance if it carried forward, else 0
    3. carry_forward and notes are inherited
    4. with_data MOVES every child record of the old period to the new one;
       the old period is left with no meals, expenses or transactions

    Flow:
    1. Load the source period and check no period is active
    2. Resolve the name (explicit name, or "<name> (Restarted)")
    3. Insert the new period
    4. Optionally reassign child records, in the same transaction
    5. Commit, invalidate both periods, publish PERIOD_RESTARTED
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

    async def execute(self, command: RestartPeriodCommandDTO) -> PeriodDTO:
        group_id = command.group_id
        moved = 0

        try:
            # Step 1: Source period and active check
            original = await self.period_repo.get_by_id(command.period_id, group_id=group_id)
            if not original:
                raise PeriodNotFound(period_id=command.period_id)

            await ensure_no_active_period(self.period_repo, group_id)

            # Step 2: Name
            if command.new_name:
                name = await resolve_unique_name(self.period_repo, group_id, command.new_name)
            else:
                name = await resolve_restart_name(self.period_repo, group_id, original.name)

            # Step 3: Insert
            opening_balance = Decimal("0")
            if original.carry_forward and original.closing_balance is not None:
                opening_balance = original.closing_balance

            created = await self.period_repo.create(
                Period(
                    group_id=group_id,
                    name=name,
                    start_date=datetime.utcnow(),
                    end_date=None,
                    status=PeriodStatus.ACTIVE,
                    is_locked=False,
                    opening_balance=opening_balance,
                    closing_balance=None,
                    carry_forward=original.carry_forward,
                    notes=original.notes,
                    created_by=command.actor_id,
                )
            )

            # Step 4: Move child records
            if command.with_data:
                moved = await self.period_repo.reassign_records(original.id, created.id)

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(
            f"Period restarted: {original.id} -> {created.id} '{created.name}' "
            f"(group={group_id}, actor={command.actor_id}, moved_records={moved})"
        )

        await invalidate_period_cache(self.cache, group_id, created.id, original.id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.PERIOD_RESTARTED,
                group_id=group_id,
                actor_id=command.actor_id,
                period_id=created.id,
                payload={
                    "name": created.name,
                    "previous_period_id": original.id,
                    "with_data": command.with_data,
                    "moved_records": moved,
                },
            )
        )

        return PeriodDTO.model_validate(created)
