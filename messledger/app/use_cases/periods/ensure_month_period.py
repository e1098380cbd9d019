"""EnsureMonthPeriod Use Case

Idempotent reconciliation keeping a MONTHLY group on exactly one period per
calendar month. Invoked by the monthly period worker and before balance
reads.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from messledger.app.repositories.group_repository import GroupRepository
from messledger.app.repositories.period_repository import PeriodRepository
from messledger.domain.errors import ActivePeriodExists, GroupNotFound
from messledger.domain.period import PeriodMode, month_end, month_period_name, month_start
from .dtos import EnsureMonthPeriodResultDTO, MonthPeriodAction, StartPeriodCommandDTO
from .end_period import EndPeriod
from .start_period import StartPeriod

logger = logging.getLogger(__name__)


class EnsureMonthPeriod:
    """
    Use Case: Reconcile the current month's period

    Flow:
    1. Not MONTHLY -> skipped
    2. ACTIVE period started this month -> unchanged
    3. ACTIVE period from an earlier month -> end it at the end of its month
    4. No period named for this month -> start one, seeded from the last
       ended period's closing balance when it carried forward

    Losing a race against a concurrent reconciliation is reported as
    unchanged, not as an error.
    """

    def __init__(
        self,
        period_repo: PeriodRepository,
        group_repo: GroupRepository,
        start_period: StartPeriod,
        end_period: EndPeriod,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.period_repo = period_repo
        self.group_repo = group_repo
        self.start_period = start_period
        self.end_period = end_period
        self.now = now or datetime.utcnow

    async def execute(self, group_id: str, actor_id: str) -> EnsureMonthPeriodResultDTO:
        group = await self.group_repo.get_by_id(group_id)
        if not group:
            raise GroupNotFound(group_id)

        if group.period_mode != PeriodMode.MONTHLY:
            return EnsureMonthPeriodResultDTO(group_id=group_id, action=MonthPeriodAction.SKIPPED)

        now = self.now()
        current_month_start = month_start(now)
        month_name = month_period_name(now)
        ended_period_id = None

        # Step 1: Roll over a period left over from an earlier month
        active = await self.period_repo.get_active(group_id)
        if active:
            if active.start_date >= current_month_start:
                return EnsureMonthPeriodResultDTO(group_id=group_id, action=MonthPeriodAction.UNCHANGED)

            ended = await self.end_period.execute(
                group_id,
                actor_id,
                end_date=month_end(active.start_date),
                period_id=active.id,
                auto_rollover=True,
            )
            ended_period_id = ended.id

        # Step 2: Create this month's period unless one already exists
        if await self.period_repo.name_exists(group_id, month_name):
            return EnsureMonthPeriodResultDTO(
                group_id=group_id,
                action=MonthPeriodAction.ROLLED_OVER if ended_period_id else MonthPeriodAction.UNCHANGED,
                ended_period_id=ended_period_id,
            )

        opening_balance = Decimal("0")
        last_ended = await self.period_repo.get_last_ended(group_id)
        if last_ended and last_ended.carry_forward and last_ended.closing_balance is not None:
            opening_balance = last_ended.closing_balance

        try:
            created = await self.start_period.execute(
                StartPeriodCommandDTO(
                    group_id=group_id,
                    actor_id=actor_id,
                    name=month_name,
                    start_date=current_month_start,
                    end_date=None,
                    opening_balance=opening_balance,
                    carry_forward=False,
                )
            )
        except ActivePeriodExists as e:
            logger.info(
                f"Month period for group {group_id} already started concurrently ({e.period_id})"
            )
            return EnsureMonthPeriodResultDTO(
                group_id=group_id,
                action=MonthPeriodAction.ROLLED_OVER if ended_period_id else MonthPeriodAction.UNCHANGED,
                ended_period_id=ended_period_id,
            )

        logger.info(f"Month period '{month_name}' created for group {group_id}")

        return EnsureMonthPeriodResultDTO(
            group_id=group_id,
            action=MonthPeriodAction.ROLLED_OVER if ended_period_id else MonthPeriodAction.CREATED,
            ended_period_id=ended_period_id,
            created_period_id=created.id,
        )
