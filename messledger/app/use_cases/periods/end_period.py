"""EndPeriod Use Case

Closes the group's ACTIVE period (or an explicitly named one).
"""

import logging
from datetime import datetime
from typing import Optional

from messledger.app.repositories.group_repository import GroupRepository
from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.services.cache_service import CacheService, invalidate_period_cache
from messledger.app.services.notification_service import (
    LedgerEvent,
    LedgerEventType,
    NotificationService,
)
from messledger.app.services.unit_of_work import UnitOfWork
from messledger.app.use_cases.ledger.aggregator import LedgerAggregator
from messledger.domain.errors import InvalidDateRange, PeriodNotActive, PeriodNotFound
from messledger.domain.period import PeriodMode, PeriodStatus
from .dtos import PeriodDTO

logger = logging.getLogger(__name__)


class EndPeriod:
    """
    Use Case: End a period

    Business Rules:
    1. Only an ACTIVE period can be ended
    2. end_date defaults to now
    3. closing_balance = opening_balance + group total balance - total expenses
    4. A manual end switches a MONTHLY group to CUSTOM mode

    The automatic monthly rollover passes ``auto_rollover=True``: the group
    keeps its MONTHLY mode and a failed closing balance computation is logged
    instead of aborting the rollover.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        period_repo: PeriodRepository,
        group_repo: GroupRepository,
        aggregator: LedgerAggregator,
        cache: CacheService,
        notifier: NotificationService,
    ):
        self.uow = uow
        self.period_repo = period_repo
        self.group_repo = group_repo
        self.aggregator = aggregator
        self.cache = cache
        self.notifier = notifier

    async def execute(
        self,
        group_id: str,
        actor_id: str,
        end_date: Optional[datetime] = None,
        period_id: Optional[str] = None,
        auto_rollover: bool = False,
    ) -> PeriodDTO:
        """
        Raises:
            PeriodNotFound: No period resolves
            PeriodNotActive: The period is not ACTIVE
            InvalidDateRange: end_date is not after the period start
        """
        try:
            # Step 1: Resolve the period
            if period_id:
                period = await self.period_repo.get_by_id(period_id, group_id=group_id)
                if not period:
                    raise PeriodNotFound(period_id=period_id)
            else:
                period = await self.period_repo.get_active(group_id)
                if not period:
                    raise PeriodNotFound(group_id=group_id)

            if period.status != PeriodStatus.ACTIVE:
                raise PeriodNotActive(period.id, period.status.value)

            actual_end_date = end_date or datetime.utcnow()
            if actual_end_date <= period.start_date:
                raise InvalidDateRange(period.start_date, actual_end_date)

            # Step 2: Closing balance
            try:
                period.closing_balance = await self.aggregator.calculate_closing_balance(period)
            except Exception as e:
                if not auto_rollover:
                    raise
                logger.warning(
                    f"Closing balance unavailable for period {period.id}, "
                    f"ending without it: {e}"
                )

            # Step 3: Transition
            period.status = PeriodStatus.ENDED
            period.end_date = actual_end_date
            period.updated_at = datetime.utcnow()
            ended = await self.period_repo.update(period)

            # Step 4: Manual end takes the group out of MONTHLY mode
            mode_switched = False
            if not auto_rollover:
                group = await self.group_repo.get_by_id(group_id)
                if group and group.period_mode == PeriodMode.MONTHLY:
                    await self.group_repo.set_period_mode(group_id, PeriodMode.CUSTOM)
                    mode_switched = True

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(
            f"Period ended: {ended.id} '{ended.name}' "
            f"(group={group_id}, actor={actor_id}, auto={auto_rollover})"
        )
        if mode_switched:
            logger.info(f"Group {group_id} switched from MONTHLY to CUSTOM period mode")

        await invalidate_period_cache(self.cache, group_id, ended.id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.PERIOD_ENDED,
                group_id=group_id,
                actor_id=actor_id,
                period_id=ended.id,
                payload={
                    "name": ended.name,
                    "start_date": ended.start_date.isoformat(),
                    "end_date": ended.end_date.isoformat(),
                    "closing_balance": str(ended.closing_balance) if ended.closing_balance is not None else None,
                },
            )
        )

        return PeriodDTO.model_validate(ended)
