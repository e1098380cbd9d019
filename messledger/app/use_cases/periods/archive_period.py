"""ArchivePeriod Use Case"""

import logging
from datetime import datetime

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
from messledger.domain.errors import InvalidStatusTransition, PeriodNotFound
from messledger.domain.period import PeriodMode, PeriodStatus, can_transition
from .dtos import PeriodDTO

logger = logging.getLogger(__name__)


class ArchivePeriod:
    """
    Use Case: Archive a period

    Business Rules:
    1. Any live, non-archived period can be archived
    2. Archiving an ACTIVE period stamps end_date = now and takes a
       MONTHLY group out of MONTHLY mode
    3. A closing balance is captured if the period has none yet
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

    async def execute(self, group_id: str, actor_id: str, period_id: str) -> PeriodDTO:
        try:
            period = await self.period_repo.get_by_id(period_id, group_id=group_id)
            if not period:
                raise PeriodNotFound(period_id=period_id)

            if not can_transition(period.status, PeriodStatus.ARCHIVED):
                raise InvalidStatusTransition(
                    period_id, period.status.value, PeriodStatus.ARCHIVED.value
                )

            was_active = period.status == PeriodStatus.ACTIVE
            now = datetime.utcnow()

            if period.closing_balance is None:
                period.closing_balance = await self.aggregator.calculate_closing_balance(period)

            if was_active:
                period.end_date = now
            period.status = PeriodStatus.ARCHIVED
            period.updated_at = now
            archived = await self.period_repo.update(period)

            if was_active:
                group = await self.group_repo.get_by_id(group_id)
                if group and group.period_mode == PeriodMode.MONTHLY:
                    await self.group_repo.set_period_mode(group_id, PeriodMode.CUSTOM)
                    logger.info(f"Group {group_id} switched from MONTHLY to CUSTOM period mode")

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(f"Period archived: {period_id} (group={group_id}, actor={actor_id})")

        await invalidate_period_cache(self.cache, group_id, period_id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.PERIOD_ARCHIVED,
                group_id=group_id,
                actor_id=actor_id,
                period_id=period_id,
                payload={"name": archived.name, "was_active": was_active},
            )
        )

        return PeriodDTO.model_validate(archived)
