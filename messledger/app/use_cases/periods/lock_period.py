"""LockPeriod / UnlockPeriod Use Cases

A locked period rejects further edits until it is unlocked.
"""

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
from messledger.domain.errors import (
    InvalidStatusTransition,
    PeriodAlreadyLocked,
    PeriodNotFound,
    PeriodNotLocked,
)
from messledger.domain.period import PeriodStatus, can_transition
from .dtos import PeriodDTO
from .rules import ensure_no_active_period

logger = logging.getLogger(__name__)


class LockPeriod:
    """
    Use Case: Lock a period

    Business Rules:
    1. Locking an already locked period is rejected without changes
    2. Only ENDED and ARCHIVED periods can be locked; an ACTIVE period is ended first
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

    async def execute(self, group_id: str, actor_id: str, period_id: str) -> PeriodDTO:
        """
        Raises:
            PeriodNotFound: Unknown or deleted period
            PeriodAlreadyLocked: The period is already locked
            InvalidStatusTransition: The status cannot move to LOCKED
        """
        try:
            period = await self.period_repo.get_by_id(period_id, group_id=group_id)
            if not period:
                raise PeriodNotFound(period_id=period_id)

            if period.is_locked:
                raise PeriodAlreadyLocked(period_id)

            if not can_transition(period.status, PeriodStatus.LOCKED):
                raise InvalidStatusTransition(
                    period_id, period.status.value, PeriodStatus.LOCKED.value
                )

            period.is_locked = True
            period.status = PeriodStatus.LOCKED
            period.updated_at = datetime.utcnow()
            locked = await self.period_repo.update(period)

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(f"Period locked: {period_id} (group={group_id}, actor={actor_id})")

        await invalidate_period_cache(self.cache, group_id, period_id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.PERIOD_LOCKED,
                group_id=group_id,
                actor_id=actor_id,
                period_id=period_id,
                payload={"name": locked.name},
            )
        )

        return PeriodDTO.model_validate(locked)


class UnlockPeriod:
    """
    Use Case: Unlock a period

    Business Rules:
    1. The period must be locked or archived
    2. The caller chooses the resulting status (ENDED by default)
    3. Unlocking into ACTIVE still honours the single ACTIVE period rule
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
        resulting_status: PeriodStatus = PeriodStatus.ENDED,
    ) -> PeriodDTO:
        """
        Raises:
            PeriodNotFound: Unknown or deleted period
            PeriodNotLocked: The period is neither locked nor archived
            InvalidStatusTransition: resulting_status is not reachable
            ActivePeriodExists: Reactivating while another period is ACTIVE
        """
        try:
            period = await self.period_repo.get_by_id(period_id, group_id=group_id)
            if not period:
                raise PeriodNotFound(period_id=period_id)

            if not period.is_locked and period.status != PeriodStatus.ARCHIVED:
                raise PeriodNotLocked(period_id)

            if resulting_status == PeriodStatus.LOCKED or not can_transition(
                period.status, resulting_status
            ):
                raise InvalidStatusTransition(
                    period_id, period.status.value, resulting_status.value
                )

            if resulting_status == PeriodStatus.ACTIVE:
                await ensure_no_active_period(self.period_repo, group_id)

            period.is_locked = False
            period.status = resulting_status
            period.updated_at = datetime.utcnow()
            unlocked = await self.period_repo.update(period)

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(
            f"Period unlocked: {period_id} -> {resulting_status.value} "
            f"(group={group_id}, actor={actor_id})"
        )

        await invalidate_period_cache(self.cache, group_id, period_id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.PERIOD_UNLOCKED,
                group_id=group_id,
                actor_id=actor_id,
                period_id=period_id,
                payload={"name": unlocked.name, "status": resulting_status.value},
            )
        )

        return PeriodDTO.model_validate(unlocked)
