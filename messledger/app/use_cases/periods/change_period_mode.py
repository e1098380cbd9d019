"""ChangePeriodMode Use Case"""

import logging

from messledger.app.repositories.group_repository import GroupRepository
from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.services.cache_service import CacheService, invalidate_period_cache
from messledger.app.services.unit_of_work import UnitOfWork
from messledger.domain.errors import ActivePeriodExists, GroupNotFound
from messledger.domain.period import PeriodMode
from .dtos import PeriodModeDTO
from .ensure_month_period import EnsureMonthPeriod

logger = logging.getLogger(__name__)


class ChangePeriodMode:
    """
    Use Case: Switch a group between MONTHLY and CUSTOM periods

    Business Rules:
    1. A MONTHLY group cannot change mode while its period is ACTIVE
    2. Switching to MONTHLY immediately reconciles the current month
    """

    def __init__(
        self,
        uow: UnitOfWork,
        group_repo: GroupRepository,
        period_repo: PeriodRepository,
        ensure_month_period: EnsureMonthPeriod,
        cache: CacheService,
    ):
        self.uow = uow
        self.group_repo = group_repo
        self.period_repo = period_repo
        self.ensure_month_period = ensure_month_period
        self.cache = cache

    async def execute(self, group_id: str, actor_id: str, mode: PeriodMode) -> PeriodModeDTO:
        try:
            group = await self.group_repo.get_by_id(group_id)
            if not group:
                raise GroupNotFound(group_id)

            if group.period_mode == mode:
                return PeriodModeDTO(group_id=group_id, period_mode=mode)

            active = await self.period_repo.get_active(group_id)
            if group.period_mode == PeriodMode.MONTHLY and active:
                raise ActivePeriodExists(active.id, active.name)

            await self.group_repo.set_period_mode(group_id, mode)
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(f"Group {group_id} period mode set to {mode.value} by {actor_id}")
        await invalidate_period_cache(self.cache, group_id)

        month_period = None
        if mode == PeriodMode.MONTHLY:
            month_period = await self.ensure_month_period.execute(group_id, actor_id)

        return PeriodModeDTO(group_id=group_id, period_mode=mode, month_period=month_period)
