"""Period read use cases

GetPeriods, GetCurrentPeriod, GetPeriod and GetPeriodsByMonth. List reads
are cached under the group and "periods" tags.
"""

from calendar import monthrange
from datetime import datetime
from typing import Optional

from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.services.cache_service import (
    PERIODS_TAG,
    CacheService,
    cache_key,
    group_tag,
    period_tag,
)
from messledger.domain.errors import PeriodNotFound
from .dtos import PeriodDTO, PeriodListDTO


class GetPeriods:
    """
    Use Case: List a group's periods, newest start first

    ARCHIVED periods are only included on request.
    """

    def __init__(self, period_repo: PeriodRepository, cache: CacheService, ttl_seconds: int = 60):
        self.period_repo = period_repo
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def execute(self, group_id: str, include_archived: bool = False) -> PeriodListDTO:
        async def load() -> PeriodListDTO:
            periods = await self.period_repo.list_by_group(group_id, include_archived=include_archived)
            return PeriodListDTO(periods=[PeriodDTO.model_validate(p) for p in periods])

        return await self.cache.get_or_load(
            cache_key("periods", group_id, None, None, include_archived),
            PeriodListDTO,
            load,
            [group_tag(group_id), PERIODS_TAG],
            self.ttl_seconds,
        )


class GetCurrentPeriod:
    """Use Case: The group's ACTIVE period, or None"""

    def __init__(self, period_repo: PeriodRepository):
        self.period_repo = period_repo

    async def execute(self, group_id: str) -> Optional[PeriodDTO]:
        period = await self.period_repo.get_active(group_id)
        return PeriodDTO.model_validate(period) if period else None


class GetPeriod:
    """Use Case: One period, which must belong to the group"""

    def __init__(self, period_repo: PeriodRepository, cache: CacheService, ttl_seconds: int = 60):
        self.period_repo = period_repo
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def execute(self, group_id: str, period_id: str) -> PeriodDTO:
        async def load() -> PeriodDTO:
            period = await self.period_repo.get_by_id(period_id, group_id=group_id)
            if not period:
                raise PeriodNotFound(period_id=period_id)
            return PeriodDTO.model_validate(period)

        return await self.cache.get_or_load(
            cache_key("period", group_id, None, period_id),
            PeriodDTO,
            load,
            [group_tag(group_id), period_tag(period_id)],
            self.ttl_seconds,
        )


class GetPeriodsByMonth:
    """
    Use Case: Periods touching a calendar month

    A period matches when it starts in the month, ends in the month, or
    spans the whole month.
    """

    def __init__(self, period_repo: PeriodRepository):
        self.period_repo = period_repo

    async def execute(self, group_id: str, year: int, month: int) -> PeriodListDTO:
        if not 1 <= month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {month}")

        _, last_day = monthrange(year, month)
        range_start = datetime(year, month, 1)
        range_end = datetime(year, month, last_day, 23, 59, 59, 999999)

        periods = await self.period_repo.list_in_range(group_id, range_start, range_end)
        return PeriodListDTO(periods=[PeriodDTO.model_validate(p) for p in periods])
