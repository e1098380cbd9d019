"""GetPeriodSummary Use Case

Period attributes plus the period's meal and money totals.
"""

import asyncio

from messledger.app.repositories.ledger_aggregate_repository import LedgerAggregateRepository
from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.services.cache_service import CacheService, cache_key, group_tag, period_tag
from messledger.domain.errors import PeriodNotFound
from .dtos import PeriodSummaryDTO


class GetPeriodSummary:
    """
    Use Case: Period summary

    All six aggregates are independent and are awaited together.
    """

    def __init__(
        self,
        period_repo: PeriodRepository,
        aggregate_repo: LedgerAggregateRepository,
        cache: CacheService,
        ttl_seconds: int = 30,
    ):
        self.period_repo = period_repo
        self.aggregate_repo = aggregate_repo
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def execute(self, group_id: str, period_id: str) -> PeriodSummaryDTO:
        """
        Raises:
            PeriodNotFound: Unknown, deleted or foreign period
        """
        return await self.cache.get_or_load(
            cache_key("period_summary", group_id, None, period_id),
            PeriodSummaryDTO,
            lambda: self._build(group_id, period_id),
            [group_tag(group_id), period_tag(period_id)],
            self.ttl_seconds,
        )

    async def _build(self, group_id: str, period_id: str) -> PeriodSummaryDTO:
        period = await self.period_repo.get_by_id(period_id, group_id=group_id)
        if not period:
            raise PeriodNotFound(period_id=period_id)

        repo = self.aggregate_repo
        (
            total_meals,
            total_guest_meals,
            total_shopping,
            total_payments,
            total_expenses,
            active_members,
        ) = await asyncio.gather(
            repo.count_meals(group_id, period_id),
            repo.sum_guest_meals(group_id, period_id),
            repo.sum_purchased_shopping(group_id, period_id),
            repo.sum_completed_payments(group_id, period_id),
            repo.sum_expenses(group_id, period_id),
            repo.count_active_members(group_id),
        )

        return PeriodSummaryDTO(
            id=period.id,
            name=period.name,
            start_date=period.start_date,
            end_date=period.end_date,
            status=period.status,
            is_locked=period.is_locked,
            total_meals=total_meals,
            total_guest_meals=total_guest_meals,
            total_shopping_amount=total_shopping,
            total_payments=total_payments,
            total_extra_expenses=total_expenses,
            active_member_count=active_members,
            opening_balance=period.opening_balance,
            closing_balance=period.closing_balance,
            carry_forward=period.carry_forward,
        )
