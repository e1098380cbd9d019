"""Get Group Balance Summary Use Case

Full member roster with balances for the group's active period. The most
expensive read in the system and the primary cache target.
"""

import asyncio
import logging
from typing import Optional

from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.services.cache_service import (
    CacheService,
    cache_key,
    group_tag,
    period_tag,
)
from messledger.domain.period import Period
from .aggregator import LedgerAggregator, ZERO, compute_meal_rate
from .dtos import GroupBalanceSummaryDTO, MemberBalanceDTO, PeriodRefDTO

logger = logging.getLogger(__name__)


class GetGroupBalanceSummary:
    """
    Use Case: Group balance summary

    Flow:
    1. Resolve the active period
    2. Serve from cache when a summary for (group, viewer, period) is fresh
    3. Wave 1: members + transaction sums grouped by target
    4. Wave 2: meal counts grouped by user + expense and deposit totals
    5. Build per-member rows in memory from the grouped maps

    The two waves only bound how many pooled connections are held at once;
    wave 2 does not depend on wave 1.
    """

    def __init__(
        self,
        period_repo: PeriodRepository,
        aggregator: LedgerAggregator,
        cache: CacheService,
        ttl_seconds: int = 30,
    ):
        self.period_repo = period_repo
        self.aggregator = aggregator
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def execute(
        self,
        group_id: str,
        viewer_id: str,
        include_details: bool = False,
    ) -> GroupBalanceSummaryDTO:
        current_period = await self.period_repo.get_active(group_id)
        period_id = current_period.id if current_period else None

        tags = [group_tag(group_id)]
        if period_id:
            tags.append(period_tag(period_id))

        return await self.cache.get_or_load(
            cache_key("group_balance_summary", group_id, viewer_id, period_id, include_details),
            GroupBalanceSummaryDTO,
            lambda: self._build_summary(group_id, current_period, include_details),
            tags,
            self.ttl_seconds,
        )

    async def _build_summary(
        self,
        group_id: str,
        current_period: Optional[Period],
        include_details: bool,
    ) -> GroupBalanceSummaryDTO:
        repo = self.aggregator.aggregate_repo
        period_id = current_period.id if current_period else None

        if period_id:
            members, balances = await asyncio.gather(
                repo.list_members(group_id),
                repo.sum_received_by_user(group_id, period_id),
            )
            meal_counts, total_expenses, group_total_balance = await asyncio.gather(
                repo.count_meals_by_user(group_id, period_id),
                self.aggregator.calculate_total_expenses(group_id, period_id),
                self.aggregator.calculate_group_total_balance(group_id, period_id),
            )
        else:
            # No active period: roster only, every figure is zero
            members = await repo.list_members(group_id)
            balances, meal_counts = {}, {}
            total_expenses = group_total_balance = ZERO

        total_meals = sum(meal_counts.values())
        meal_rate = compute_meal_rate(total_expenses, total_meals)

        rows = []
        for member in members:
            balance = balances.get(member.user_id, ZERO)
            row = MemberBalanceDTO(
                member_id=member.id,
                user_id=member.user_id,
                group_id=member.group_id,
                display_name=member.display_name,
                role=member.role,
                is_current=member.is_current,
                is_banned=member.is_banned,
                joined_at=member.joined_at,
                balance=balance,
            )
            if include_details:
                meal_count = meal_counts.get(member.user_id, 0)
                total_spent = meal_rate * meal_count
                row.available_balance = balance - total_spent
                row.total_spent = total_spent
                row.meal_count = meal_count
                row.meal_rate = meal_rate
            rows.append(row)

        logger.debug(
            f"Built balance summary for group {group_id}: "
            f"{len(rows)} members, period={period_id}"
        )

        return GroupBalanceSummaryDTO(
            group_id=group_id,
            members=rows,
            group_total_balance=group_total_balance,
            total_expenses=total_expenses,
            meal_rate=meal_rate,
            total_meals=total_meals,
            net_group_balance=group_total_balance - total_expenses,
            current_period=PeriodRefDTO.model_validate(current_period) if current_period else None,
        )
