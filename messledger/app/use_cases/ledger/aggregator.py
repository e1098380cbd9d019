"""Ledger Aggregator

Per-user and per-group financial aggregates scoped to one period. Every
method takes an already-resolved period id; with no period there is no
balance, so every figure is zero rather than an error.
"""

import asyncio
from decimal import Decimal
from typing import Optional

from messledger.app.repositories.ledger_aggregate_repository import LedgerAggregateRepository
from messledger.domain.period import Period
from .dtos import AvailableBalanceDTO, MealRateDTO

ZERO = Decimal("0")


def compute_meal_rate(total_expenses: Decimal, total_meals: int) -> Decimal:
    """Expenses per meal; zero when no meals were recorded"""
    if total_meals <= 0:
        return ZERO
    return Decimal(total_expenses) / Decimal(total_meals)


class LedgerAggregator:
    """
    Balance computations over database aggregates

    Balance rules:
    - balance(user) = sum of transactions targeting the user
    - meal_rate = total expenses / total meals
    - available(user) = balance(user) - meal_count(user) * meal_rate
    - group total = sum of self-deposits only (transfers net to zero)
    - net group balance = group total - total expenses

    Independent aggregates are awaited together. Query failures propagate.
    """

    def __init__(self, aggregate_repo: LedgerAggregateRepository):
        self.aggregate_repo = aggregate_repo

    async def calculate_balance(self, user_id: str, group_id: str, period_id: Optional[str]) -> Decimal:
        if not period_id:
            return ZERO
        return await self.aggregate_repo.sum_received(user_id, group_id, period_id)

    async def calculate_group_total_balance(self, group_id: str, period_id: Optional[str]) -> Decimal:
        if not period_id:
            return ZERO
        return await self.aggregate_repo.sum_self_deposits(group_id, period_id)

    async def calculate_total_expenses(self, group_id: str, period_id: Optional[str]) -> Decimal:
        if not period_id:
            return ZERO
        return await self.aggregate_repo.sum_expenses(group_id, period_id)

    async def calculate_user_meal_count(self, user_id: str, group_id: str, period_id: Optional[str]) -> int:
        if not period_id:
            return 0
        return await self.aggregate_repo.count_meals(group_id, period_id, user_id=user_id)

    async def calculate_meal_rate(
        self,
        group_id: str,
        period_id: Optional[str],
        precalculated_expenses: Optional[Decimal] = None,
    ) -> MealRateDTO:
        """
        Calculate the period's meal rate

        Args:
            group_id: Group identifier
            period_id: Resolved period id
            precalculated_expenses: Expense total the caller already holds;
                skips the expense aggregate when given

        Returns:
            MealRateDTO with meal_rate, total_meals and total_expenses
        """
        if not period_id:
            return MealRateDTO(meal_rate=ZERO, total_meals=0, total_expenses=ZERO)

        if precalculated_expenses is None:
            total_meals, total_expenses = await asyncio.gather(
                self.aggregate_repo.count_meals(group_id, period_id),
                self.aggregate_repo.sum_expenses(group_id, period_id),
            )
        else:
            total_meals = await self.aggregate_repo.count_meals(group_id, period_id)
            total_expenses = precalculated_expenses

        return MealRateDTO(
            meal_rate=compute_meal_rate(total_expenses, total_meals),
            total_meals=total_meals,
            total_expenses=total_expenses,
        )

    async def calculate_available_balance(
        self,
        user_id: str,
        group_id: str,
        period_id: Optional[str],
        meal_rate_info: Optional[MealRateDTO] = None,
    ) -> AvailableBalanceDTO:
        """
        Calculate what a member has left after paying for their meals

        The meal rate is only aggregated when ``meal_rate_info`` is not supplied.
        """
        if meal_rate_info is not None:
            balance, meal_count = await asyncio.gather(
                self.calculate_balance(user_id, group_id, period_id),
                self.calculate_user_meal_count(user_id, group_id, period_id),
            )
        else:
            balance, meal_count, meal_rate_info = await asyncio.gather(
                self.calculate_balance(user_id, group_id, period_id),
                self.calculate_user_meal_count(user_id, group_id, period_id),
                self.calculate_meal_rate(group_id, period_id),
            )

        total_spent = meal_rate_info.meal_rate * meal_count
        return AvailableBalanceDTO(
            available_balance=balance - total_spent,
            total_spent=total_spent,
            meal_count=meal_count,
            meal_rate=meal_rate_info.meal_rate,
        )

    async def calculate_closing_balance(self, period: Period) -> Decimal:
        """Opening balance plus the period's net group balance"""
        deposits, expenses = await asyncio.gather(
            self.calculate_group_total_balance(period.group_id, period.id),
            self.calculate_total_expenses(period.group_id, period.id),
        )
        return Decimal(period.opening_balance or ZERO) + deposits - expenses
