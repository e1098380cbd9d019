"""Unit tests for LedgerAggregator

Tests cover:
- Zero figures without a period
- Meal rate with and without meals
- Available balance from balance, meal count and rate
- Closing balance of a period
"""

from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from messledger.app.use_cases.ledger.aggregator import LedgerAggregator, compute_meal_rate
from messledger.app.use_cases.ledger.dtos import MealRateDTO


@pytest.fixture
def aggregator(mock_aggregate_repo):
    return LedgerAggregator(mock_aggregate_repo)


class TestComputeMealRate:

    def test_zero_meals_gives_zero_rate(self):
        assert compute_meal_rate(Decimal("500"), 0) == Decimal("0")

    def test_rate_is_expenses_per_meal(self):
        assert compute_meal_rate(Decimal("300"), 30) == Decimal("10")


@pytest.mark.asyncio
class TestWithoutPeriod:

    async def test_every_figure_is_zero(self, aggregator, mock_aggregate_repo):
        assert await aggregator.calculate_balance("user_1", "group_1", None) == Decimal("0")
        assert await aggregator.calculate_group_total_balance("group_1", None) == Decimal("0")
        assert await aggregator.calculate_total_expenses("group_1", None) == Decimal("0")
        assert await aggregator.calculate_user_meal_count("user_1", "group_1", None) == 0

        rate = await aggregator.calculate_meal_rate("group_1", None)
        assert rate.meal_rate == Decimal("0")
        assert rate.total_meals == 0

        mock_aggregate_repo.sum_received.assert_not_called()
        mock_aggregate_repo.count_meals.assert_not_called()


@pytest.mark.asyncio
class TestMealRate:

    async def test_meal_rate_from_aggregates(self, aggregator, mock_aggregate_repo):
        mock_aggregate_repo.count_meals = AsyncMock(return_value=20)
        mock_aggregate_repo.sum_expenses = AsyncMock(return_value=Decimal("200"))

        result = await aggregator.calculate_meal_rate("group_1", "period_1")

        assert result.meal_rate == Decimal("10")
        assert result.total_meals == 20
        assert result.total_expenses == Decimal("200")

    async def test_precalculated_expenses_skip_expense_query(self, aggregator, mock_aggregate_repo):
        mock_aggregate_repo.count_meals = AsyncMock(return_value=4)

        result = await aggregator.calculate_meal_rate(
            "group_1", "period_1", precalculated_expenses=Decimal("100")
        )

        assert result.meal_rate == Decimal("25")
        mock_aggregate_repo.sum_expenses.assert_not_called()

    async def test_expenses_without_meals(self, aggregator, mock_aggregate_repo):
        mock_aggregate_repo.sum_expenses = AsyncMock(return_value=Decimal("500"))

        result = await aggregator.calculate_meal_rate("group_1", "period_1")

        assert result.meal_rate == Decimal("0")
        assert result.total_expenses == Decimal("500")


@pytest.mark.asyncio
class TestAvailableBalance:

    async def test_available_balance_subtracts_meal_cost(self, aggregator, mock_aggregate_repo):
        """
        Given: Group expenses 100 over 10 meals, the user ate 5 and received 100
        When: The available balance is calculated
        Then: Meal rate is 10, spent is 50, available is 50
        """
        mock_aggregate_repo.sum_received = AsyncMock(return_value=Decimal("100"))
        mock_aggregate_repo.sum_expenses = AsyncMock(return_value=Decimal("100"))

        async def count_meals(group_id, period_id, user_id=None):
            return 5 if user_id else 10

        mock_aggregate_repo.count_meals = AsyncMock(side_effect=count_meals)

        result = await aggregator.calculate_available_balance("user_1", "group_1", "period_1")

        assert result.meal_rate == Decimal("10")
        assert result.meal_count == 5
        assert result.total_spent == Decimal("50")
        assert result.available_balance == Decimal("50")

    async def test_supplied_meal_rate_is_reused(self, aggregator, mock_aggregate_repo):
        mock_aggregate_repo.sum_received = AsyncMock(return_value=Decimal("0"))
        mock_aggregate_repo.count_meals = AsyncMock(return_value=3)
        rate = MealRateDTO(meal_rate=Decimal("12"), total_meals=30, total_expenses=Decimal("360"))

        result = await aggregator.calculate_available_balance(
            "user_1", "group_1", "period_1", meal_rate_info=rate
        )

        assert result.available_balance == Decimal("-36")
        mock_aggregate_repo.sum_expenses.assert_not_called()
        mock_aggregate_repo.count_meals.assert_called_once_with("group_1", "period_1", user_id="user_1")

    async def test_query_failure_propagates(self, aggregator, mock_aggregate_repo):
        mock_aggregate_repo.sum_received = AsyncMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError):
            await aggregator.calculate_available_balance("user_1", "group_1", "period_1")


@pytest.mark.asyncio
class TestClosingBalance:

    async def test_opening_plus_deposits_minus_expenses(self, aggregator, mock_aggregate_repo, make_period):
        period = make_period(opening_balance=Decimal("50"), start_date=datetime(2025, 1, 1))
        mock_aggregate_repo.sum_self_deposits = AsyncMock(return_value=Decimal("1000"))
        mock_aggregate_repo.sum_expenses = AsyncMock(return_value=Decimal("800"))

        assert await aggregator.calculate_closing_balance(period) == Decimal("250")
