"""Unit tests for EnsureMonthPeriod and ChangePeriodMode

Tests cover:
- Skipping non-monthly groups
- Creating the month period and seeding its opening balance
- Rolling over a previous month's period
- Losing a concurrent creation race
- Switching period modes
"""

from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from messledger.app.use_cases.periods import ChangePeriodMode, EnsureMonthPeriod
from messledger.app.use_cases.periods.dtos import (
    EnsureMonthPeriodResultDTO,
    MonthPeriodAction,
)
from messledger.domain.errors import ActivePeriodExists, GroupNotFound
from messledger.domain.period import PeriodMode, PeriodStatus

NOW = datetime(2025, 2, 10, 8, 0)


@pytest.fixture
def mock_start_period():
    start = MagicMock()
    start.execute = AsyncMock(return_value=MagicMock(id="period_feb"))
    return start


@pytest.fixture
def mock_end_period():
    end = MagicMock()
    end.execute = AsyncMock(return_value=MagicMock(id="period_jan"))
    return end


@pytest.fixture
def ensure_use_case(mock_period_repo, mock_group_repo, mock_start_period, mock_end_period):
    return EnsureMonthPeriod(
        mock_period_repo,
        mock_group_repo,
        mock_start_period,
        mock_end_period,
        now=lambda: NOW,
    )


@pytest.mark.asyncio
class TestEnsureMonthPeriod:

    async def test_custom_group_is_skipped(self, ensure_use_case, mock_group_repo, mock_start_period, make_group):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group(PeriodMode.CUSTOM))

        result = await ensure_use_case.execute("group_1", "system")

        assert result.action == MonthPeriodAction.SKIPPED
        mock_start_period.execute.assert_not_called()

    async def test_unknown_group(self, ensure_use_case):
        with pytest.raises(GroupNotFound):
            await ensure_use_case.execute("missing", "system")

    async def test_creates_current_month_period(
        self, ensure_use_case, mock_group_repo, mock_start_period, mock_end_period, make_group
    ):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group())

        result = await ensure_use_case.execute("group_1", "system")

        assert result.action == MonthPeriodAction.CREATED
        assert result.created_period_id == "period_feb"
        mock_end_period.execute.assert_not_called()

        command = mock_start_period.execute.call_args.args[0]
        assert command.name == "February 2025"
        assert command.start_date == datetime(2025, 2, 1)
        assert command.end_date is None
        assert command.opening_balance == Decimal("0")

    async def test_current_month_period_left_alone(
        self, ensure_use_case, mock_group_repo, mock_period_repo, mock_start_period, make_group, make_period
    ):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group())
        mock_period_repo.get_active = AsyncMock(return_value=make_period(start_date=datetime(2025, 2, 1)))

        result = await ensure_use_case.execute("group_1", "system")

        assert result.action == MonthPeriodAction.UNCHANGED
        mock_start_period.execute.assert_not_called()

    async def test_rolls_over_previous_month(
        self, ensure_use_case, mock_group_repo, mock_period_repo, mock_end_period, make_group, make_period
    ):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group())
        mock_period_repo.get_active = AsyncMock(
            return_value=make_period(id="period_jan", start_date=datetime(2025, 1, 1))
        )
        mock_period_repo.get_last_ended = AsyncMock(
            return_value=make_period(
                id="period_jan",
                status=PeriodStatus.ENDED,
                carry_forward=True,
                closing_balance=Decimal("75"),
            )
        )

        result = await ensure_use_case.execute("group_1", "system")

        assert result.action == MonthPeriodAction.ROLLED_OVER
        assert result.ended_period_id == "period_jan"
        assert result.created_period_id == "period_feb"

        end_kwargs = mock_end_period.execute.call_args.kwargs
        assert end_kwargs["period_id"] == "period_jan"
        assert end_kwargs["auto_rollover"] is True
        assert end_kwargs["end_date"] == datetime(2025, 1, 31, 23, 59, 59, 999999)

    async def test_carry_forward_seeds_opening_balance(
        self, ensure_use_case, mock_group_repo, mock_period_repo, mock_start_period, make_group, make_period
    ):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group())
        mock_period_repo.get_last_ended = AsyncMock(
            return_value=make_period(
                status=PeriodStatus.ENDED, carry_forward=True, closing_balance=Decimal("75")
            )
        )

        await ensure_use_case.execute("group_1", "system")

        command = mock_start_period.execute.call_args.args[0]
        assert command.opening_balance == Decimal("75")

    async def test_existing_month_name_is_not_recreated(
        self, ensure_use_case, mock_group_repo, mock_period_repo, mock_start_period, make_group
    ):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group())
        mock_period_repo.name_exists = AsyncMock(return_value=True)

        result = await ensure_use_case.execute("group_1", "system")

        assert result.action == MonthPeriodAction.UNCHANGED
        mock_start_period.execute.assert_not_called()

    async def test_lost_race_reports_unchanged(
        self, ensure_use_case, mock_group_repo, mock_start_period, make_group
    ):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group())
        mock_start_period.execute = AsyncMock(side_effect=ActivePeriodExists("period_other", "February 2025"))

        result = await ensure_use_case.execute("group_1", "system")

        assert result.action == MonthPeriodAction.UNCHANGED
        assert result.created_period_id is None


@pytest.fixture
def mock_ensure():
    ensure = MagicMock()
    ensure.execute = AsyncMock(
        return_value=EnsureMonthPeriodResultDTO(group_id="group_1", action=MonthPeriodAction.CREATED)
    )
    return ensure


@pytest.fixture
def change_mode_use_case(mock_uow, mock_group_repo, mock_period_repo, mock_ensure, cache):
    return ChangePeriodMode(mock_uow, mock_group_repo, mock_period_repo, mock_ensure, cache)


@pytest.mark.asyncio
class TestChangePeriodMode:

    async def test_same_mode_is_a_no_op(self, change_mode_use_case, mock_group_repo, mock_uow, make_group):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group(PeriodMode.CUSTOM))

        result = await change_mode_use_case.execute("group_1", "user_1", PeriodMode.CUSTOM)

        assert result.period_mode == PeriodMode.CUSTOM
        mock_group_repo.set_period_mode.assert_not_called()
        mock_uow.commit.assert_not_called()

    async def test_leaving_monthly_with_active_period_rejected(
        self, change_mode_use_case, mock_group_repo, mock_period_repo, make_group, make_period
    ):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group(PeriodMode.MONTHLY))
        mock_period_repo.get_active = AsyncMock(return_value=make_period())

        with pytest.raises(ActivePeriodExists):
            await change_mode_use_case.execute("group_1", "user_1", PeriodMode.CUSTOM)

        mock_group_repo.set_period_mode.assert_not_called()

    async def test_switching_to_monthly_ensures_month_period(
        self, change_mode_use_case, mock_group_repo, mock_ensure, mock_uow, make_group
    ):
        mock_group_repo.get_by_id = AsyncMock(return_value=make_group(PeriodMode.CUSTOM))

        result = await change_mode_use_case.execute("group_1", "user_1", PeriodMode.MONTHLY)

        mock_group_repo.set_period_mode.assert_called_once_with("group_1", PeriodMode.MONTHLY)
        mock_uow.commit.assert_called_once()
        mock_ensure.execute.assert_called_once_with("group_1", "user_1")
        assert result.month_period.action == MonthPeriodAction.CREATED
