"""Unit tests for RestartPeriod use case"""

from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from messledger.app.use_cases.periods import RestartPeriod
from messledger.app.use_cases.periods.dtos import RestartPeriodCommandDTO
from messledger.domain.errors import ActivePeriodExists, PeriodNotFound
from messledger.domain.period import PeriodStatus


@pytest.fixture
def restart_use_case(mock_uow, mock_period_repo, cache, mock_notifier):
    return RestartPeriod(mock_uow, mock_period_repo, cache, mock_notifier)


@pytest.fixture
def ended_period(make_period):
    return make_period(
        id="period_old",
        name="March",
        status=PeriodStatus.ENDED,
        end_date=datetime(2025, 3, 31),
        closing_balance=Decimal("250"),
        carry_forward=True,
        notes="kitchen fund",
    )


def _command(**overrides):
    values = dict(group_id="group_1", actor_id="user_1", period_id="period_old")
    values.update(overrides)
    return RestartPeriodCommandDTO(**values)


@pytest.mark.asyncio
class TestRestartPeriod:

    async def test_seeds_opening_balance_from_carry_forward(
        self, restart_use_case, mock_period_repo, ended_period
    ):
        mock_period_repo.get_by_id = AsyncMock(return_value=ended_period)

        result = await restart_use_case.execute(_command())

        assert result.name == "March (Restarted)"
        assert result.status == PeriodStatus.ACTIVE
        assert result.opening_balance == Decimal("250")
        assert result.carry_forward is True
        assert result.notes == "kitchen fund"
        assert result.end_date is None

    async def test_without_carry_forward_opens_at_zero(
        self, restart_use_case, mock_period_repo, ended_period
    ):
        ended_period.carry_forward = False
        mock_period_repo.get_by_id = AsyncMock(return_value=ended_period)

        result = await restart_use_case.execute(_command(new_name="April"))

        assert result.name == "April"
        assert result.opening_balance == Decimal("0")

    async def test_with_data_moves_records(self, restart_use_case, mock_period_repo, mock_notifier, ended_period):
        mock_period_repo.get_by_id = AsyncMock(return_value=ended_period)
        mock_period_repo.reassign_records = AsyncMock(return_value=7)

        result = await restart_use_case.execute(_command(with_data=True))

        mock_period_repo.reassign_records.assert_called_once_with("period_old", result.id)
        event = mock_notifier.publish.call_args.args[0]
        assert event.payload["moved_records"] == 7
        assert event.payload["previous_period_id"] == "period_old"

    async def test_without_data_leaves_records(self, restart_use_case, mock_period_repo, ended_period):
        mock_period_repo.get_by_id = AsyncMock(return_value=ended_period)

        await restart_use_case.execute(_command())

        mock_period_repo.reassign_records.assert_not_called()

    async def test_rejected_while_a_period_is_active(
        self, restart_use_case, mock_period_repo, mock_uow, ended_period, make_period
    ):
        mock_period_repo.get_by_id = AsyncMock(return_value=ended_period)
        mock_period_repo.get_active = AsyncMock(return_value=make_period(id="period_now"))

        with pytest.raises(ActivePeriodExists):
            await restart_use_case.execute(_command())

        mock_period_repo.create.assert_not_called()
        mock_uow.rollback.assert_called_once()

    async def test_unknown_period(self, restart_use_case):
        with pytest.raises(PeriodNotFound):
            await restart_use_case.execute(_command())
