"""Unit tests for StartPeriod use case

Tests cover:
- Successful start with commit, cache invalidation and event
- Rejection while another period is active
- Date range and overlap validation
- Name collision suffixing
"""

from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from messledger.app.services.cache_service import PERIODS_TAG
from messledger.app.services.notification_service import LedgerEventType
from messledger.app.use_cases.periods import StartPeriod
from messledger.app.use_cases.periods.dtos import StartPeriodCommandDTO
from messledger.domain.errors import ActivePeriodExists, InvalidDateRange, PeriodOverlap
from messledger.domain.period import PeriodStatus


@pytest.fixture
def start_use_case(mock_uow, mock_period_repo, cache, mock_notifier):
    return StartPeriod(mock_uow, mock_period_repo, cache, mock_notifier)


@pytest.fixture
def sample_command():
    return StartPeriodCommandDTO(
        group_id="group_1",
        actor_id="user_1",
        name="January",
        start_date=datetime(2025, 1, 1),
        end_date=datetime(2025, 1, 31),
        opening_balance=Decimal("120"),
        carry_forward=True,
    )


@pytest.mark.asyncio
class TestStartPeriodSuccess:

    async def test_creates_active_period(
        self, start_use_case, mock_period_repo, mock_uow, mock_notifier, sample_command
    ):
        result = await start_use_case.execute(sample_command)

        assert result.status == PeriodStatus.ACTIVE
        assert result.name == "January"
        assert result.opening_balance == Decimal("120")
        assert result.carry_forward is True
        assert result.created_by == "user_1"

        mock_period_repo.create.assert_called_once()
        mock_uow.commit.assert_called_once()
        mock_uow.rollback.assert_not_called()

        event = mock_notifier.publish.call_args.args[0]
        assert event.event_type == LedgerEventType.PERIOD_STARTED
        assert event.period_id == result.id

    async def test_name_collision_gets_suffix(self, start_use_case, mock_period_repo, sample_command):
        mock_period_repo.name_exists = AsyncMock(
            side_effect=lambda group_id, name, exclude_id=None: name == "January"
        )

        result = await start_use_case.execute(sample_command)

        assert result.name == "January (2)"

    async def test_invalidates_cached_period_lists(self, start_use_case, cache, sample_command):
        await cache.set("periods_list", {"periods": []}, 60, tags=[PERIODS_TAG])

        await start_use_case.execute(sample_command)

        assert await cache.get("periods_list") is None


@pytest.mark.asyncio
class TestStartPeriodRejections:

    async def test_active_period_exists(
        self, start_use_case, mock_period_repo, mock_uow, mock_notifier, sample_command, make_period
    ):
        mock_period_repo.get_active = AsyncMock(return_value=make_period(id="p_active", name="December"))

        with pytest.raises(ActivePeriodExists) as exc_info:
            await start_use_case.execute(sample_command)

        assert exc_info.value.period_id == "p_active"
        mock_period_repo.create.assert_not_called()
        mock_uow.rollback.assert_called_once()
        mock_notifier.publish.assert_not_called()

    async def test_invalid_date_range(self, start_use_case, mock_period_repo, sample_command):
        command = sample_command.model_copy(update={"end_date": datetime(2024, 12, 1)})

        with pytest.raises(InvalidDateRange):
            await start_use_case.execute(command)

        mock_period_repo.create.assert_not_called()

    async def test_overlap(self, start_use_case, mock_period_repo, sample_command, make_period):
        mock_period_repo.find_overlapping = AsyncMock(
            return_value=make_period(
                id="p_old",
                status=PeriodStatus.ENDED,
                start_date=datetime(2024, 12, 15),
                end_date=datetime(2025, 1, 10),
            )
        )

        with pytest.raises(PeriodOverlap):
            await start_use_case.execute(sample_command)

        mock_period_repo.create.assert_not_called()

    async def test_store_race_surfaces_as_active_period_exists(
        self, start_use_case, mock_period_repo, mock_uow, sample_command
    ):
        mock_period_repo.create = AsyncMock(side_effect=ActivePeriodExists("p_winner", "January"))

        with pytest.raises(ActivePeriodExists):
            await start_use_case.execute(sample_command)

        mock_uow.commit.assert_not_called()
        mock_uow.rollback.assert_called_once()
