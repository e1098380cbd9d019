"""Unit tests for MonthlyPeriodWorker

Tests cover:
- run_once counting created, rolled over, unchanged and failed groups
- A failing group does not stop the run
- Disabled reconciliation
- Shutdown cleanup
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from messledger.app.use_cases.periods.dtos import EnsureMonthPeriodResultDTO, MonthPeriodAction
from messledger.worker.monthly_period import MonthlyPeriodWorker

NOW = datetime(2025, 3, 1, 0, 5)


@pytest.fixture
def mock_session():
    """Mock async session"""
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    return session


@pytest.fixture
def worker(mock_session, cache, mock_notifier):
    return MonthlyPeriodWorker(
        session_factory=MagicMock(return_value=mock_session),
        cache=cache,
        notifier=mock_notifier,
        actor_id="system",
        now=lambda: NOW,
    )


def _groups(*ids):
    return [MagicMock(id=group_id) for group_id in ids]


def _result(group_id, action):
    return EnsureMonthPeriodResultDTO(group_id=group_id, action=action)


@pytest.mark.asyncio
class TestMonthlyPeriodWorkerRunOnce:

    async def test_counts_outcomes(self, worker):
        outcomes = {
            "g1": _result("g1", MonthPeriodAction.CREATED),
            "g2": _result("g2", MonthPeriodAction.ROLLED_OVER),
            "g3": _result("g3", MonthPeriodAction.UNCHANGED),
        }
        use_case = MagicMock()
        use_case.execute = AsyncMock(side_effect=lambda group_id, actor_id: outcomes[group_id])

        with patch("messledger.worker.monthly_period.SqlAlchemyGroupRepository") as repo_cls, \
                patch.object(worker, "_build_use_case", return_value=use_case):
            repo_cls.return_value.list_by_period_mode = AsyncMock(return_value=_groups("g1", "g2", "g3"))

            result = await worker.run_once()

        assert result.total_groups == 3
        assert result.created == 1
        assert result.rolled_over == 1
        assert result.unchanged == 1
        assert result.failed == 0
        assert result.run_at == NOW
        use_case.execute.assert_any_call("g1", "system")

    async def test_failing_group_is_counted_and_skipped(self, worker):
        async def execute(group_id, actor_id):
            if group_id == "g1":
                raise RuntimeError("database unavailable")
            return _result(group_id, MonthPeriodAction.CREATED)

        use_case = MagicMock()
        use_case.execute = AsyncMock(side_effect=execute)

        with patch("messledger.worker.monthly_period.SqlAlchemyGroupRepository") as repo_cls, \
                patch.object(worker, "_build_use_case", return_value=use_case):
            repo_cls.return_value.list_by_period_mode = AsyncMock(return_value=_groups("g1", "g2"))

            result = await worker.run_once()

        assert result.failed == 1
        assert result.created == 1

    async def test_disabled(self, worker):
        with patch("messledger.worker.monthly_period.ApplicationConfig") as config:
            config.MONTHLY_PERIOD_ENABLED = False

            result = await worker.run_once()

        assert result.total_groups == 0
        worker.async_session_factory.assert_not_called()


@pytest.mark.asyncio
class TestMonthlyPeriodWorkerShutdown:

    async def test_shutdown_closes_cache(self, mock_session, mock_notifier):
        cache = MagicMock()
        cache.close = AsyncMock()
        worker = MonthlyPeriodWorker(
            session_factory=MagicMock(return_value=mock_session),
            cache=cache,
            notifier=mock_notifier,
        )

        await worker.shutdown()

        cache.close.assert_called_once()
