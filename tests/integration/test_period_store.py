"""Integration tests for period lifecycle against a real database

Tests cover:
- Name collision suffixing
- Concurrent starts: exactly one ACTIVE period survives
- Overlap rejection among closed periods
- Soft delete hides a period from every read
- Restart with and without data, opening balance seeding
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest
from sqlmodel import select

from messledger.adapter.repositories.group_repository import SqlAlchemyGroupRepository
from messledger.adapter.repositories.ledger_aggregate_repository import SqlAlchemyLedgerAggregateRepository
from messledger.adapter.repositories.period_repository import SqlAlchemyPeriodRepository
from messledger.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from messledger.app.use_cases.ledger.aggregator import LedgerAggregator
from messledger.app.use_cases.periods import EndPeriod, RestartPeriod, StartPeriod
from messledger.app.use_cases.periods.dtos import RestartPeriodCommandDTO, StartPeriodCommandDTO
from messledger.domain.errors import ActivePeriodExists, PeriodOverlap
from messledger.domain.period import Period, PeriodStatus
from messledger.domain.records import ExtraExpense, Meal


def start_use_case(session, cache, notifier):
    return StartPeriod(SqlAlchemyUnitOfWork(session), SqlAlchemyPeriodRepository(session), cache, notifier)


def end_use_case(session, session_factory, cache, notifier):
    return EndPeriod(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPeriodRepository(session),
        SqlAlchemyGroupRepository(session),
        LedgerAggregator(SqlAlchemyLedgerAggregateRepository(session_factory)),
        cache,
        notifier,
    )


def start_command(name="January", start=datetime(2025, 1, 1), end=None, **extra):
    return StartPeriodCommandDTO(
        group_id="group_1", actor_id="owner", name=name, start_date=start, end_date=end, **extra
    )


@pytest.mark.asyncio
class TestPeriodNames:

    async def test_duplicate_names_are_suffixed(self, db_session, session_factory, seed_group, cache, notifier):
        await seed_group()
        names = []

        for month in (1, 2, 3):
            started = await start_use_case(db_session, cache, notifier).execute(
                start_command(start=datetime(2025, month, 1))
            )
            names.append(started.name)
            await end_use_case(db_session, session_factory, cache, notifier).execute(
                "group_1", "owner", end_date=datetime(2025, month, 20)
            )

        assert names == ["January", "January (2)", "January (3)"]


@pytest.mark.asyncio
class TestSingleActivePeriod:

    @pytest.mark.parametrize("attempts", [2, 6])
    async def test_concurrent_starts_leave_one_active(self, session_factory, seed_group, cache, notifier, attempts):
        await seed_group()

        async def attempt(name):
            async with session_factory() as session:
                return await start_use_case(session, cache, notifier).execute(start_command(name=name))

        results = await asyncio.gather(
            *(attempt(f"Start {n}") for n in range(attempts)), return_exceptions=True
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == attempts - 1
        for failure in failures:
            assert isinstance(failure, ActivePeriodExists)
            assert failure.period_id == successes[0].id

        async with session_factory() as session:
            result = await session.execute(
                select(Period).where(Period.group_id == "group_1", Period.status == PeriodStatus.ACTIVE)
            )
            assert len(result.scalars().all()) == 1

    async def test_second_start_rejected(self, db_session, seed_group, cache, notifier):
        await seed_group()
        await start_use_case(db_session, cache, notifier).execute(start_command())

        with pytest.raises(ActivePeriodExists):
            await start_use_case(db_session, cache, notifier).execute(start_command(name="Other"))


@pytest.mark.asyncio
class TestOverlap:

    async def test_closed_ranges_cannot_overlap(self, db_session, session_factory, seed_group, cache, notifier):
        await seed_group()
        await start_use_case(db_session, cache, notifier).execute(
            start_command(start=datetime(2025, 1, 1), end=datetime(2025, 1, 31))
        )
        await end_use_case(db_session, session_factory, cache, notifier).execute(
            "group_1", "owner", end_date=datetime(2025, 1, 31)
        )

        with pytest.raises(PeriodOverlap):
            await start_use_case(db_session, cache, notifier).execute(
                start_command(name="Late January", start=datetime(2025, 1, 15), end=datetime(2025, 2, 15))
            )

        started = await start_use_case(db_session, cache, notifier).execute(
            start_command(name="February", start=datetime(2025, 2, 1), end=datetime(2025, 2, 28))
        )
        assert started.name == "February"

    async def test_find_overlapping_boundaries(self, db_session, seed_group):
        await seed_group()
        repo = SqlAlchemyPeriodRepository(db_session)
        closed = await repo.create(Period(
            group_id="group_1", name="January", created_by="owner", status=PeriodStatus.ENDED,
            start_date=datetime(2025, 1, 1), end_date=datetime(2025, 1, 31),
        ))
        await repo.create(Period(
            group_id="group_1", name="Open", created_by="owner", start_date=datetime(2025, 6, 1),
        ))
        await db_session.commit()

        touching = await repo.find_overlapping("group_1", datetime(2025, 1, 31), datetime(2025, 2, 28))
        assert touching.id == closed.id
        assert await repo.find_overlapping("group_1", datetime(2025, 2, 1), datetime(2025, 2, 28)) is None
        # Open-ended periods never count as overlapping
        assert await repo.find_overlapping("group_1", datetime(2025, 6, 1), datetime(2025, 6, 30)) is None
        assert await repo.find_overlapping(
            "group_1", datetime(2025, 1, 15), datetime(2025, 2, 15), exclude_id=closed.id
        ) is None


@pytest.mark.asyncio
class TestSoftDelete:

    async def test_deleted_period_is_hidden(self, db_session, seed_group, cache, notifier):
        await seed_group()
        started = await start_use_case(db_session, cache, notifier).execute(start_command())
        repo = SqlAlchemyPeriodRepository(db_session)

        period = await repo.get_by_id(started.id)
        period.deleted_at = datetime.utcnow()
        await repo.update(period)
        await db_session.commit()

        assert await repo.get_by_id(started.id) is None
        assert await repo.get_active("group_1") is None
        assert await repo.list_by_group("group_1", include_archived=True) == []
        assert await repo.name_exists("group_1", "January") is False

        # The row stays for records that still reference it
        row = await db_session.get(Period, started.id)
        assert row is not None


@pytest.mark.asyncio
class TestRestart:

    async def _ended_period(self, db_session, session_factory, cache, notifier, carry_forward):
        started = await start_use_case(db_session, cache, notifier).execute(
            start_command(name="March", start=datetime(2025, 3, 1), carry_forward=carry_forward)
        )
        db_session.add(ExtraExpense(group_id="group_1", period_id=started.id, user_id="owner", amount=Decimal("50")))
        db_session.add(Meal(group_id="group_1", period_id=started.id, user_id="owner"))
        await db_session.commit()
        return started

    async def test_restart_with_data_moves_records(self, db_session, session_factory, seed_group, cache, notifier):
        await seed_group()
        original = await self._ended_period(db_session, session_factory, cache, notifier, carry_forward=False)
        await end_use_case(db_session, session_factory, cache, notifier).execute(
            "group_1", "owner", end_date=datetime(2025, 3, 31)
        )

        restarted = await RestartPeriod(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemyPeriodRepository(db_session), cache, notifier
        ).execute(
            RestartPeriodCommandDTO(group_id="group_1", actor_id="owner", period_id=original.id, with_data=True)
        )

        assert restarted.name == "March (Restarted)"
        assert restarted.opening_balance == Decimal("0")
        aggregates = SqlAlchemyLedgerAggregateRepository(session_factory)
        assert await aggregates.count_meals("group_1", restarted.id) == 1
        assert await aggregates.sum_expenses("group_1", restarted.id) == Decimal("50")
        assert await aggregates.count_meals("group_1", original.id) == 0

    async def test_restart_seeds_opening_balance(self, db_session, session_factory, seed_group, cache, notifier):
        """
        Given: An ended period with carry_forward and closing balance 250
        When: It is restarted
        Then: The new period opens at 250; without carry_forward it opens at 0
        """
        await seed_group()
        original = await self._ended_period(db_session, session_factory, cache, notifier, carry_forward=True)
        ended = await end_use_case(db_session, session_factory, cache, notifier).execute(
            "group_1", "owner", end_date=datetime(2025, 3, 31)
        )
        period = await SqlAlchemyPeriodRepository(db_session).get_by_id(ended.id)
        period.closing_balance = Decimal("250")
        await SqlAlchemyPeriodRepository(db_session).update(period)
        await db_session.commit()

        restarted = await RestartPeriod(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemyPeriodRepository(db_session), cache, notifier
        ).execute(RestartPeriodCommandDTO(group_id="group_1", actor_id="owner", period_id=original.id))

        assert restarted.opening_balance == Decimal("250")
        assert restarted.carry_forward is True
