"""Integration tests for balance aggregates over real SQL

Scenario in one period:
- alice deposits 500 to herself, bob deposits 300 to himself
- owner transfers 100 to alice
- alice eats 3 meals, bob 2; extra expenses total 50 (meal rate 10)
"""

from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio

from messledger.adapter.repositories.group_repository import SqlAlchemyGroupRepository
from messledger.adapter.repositories.ledger_aggregate_repository import SqlAlchemyLedgerAggregateRepository
from messledger.adapter.repositories.period_repository import SqlAlchemyPeriodRepository
from messledger.app.use_cases.ledger import GetGroupBalanceSummary, GetUserBalance
from messledger.app.use_cases.ledger.aggregator import LedgerAggregator
from messledger.domain.account_transaction import AccountTransaction, TransactionType
from messledger.domain.group import MemberRole
from messledger.domain.period import Period, PeriodStatus
from messledger.domain.records import ExtraExpense, Meal


def _transaction(period_id, source, target, amount):
    return AccountTransaction(
        group_id="group_1",
        period_id=period_id,
        created_by=source,
        user_id=source,
        target_user_id=target,
        amount=Decimal(amount),
        type=TransactionType.PAYMENT,
    )


@pytest_asyncio.fixture
async def ledger(db_session, seed_group):
    await seed_group(roles={
        "owner": MemberRole.OWNER,
        "alice": MemberRole.MEMBER,
        "bob": MemberRole.MEMBER,
    })
    period = Period(
        group_id="group_1",
        name="January 2025",
        start_date=datetime(2025, 1, 1),
        status=PeriodStatus.ACTIVE,
        opening_balance=Decimal("20"),
        created_by="owner",
    )
    db_session.add(period)
    await db_session.commit()

    db_session.add_all([
        _transaction(period.id, "alice", "alice", "500"),
        _transaction(period.id, "bob", "bob", "300"),
        _transaction(period.id, "owner", "alice", "100"),
        *[Meal(group_id="group_1", period_id=period.id, user_id="alice") for _ in range(3)],
        *[Meal(group_id="group_1", period_id=period.id, user_id="bob") for _ in range(2)],
        ExtraExpense(group_id="group_1", period_id=period.id, user_id="owner", amount=Decimal("30")),
        ExtraExpense(group_id="group_1", period_id=period.id, user_id="owner", amount=Decimal("20")),
        # Other groups and unscoped rows never leak in
        Meal(group_id="group_2", period_id=period.id, user_id="alice"),
        _transaction(None, "alice", "alice", "999"),
    ])
    await db_session.commit()
    return period


@pytest.fixture
def aggregator(session_factory):
    return LedgerAggregator(SqlAlchemyLedgerAggregateRepository(session_factory))


@pytest.mark.asyncio
class TestAggregator:

    async def test_balance_includes_transfers_received(self, aggregator, ledger):
        assert await aggregator.calculate_balance("alice", "group_1", ledger.id) == Decimal("600")
        assert await aggregator.calculate_balance("owner", "group_1", ledger.id) == Decimal("0")

    async def test_group_total_excludes_transfers(self, aggregator, ledger):
        assert await aggregator.calculate_group_total_balance("group_1", ledger.id) == Decimal("800")

    async def test_meal_rate(self, aggregator, ledger):
        rate = await aggregator.calculate_meal_rate("group_1", ledger.id)

        assert rate.total_meals == 5
        assert rate.total_expenses == Decimal("50")
        assert rate.meal_rate == Decimal("10")

    async def test_available_balance(self, aggregator, ledger):
        result = await aggregator.calculate_available_balance("alice", "group_1", ledger.id)

        assert result.meal_count == 3
        assert result.total_spent == Decimal("30")
        assert result.available_balance == Decimal("570")

    async def test_closing_balance(self, aggregator, ledger):
        # 20 opening + 800 deposits - 50 expenses
        assert await aggregator.calculate_closing_balance(ledger) == Decimal("770")


@pytest.mark.asyncio
class TestBalanceUseCases:

    async def test_group_summary(self, db_session, aggregator, cache, ledger):
        use_case = GetGroupBalanceSummary(SqlAlchemyPeriodRepository(db_session), aggregator, cache)

        summary = await use_case.execute("group_1", "owner", include_details=True)

        by_user = {row.user_id: row for row in summary.members}
        assert set(by_user) == {"owner", "alice", "bob"}
        assert by_user["alice"].balance == Decimal("600")
        assert by_user["bob"].available_balance == Decimal("280")
        assert summary.group_total_balance == Decimal("800")
        assert summary.net_group_balance == Decimal("750")
        assert summary.current_period.id == ledger.id

    async def test_user_balance_details(self, db_session, aggregator, ledger):
        use_case = GetUserBalance(
            SqlAlchemyPeriodRepository(db_session),
            SqlAlchemyGroupRepository(db_session),
            aggregator,
        )

        balance = await use_case.execute("group_1", "bob", include_details=True)

        assert balance.balance == Decimal("300")
        assert balance.meal_count == 2
        assert balance.meal_rate == Decimal("10")
        assert balance.role == MemberRole.MEMBER

    async def test_no_active_period_is_all_zero(self, db_session, aggregator, cache, seed_group):
        await seed_group(roles={"owner": MemberRole.OWNER, "alice": MemberRole.MEMBER})
        use_case = GetGroupBalanceSummary(SqlAlchemyPeriodRepository(db_session), aggregator, cache)

        summary = await use_case.execute("group_1", "owner")

        assert summary.current_period is None
        assert summary.group_total_balance == Decimal("0")
        assert [row.balance for row in summary.members] == [Decimal("0"), Decimal("0")]
