"""SQLAlchemy implementation of LedgerAggregateRepository

Every aggregate is a single SUM/COUNT statement computed by the database.
Each call opens its own short-lived session from the session factory so the
aggregator can await independent aggregates concurrently; an AsyncSession
cannot run two statements at once.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
from sqlmodel import select
from sqlalchemy import func
from messledger.app.repositories.ledger_aggregate_repository import LedgerAggregateRepository
from messledger.domain.account_transaction import AccountTransaction
from messledger.domain.group import GroupMember
from messledger.domain.records import ExtraExpense, GuestMeal, Meal, Payment, PaymentStatus, ShoppingItem


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class SqlAlchemyLedgerAggregateRepository(LedgerAggregateRepository):
    """
    SQLAlchemy implementation of LedgerAggregateRepository

    Args:
        session_factory: Callable returning an async session context manager
            (``sessionmaker(class_=AsyncSession)``)
    """

    def __init__(self, session_factory: Callable):
        self.session_factory = session_factory

    async def _scalar(self, stmt) -> Any:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar()

    async def _rows(self, stmt) -> List[Any]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.all())

    async def sum_received(self, user_id: str, group_id: str, period_id: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(AccountTransaction.amount), 0)).where(
            AccountTransaction.group_id == group_id,
            AccountTransaction.period_id == period_id,
            AccountTransaction.target_user_id == user_id,
        )
        return _decimal(await self._scalar(stmt))

    async def sum_received_by_user(self, group_id: str, period_id: str) -> Dict[str, Decimal]:
        stmt = (
            select(AccountTransaction.target_user_id, func.sum(AccountTransaction.amount))
            .where(
                AccountTransaction.group_id == group_id,
                AccountTransaction.period_id == period_id,
            )
            .group_by(AccountTransaction.target_user_id)
        )
        return {user_id: _decimal(total) for user_id, total in await self._rows(stmt)}

    async def sum_self_deposits(self, group_id: str, period_id: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(AccountTransaction.amount), 0)).where(
            AccountTransaction.group_id == group_id,
            AccountTransaction.period_id == period_id,
            AccountTransaction.user_id == AccountTransaction.target_user_id,
        )
        return _decimal(await self._scalar(stmt))

    async def sum_expenses(self, group_id: str, period_id: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(ExtraExpense.amount), 0)).where(
            ExtraExpense.group_id == group_id,
            ExtraExpense.period_id == period_id,
        )
        return _decimal(await self._scalar(stmt))

    async def count_meals(self, group_id: str, period_id: str, user_id: Optional[str] = None) -> int:
        stmt = select(func.count(Meal.id)).where(
            Meal.group_id == group_id,
            Meal.period_id == period_id,
        )
        if user_id:
            stmt = stmt.where(Meal.user_id == user_id)
        return int(await self._scalar(stmt) or 0)

    async def count_meals_by_user(self, group_id: str, period_id: str) -> Dict[str, int]:
        stmt = (
            select(Meal.user_id, func.count(Meal.id))
            .where(Meal.group_id == group_id, Meal.period_id == period_id)
            .group_by(Meal.user_id)
        )
        return {user_id: int(count) for user_id, count in await self._rows(stmt)}

    async def sum_guest_meals(self, group_id: str, period_id: str) -> int:
        stmt = select(func.coalesce(func.sum(GuestMeal.count), 0)).where(
            GuestMeal.group_id == group_id,
            GuestMeal.period_id == period_id,
        )
        return int(await self._scalar(stmt) or 0)

    async def sum_purchased_shopping(self, group_id: str, period_id: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(ShoppingItem.amount), 0)).where(
            ShoppingItem.group_id == group_id,
            ShoppingItem.period_id == period_id,
            ShoppingItem.purchased.is_(True),
        )
        return _decimal(await self._scalar(stmt))

    async def sum_completed_payments(self, group_id: str, period_id: str) -> Decimal:
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.group_id == group_id,
            Payment.period_id == period_id,
            Payment.status == PaymentStatus.COMPLETED,
        )
        return _decimal(await self._scalar(stmt))

    async def count_active_members(self, group_id: str) -> int:
        stmt = select(func.count(GroupMember.id)).where(
            GroupMember.group_id == group_id,
            GroupMember.is_current.is_(True),
            GroupMember.is_banned.is_(False),
        )
        return int(await self._scalar(stmt) or 0)

    async def list_members(self, group_id: str) -> List[GroupMember]:
        stmt = (
            select(GroupMember)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())
