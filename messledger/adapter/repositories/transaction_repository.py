"""SQLAlchemy implementation of TransactionRepository

Writes only flush; the owning use case commits so the audit row written
alongside lands in the same database transaction.
"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import or_
from messledger.app.repositories.transaction_repository import TransactionRepository
from messledger.domain.account_transaction import AccountTransaction


class SqlAlchemyTransactionRepository(TransactionRepository):
    """
    SQLAlchemy implementation of TransactionRepository

    Features:
    - Cursor pagination on created_at (newest first)
    - Hard delete of live rows (history is kept separately)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: AccountTransaction) -> AccountTransaction:
        """
        Create a new account transaction

        Args:
            transaction: AccountTransaction entity to persist

        Returns:
            Created AccountTransaction
        """
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_id(self, transaction_id: str) -> Optional[AccountTransaction]:
        stmt = select(AccountTransaction).where(AccountTransaction.id == transaction_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, transaction: AccountTransaction) -> AccountTransaction:
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def delete(self, transaction: AccountTransaction) -> None:
        await self.session.delete(transaction)
        await self.session.flush()

    async def list_for_user(
        self,
        group_id: str,
        user_id: str,
        period_id: str,
        before: Optional[datetime] = None,
        limit: int = 10,
    ) -> List[AccountTransaction]:
        """
        List transactions sent or received by a user, newest first

        Args:
            group_id: Group identifier
            user_id: Member identifier
            period_id: Period to scope to
            before: Cursor (created_at of the last row already returned)
            limit: Maximum rows to return

        Returns:
            List of AccountTransaction
        """
        stmt = select(AccountTransaction).where(
            AccountTransaction.group_id == group_id,
            AccountTransaction.period_id == period_id,
            or_(
                AccountTransaction.user_id == user_id,
                AccountTransaction.target_user_id == user_id,
            ),
        )
        if before is not None:
            stmt = stmt.where(AccountTransaction.created_at < before)

        stmt = stmt.order_by(AccountTransaction.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
