"""SQLAlchemy implementation of TransactionHistoryRepository

Append-only: rows are inserted and read, never updated or deleted.
"""

from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import or_
from messledger.app.repositories.transaction_history_repository import TransactionHistoryRepository
from messledger.domain.account_transaction import TransactionHistory


class SqlAlchemyTransactionHistoryRepository(TransactionHistoryRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: TransactionHistory) -> TransactionHistory:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def list_by_transaction(self, transaction_id: str) -> List[TransactionHistory]:
        stmt = (
            select(TransactionHistory)
            .where(TransactionHistory.transaction_id == transaction_id)
            .order_by(TransactionHistory.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_account(
        self,
        group_id: str,
        user_id: str,
        period_id: Optional[str] = None,
        before_id: Optional[int] = None,
        limit: int = 10,
    ) -> List[TransactionHistory]:
        stmt = select(TransactionHistory).where(
            TransactionHistory.group_id == group_id,
            or_(
                TransactionHistory.user_id == user_id,
                TransactionHistory.target_user_id == user_id,
            ),
        )
        if period_id:
            stmt = stmt.where(TransactionHistory.period_id == period_id)
        if before_id is not None:
            stmt = stmt.where(TransactionHistory.id < before_id)

        stmt = stmt.order_by(TransactionHistory.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
