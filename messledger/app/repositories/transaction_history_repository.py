"""Transaction History Repository Interface

Append-only audit log of account transaction mutations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from messledger.domain.account_transaction import TransactionHistory


class TransactionHistoryRepository(ABC):
    """
    Repository interface for TransactionHistory persistence

    History rows are never updated or deleted.
    """

    @abstractmethod
    async def create(self, entry: TransactionHistory) -> TransactionHistory:
        pass

    @abstractmethod
    async def list_by_transaction(self, transaction_id: str) -> List[TransactionHistory]:
        """All history rows for a transaction, newest first"""
        pass

    @abstractmethod
    async def list_for_account(
        self,
        group_id: str,
        user_id: str,
        period_id: Optional[str] = None,
        before_id: Optional[int] = None,
        limit: int = 10,
    ) -> List[TransactionHistory]:
        """
        History rows where the user is source or target, newest first

        Args:
            group_id: Group identifier
            user_id: Member whose account history is listed
            period_id: Optional period filter
            before_id: Cursor; only rows with a smaller id are returned
            limit: Maximum rows to return
        """
        pass
