"""Account Transaction Repository Interface

Defines the contract for ledger entry persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from messledger.domain.account_transaction import AccountTransaction


class TransactionRepository(ABC):
    """
    Repository interface for AccountTransaction persistence

    Writes only flush; the caller commits the unit of work so that the
    matching history row lands in the same database transaction.
    """

    @abstractmethod
    async def create(self, transaction: AccountTransaction) -> AccountTransaction:
        pass

    @abstractmethod
    async def get_by_id(self, transaction_id: str) -> Optional[AccountTransaction]:
        pass

    @abstractmethod
    async def update(self, transaction: AccountTransaction) -> AccountTransaction:
        pass

    @abstractmethod
    async def delete(self, transaction: AccountTransaction) -> None:
        """Hard-delete the live row"""
        pass

    @abstractmethod
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
            user_id: Member whose transactions are listed
            period_id: Period to scope to
            before: Only transactions created strictly before this instant
            limit: Maximum rows to return
        """
        pass
