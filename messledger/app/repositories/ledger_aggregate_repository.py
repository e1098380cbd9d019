"""Ledger Aggregate Repository Interface

Set-based aggregates over a group's financial records within one period.
Every method is computed by the database (SUM/COUNT/GROUP BY); rows are
never loaded and reduced in application memory.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional
from messledger.domain.group import GroupMember


class LedgerAggregateRepository(ABC):
    """
    Read-only aggregate queries

    Implementations must tolerate concurrent calls: independent aggregates
    are awaited together by the ledger aggregator.
    """

    @abstractmethod
    async def sum_received(self, user_id: str, group_id: str, period_id: str) -> Decimal:
        """Sum of transaction amounts where the user is the target"""
        pass

    @abstractmethod
    async def sum_received_by_user(self, group_id: str, period_id: str) -> Dict[str, Decimal]:
        """Transaction sums grouped by target user"""
        pass

    @abstractmethod
    async def sum_self_deposits(self, group_id: str, period_id: str) -> Decimal:
        """Sum of transactions whose source and target are the same member"""
        pass

    @abstractmethod
    async def sum_expenses(self, group_id: str, period_id: str) -> Decimal:
        """Sum of extra expense amounts"""
        pass

    @abstractmethod
    async def count_meals(self, group_id: str, period_id: str, user_id: Optional[str] = None) -> int:
        """Number of meal records, optionally for a single user"""
        pass

    @abstractmethod
    async def count_meals_by_user(self, group_id: str, period_id: str) -> Dict[str, int]:
        """Meal counts grouped by user"""
        pass

    @abstractmethod
    async def sum_guest_meals(self, group_id: str, period_id: str) -> int:
        pass

    @abstractmethod
    async def sum_purchased_shopping(self, group_id: str, period_id: str) -> Decimal:
        pass

    @abstractmethod
    async def sum_completed_payments(self, group_id: str, period_id: str) -> Decimal:
        pass

    @abstractmethod
    async def count_active_members(self, group_id: str) -> int:
        """Members that are current and not banned"""
        pass

    @abstractmethod
    async def list_members(self, group_id: str) -> List[GroupMember]:
        pass
