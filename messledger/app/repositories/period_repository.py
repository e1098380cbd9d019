"""Period Repository Interface

Defines the contract for meal period persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from messledger.domain.period import Period


class PeriodRepository(ABC):
    """
    Repository interface for Period persistence

    Every read excludes soft-deleted periods. The single-active-period
    invariant is enforced by the store itself, not only by callers.
    """

    @abstractmethod
    async def get_by_id(self, period_id: str, group_id: Optional[str] = None) -> Optional[Period]:
        """
        Retrieve a live period by ID

        Args:
            period_id: Period identifier
            group_id: If given, the period must belong to this group

        Returns:
            Period if found and not deleted, None otherwise
        """
        pass

    @abstractmethod
    async def get_active(self, group_id: str) -> Optional[Period]:
        """Retrieve the group's ACTIVE period, if any"""
        pass

    @abstractmethod
    async def list_by_group(self, group_id: str, include_archived: bool = False) -> List[Period]:
        """
        List a group's periods, newest start first

        Args:
            group_id: Group identifier
            include_archived: When False only ACTIVE, ENDED and LOCKED are returned
        """
        pass

    @abstractmethod
    async def list_in_range(self, group_id: str, range_start: datetime, range_end: datetime) -> List[Period]:
        """List periods that start, end, or span the given range"""
        pass

    @abstractmethod
    async def name_exists(self, group_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        group_id: str,
        start_date: datetime,
        end_date: datetime,
        exclude_id: Optional[str] = None,
    ) -> Optional[Period]:
        """
        Find a closed period whose [start, end] range intersects the given one

        Open-ended periods are never reported.
        """
        pass

    @abstractmethod
    async def get_last_ended(self, group_id: str) -> Optional[Period]:
        """Retrieve the most recently ended period (latest end_date)"""
        pass

    @abstractmethod
    async def create(self, period: Period) -> Period:
        """
        Create a new period

        Raises:
            ActivePeriodExists: If another ACTIVE period won a concurrent race
        """
        pass

    @abstractmethod
    async def update(self, period: Period) -> Period:
        pass

    @abstractmethod
    async def reassign_records(self, from_period_id: str, to_period_id: str) -> int:
        """
        Move every period-scoped child record to another period

        Covers meals, guest meals, shopping items, extra expenses, payments,
        market dates and account transactions.

        Returns:
            Number of rows moved
        """
        pass
