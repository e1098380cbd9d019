"""Group Repository Interface

Read access to groups and membership, plus the period-mode flag.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from messledger.domain.group import Group, GroupMember
from messledger.domain.period import PeriodMode


class GroupRepository(ABC):

    @abstractmethod
    async def get_by_id(self, group_id: str) -> Optional[Group]:
        pass

    @abstractmethod
    async def get_member(self, group_id: str, user_id: str) -> Optional[GroupMember]:
        """Retrieve a user's membership in a group"""
        pass

    @abstractmethod
    async def list_by_period_mode(self, mode: PeriodMode) -> List[Group]:
        """
        List groups using the given period mode

        Used by the monthly period worker to find groups to reconcile.
        """
        pass

    @abstractmethod
    async def set_period_mode(self, group_id: str, mode: PeriodMode) -> None:
        pass
