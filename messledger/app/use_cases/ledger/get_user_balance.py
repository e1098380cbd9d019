"""Get User Balance Use Case

Retrieves one member's balance for the group's active period.
"""

import asyncio
from typing import Optional

from messledger.app.repositories.group_repository import GroupRepository
from messledger.app.repositories.period_repository import PeriodRepository
from messledger.domain.errors import GroupNotFound
from messledger.domain.group import MemberRole
from .aggregator import LedgerAggregator
from .dtos import PeriodRefDTO, UserBalanceDTO


class GetUserBalance:
    """
    Use Case: Single member balance

    With ``include_details`` the response also carries the member's meal
    count, the period meal rate, what their meals cost and what is left.
    """

    def __init__(
        self,
        period_repo: PeriodRepository,
        group_repo: GroupRepository,
        aggregator: LedgerAggregator,
    ):
        self.period_repo = period_repo
        self.group_repo = group_repo
        self.aggregator = aggregator

    async def execute(self, group_id: str, user_id: str, include_details: bool = False) -> UserBalanceDTO:
        """
        Raises:
            GroupNotFound: If the user is not a member of the group
        """
        member = await self.group_repo.get_member(group_id, user_id)
        if not member:
            raise GroupNotFound(group_id)

        current_period = await self.period_repo.get_active(group_id)
        period_id: Optional[str] = current_period.id if current_period else None

        response = UserBalanceDTO(
            group_id=group_id,
            user_id=user_id,
            role=member.role or MemberRole.MEMBER,
            balance=0,
            current_period=PeriodRefDTO.model_validate(current_period) if current_period else None,
        )

        if not include_details:
            response.balance = await self.aggregator.calculate_balance(user_id, group_id, period_id)
            return response

        balance, details = await asyncio.gather(
            self.aggregator.calculate_balance(user_id, group_id, period_id),
            self.aggregator.calculate_available_balance(user_id, group_id, period_id),
        )
        response.balance = balance
        response.available_balance = details.available_balance
        response.total_spent = details.total_spent
        response.meal_count = details.meal_count
        response.meal_rate = details.meal_rate
        return response
