"""Data Transfer Objects for Ledger Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from messledger.domain.group import MemberRole
from messledger.domain.period import PeriodStatus


class MealRateDTO(BaseModel):
    """Meal rate of a period: total expenses spread over total meals"""

    meal_rate: Decimal = Field(..., description="total_expenses / total_meals (0 without meals)")
    total_meals: int
    total_expenses: Decimal


class AvailableBalanceDTO(BaseModel):
    """A member's balance after subtracting what their meals cost"""

    available_balance: Decimal
    total_spent: Decimal
    meal_count: int
    meal_rate: Decimal


class PeriodRefDTO(BaseModel):
    """Compact view of the period a balance was computed for"""

    id: str
    name: str
    start_date: datetime
    end_date: Optional[datetime] = None
    status: PeriodStatus
    is_locked: bool

    class Config:
        from_attributes = True


class MemberBalanceDTO(BaseModel):
    """One row of the group balance roster"""

    member_id: str
    user_id: str
    group_id: str
    display_name: Optional[str] = None
    role: MemberRole
    is_current: bool
    is_banned: bool
    joined_at: Optional[datetime] = None
    balance: Decimal
    available_balance: Optional[Decimal] = None
    total_spent: Optional[Decimal] = None
    meal_count: Optional[int] = None
    meal_rate: Optional[Decimal] = None


class GroupBalanceSummaryDTO(BaseModel):
    """
    Response DTO for the group balance summary

    Group totals are computed for the active period only.
    """

    group_id: str
    members: List[MemberBalanceDTO]
    group_total_balance: Decimal
    total_expenses: Decimal
    meal_rate: Decimal
    total_meals: int
    net_group_balance: Decimal
    current_period: Optional[PeriodRefDTO] = None


class UserBalanceDTO(BaseModel):
    """Response DTO for a single member's balance"""

    group_id: str
    user_id: str
    role: MemberRole
    balance: Decimal
    available_balance: Optional[Decimal] = None
    total_spent: Optional[Decimal] = None
    meal_count: Optional[int] = None
    meal_rate: Optional[Decimal] = None
    current_period: Optional[PeriodRefDTO] = None
