"""Data Transfer Objects for Period Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from messledger.domain.period import PeriodMode, PeriodStatus


class StartPeriodCommandDTO(BaseModel):
    """
    Command DTO for starting a period

    Used as input to StartPeriod use case.
    """

    group_id: str = Field(..., description="Group identifier")

    actor_id: str = Field(..., description="User starting the period")

    name: str = Field(..., min_length=1, max_length=255, description="Period name")

    start_date: datetime = Field(..., description="Inclusive start of the period")

    end_date: Optional[datetime] = Field(
        default=None,
        description="Planned end of the period (None = open-ended)"
    )

    opening_balance: Decimal = Field(
        default=Decimal("0"),
        description="Balance carried into the period"
    )

    carry_forward: bool = Field(
        default=False,
        description="Seed the next period from this one's closing balance"
    )

    notes: Optional[str] = Field(default=None)

    class Config:
        json_schema_extra = {
            "example": {
                "group_id": "grp_123",
                "actor_id": "user_456",
                "name": "January 2025",
                "start_date": "2025-01-01T00:00:00",
                "end_date": None,
                "opening_balance": "0",
                "carry_forward": True,
            }
        }


class UpdatePeriodCommandDTO(BaseModel):
    """
    Command DTO for a partial period update

    Only fields explicitly set are applied.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    opening_balance: Optional[Decimal] = None
    carry_forward: Optional[bool] = None
    notes: Optional[str] = None


class PeriodDTO(BaseModel):
    """Response DTO for a single period"""

    id: str
    group_id: str
    name: str
    start_date: datetime
    end_date: Optional[datetime] = None
    status: PeriodStatus
    is_locked: bool
    opening_balance: Decimal
    closing_balance: Optional[Decimal] = None
    carry_forward: bool
    notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PeriodListDTO(BaseModel):
    """Response DTO for a list of periods"""

    periods: List[PeriodDTO]


class PeriodSummaryDTO(BaseModel):
    """
    Response DTO for a period summary

    Period attributes plus the period's financial and meal totals.
    """

    id: str
    name: str
    start_date: datetime
    end_date: Optional[datetime] = None
    status: PeriodStatus
    is_locked: bool
    total_meals: int
    total_guest_meals: int
    total_shopping_amount: Decimal
    total_payments: Decimal
    total_extra_expenses: Decimal
    active_member_count: int
    opening_balance: Decimal
    closing_balance: Optional[Decimal] = None
    carry_forward: bool


class MonthPeriodAction(str, Enum):
    """Outcome of a monthly period reconciliation"""
    SKIPPED = "skipped"          # Group is not in MONTHLY mode
    UNCHANGED = "unchanged"      # Current month already has its period
    CREATED = "created"          # New month period created
    ROLLED_OVER = "rolled_over"  # Previous month ended and new month created


class EnsureMonthPeriodResultDTO(BaseModel):
    """Response DTO for EnsureMonthPeriod"""

    group_id: str
    action: MonthPeriodAction
    ended_period_id: Optional[str] = None
    created_period_id: Optional[str] = None


class MonthlyPeriodRunResultDTO(BaseModel):
    """Summary of one monthly period worker run"""

    total_groups: int
    created: int
    rolled_over: int
    unchanged: int
    failed: int
    run_at: datetime
    execution_time_ms: int


class RestartPeriodCommandDTO(BaseModel):
    """Command DTO for restarting an ended or archived period"""

    group_id: str
    actor_id: str
    period_id: str
    new_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    with_data: bool = Field(
        default=False,
        description="Move every child record of the old period to the new one"
    )


class PeriodModeDTO(BaseModel):
    """Response DTO for ChangePeriodMode"""

    group_id: str
    period_mode: PeriodMode
    month_period: Optional[EnsureMonthPeriodResultDTO] = None
