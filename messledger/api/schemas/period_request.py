"""Request schemas for Period API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from messledger.domain.period import PeriodMode, PeriodStatus


class StartPeriodRequestSchema(BaseModel):
    """
    Request schema for starting a period

    Used for POST /groups/{group_id}/periods endpoint.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Period name")

    start_date: datetime = Field(..., description="Inclusive start of the period")

    end_date: Optional[datetime] = Field(default=None, description="Planned end (None = open-ended)")

    opening_balance: Decimal = Field(default=Decimal("0"), description="Balance carried into the period")

    carry_forward: bool = Field(default=False)

    notes: Optional[str] = Field(default=None, max_length=2000)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "January 2025",
                "start_date": "2025-01-01T00:00:00",
                "end_date": "2025-01-31T23:59:59",
                "opening_balance": "0",
                "carry_forward": True,
            }
        }


class EndPeriodRequestSchema(BaseModel):
    """Request schema for ending a period; both fields are optional"""

    end_date: Optional[datetime] = Field(default=None, description="Defaults to now")

    period_id: Optional[str] = Field(default=None, description="Defaults to the active period")


class UnlockPeriodRequestSchema(BaseModel):
    status: PeriodStatus = Field(
        default=PeriodStatus.ENDED,
        description="Status the period takes after unlocking"
    )


class UpdatePeriodRequestSchema(BaseModel):
    """Partial update; omitted fields are left unchanged"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    opening_balance: Optional[Decimal] = None
    carry_forward: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class RestartPeriodRequestSchema(BaseModel):
    new_name: Optional[str] = Field(default=None, min_length=1, max_length=255)

    with_data: bool = Field(
        default=False,
        description="Move meals, expenses, payments and transactions to the new period"
    )


class PeriodModeRequestSchema(BaseModel):
    mode: PeriodMode
