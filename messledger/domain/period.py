"""Meal Period Domain Entity

A time-boxed accounting window for one group. Every meal, expense, payment and
account transaction is recorded against exactly one period.
"""

from calendar import monthrange
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, DateTime, Numeric, String, Text, text
from messledger.domain.base import BaseModel, generate_uuid


class PeriodStatus(str, Enum):
    """Period lifecycle states"""
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    LOCKED = "LOCKED"
    ARCHIVED = "ARCHIVED"


class PeriodMode(str, Enum):
    """How a group's periods are managed"""
    MONTHLY = "MONTHLY"  # One period per calendar month, rolled over automatically
    CUSTOM = "CUSTOM"    # Periods are started and ended manually


# Lifecycle transitions reachable through lock/unlock/archive/end.
# Unlock is the one transition whose target is chosen by the caller.
ALLOWED_TRANSITIONS: dict[PeriodStatus, frozenset[PeriodStatus]] = {
    PeriodStatus.ACTIVE: frozenset({PeriodStatus.ENDED, PeriodStatus.ARCHIVED}),
    PeriodStatus.ENDED: frozenset({PeriodStatus.LOCKED, PeriodStatus.ARCHIVED}),
    PeriodStatus.LOCKED: frozenset(
        {PeriodStatus.ENDED, PeriodStatus.ARCHIVED, PeriodStatus.ACTIVE}
    ),
    PeriodStatus.ARCHIVED: frozenset(
        {PeriodStatus.LOCKED, PeriodStatus.ENDED, PeriodStatus.ACTIVE}
    ),
}


def can_transition(current: PeriodStatus, target: PeriodStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def month_start(moment: datetime) -> datetime:
    return datetime(moment.year, moment.month, 1)


def month_end(moment: datetime) -> datetime:
    _, last_day = monthrange(moment.year, moment.month)
    return datetime(moment.year, moment.month, last_day, 23, 59, 59, 999999)


def month_period_name(moment: datetime) -> str:
    """Name used for automatically created monthly periods, e.g. 'January 2025'"""
    return moment.strftime("%B %Y")


class Period(BaseModel, table=True):
    """
    Meal Period - Accounting window for a group

    Domain Rules:
    - At most one non-deleted ACTIVE period per group (partial unique index)
    - Names are unique among a group's non-deleted periods (auto-suffixed)
    - Closed periods with an end_date never overlap each other
    - Periods are soft-deleted only; financial records keep referencing them
    """

    __tablename__ = "meal_periods"
    __table_args__ = (
        Index("ix_meal_periods_group_status", "group_id", "status"),
        Index("ix_meal_periods_group_start", "group_id", "start_date"),
        Index(
            "uq_meal_periods_one_active_per_group",
            "group_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE' AND deleted_at IS NULL"),
            postgresql_where=text("status = 'ACTIVE' AND deleted_at IS NULL"),
        ),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique period identifier"
    )

    group_id: str = Field(
        index=True,
        description="Owning group"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Display name, unique among the group's live periods"
    )

    start_date: datetime = Field(
        sa_column=Column(DateTime, nullable=False),
        description="Inclusive start of the period"
    )

    end_date: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="End of the period (None while open)"
    )

    status: PeriodStatus = Field(
        default=PeriodStatus.ACTIVE,
        description="Lifecycle status"
    )

    is_locked: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Locked periods accept no further edits"
    )

    opening_balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False, default=0),
        description="Balance carried into the period"
    )

    closing_balance: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 6), nullable=True),
        description="Balance captured when the period ends or is archived"
    )

    carry_forward: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Seed the next period's opening balance from this closing balance"
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    created_by: str = Field(
        description="User who created the period"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Soft-delete timestamp"
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
