"""Financial Source Records

Meals, guest meals, shopping, extra expenses, payments and market dates are
owned by sibling subsystems. The ledger only aggregates them per period and,
on a restart with data, reassigns them to a new period.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, Integer, Numeric, String
from messledger.domain.base import BaseModel, generate_uuid


class MealType(str, Enum):
    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Meal(BaseModel, table=True):
    __tablename__ = "meals"
    __table_args__ = (
        Index("ix_meals_group_period_user", "group_id", "period_id", "user_id"),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    group_id: str
    period_id: Optional[str] = Field(default=None)
    user_id: str
    type: MealType = Field(default=MealType.LUNCH)
    date: datetime = Field(default_factory=datetime.utcnow)


class GuestMeal(BaseModel, table=True):
    __tablename__ = "guest_meals"
    __table_args__ = (
        Index("ix_guest_meals_group_period", "group_id", "period_id"),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    group_id: str
    period_id: Optional[str] = Field(default=None)
    user_id: str
    count: int = Field(default=1, sa_column=Column(Integer, nullable=False, default=1))
    date: datetime = Field(default_factory=datetime.utcnow)


class ShoppingItem(BaseModel, table=True):
    __tablename__ = "shopping_items"
    __table_args__ = (
        Index("ix_shopping_items_group_period", "group_id", "period_id"),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    group_id: str
    period_id: Optional[str] = Field(default=None)
    user_id: str
    name: str = Field(sa_column=Column(String(255), nullable=False))
    amount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False, default=0),
        description="Amount spent on the item"
    )
    purchased: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
    )
    date: datetime = Field(default_factory=datetime.utcnow)


class ExtraExpense(BaseModel, table=True):
    __tablename__ = "extra_expenses"
    __table_args__ = (
        Index("ix_extra_expenses_group_period", "group_id", "period_id"),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    group_id: str
    period_id: Optional[str] = Field(default=None)
    user_id: str
    description: Optional[str] = Field(default=None)
    amount: Decimal = Field(sa_column=Column(Numeric(18, 6), nullable=False))
    date: datetime = Field(default_factory=datetime.utcnow)


class Payment(BaseModel, table=True):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_group_period", "group_id", "period_id"),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    group_id: str
    period_id: Optional[str] = Field(default=None)
    user_id: str
    amount: Decimal = Field(sa_column=Column(Numeric(18, 6), nullable=False))
    status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    date: datetime = Field(default_factory=datetime.utcnow)


class MarketDate(BaseModel, table=True):
    __tablename__ = "market_dates"

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    group_id: str = Field(index=True)
    period_id: Optional[str] = Field(default=None)
    user_id: str
    date: datetime
    completed: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
    )


# Child records that follow a period when it is restarted with its data.
PERIOD_SCOPED_RECORDS = (Meal, GuestMeal, ShoppingItem, ExtraExpense, Payment, MarketDate)
