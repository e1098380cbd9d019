from .base import BaseModel, generate_uuid
from .period import Period, PeriodStatus, PeriodMode
from .group import Group, GroupMember, MemberRole
from .account_transaction import (
    AccountTransaction,
    TransactionHistory,
    TransactionType,
    HistoryAction,
)
from .records import (
    Meal,
    GuestMeal,
    ShoppingItem,
    ExtraExpense,
    Payment,
    PaymentStatus,
    MarketDate,
    MealType,
)

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Period",
    "PeriodStatus",
    "PeriodMode",
    "Group",
    "GroupMember",
    "MemberRole",
    "AccountTransaction",
    "TransactionHistory",
    "TransactionType",
    "HistoryAction",
    "Meal",
    "GuestMeal",
    "ShoppingItem",
    "ExtraExpense",
    "Payment",
    "PaymentStatus",
    "MarketDate",
    "MealType",
]
