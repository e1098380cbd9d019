"""Balance and aggregate use cases"""
from .aggregator import LedgerAggregator, compute_meal_rate
from .get_group_balance_summary import GetGroupBalanceSummary
from .get_user_balance import GetUserBalance
from .dtos import (
    MealRateDTO,
    AvailableBalanceDTO,
    PeriodRefDTO,
    MemberBalanceDTO,
    GroupBalanceSummaryDTO,
    UserBalanceDTO,
)

__all__ = [
    "LedgerAggregator",
    "compute_meal_rate",
    "GetGroupBalanceSummary",
    "GetUserBalance",
    "MealRateDTO",
    "AvailableBalanceDTO",
    "PeriodRefDTO",
    "MemberBalanceDTO",
    "GroupBalanceSummaryDTO",
    "UserBalanceDTO",
]
