"""Background workers for the mess ledger"""
from .monthly_period import MonthlyPeriodWorker

__all__ = ["MonthlyPeriodWorker"]
