"""Period lifecycle use cases"""
from .start_period import StartPeriod
from .end_period import EndPeriod
from .lock_period import LockPeriod, UnlockPeriod
from .archive_period import ArchivePeriod
from .update_period import UpdatePeriod, DeletePeriod
from .restart_period import RestartPeriod
from .ensure_month_period import EnsureMonthPeriod
from .change_period_mode import ChangePeriodMode
from .get_periods import GetPeriods, GetCurrentPeriod, GetPeriod, GetPeriodsByMonth
from .get_period_summary import GetPeriodSummary
from .dtos import (
    StartPeriodCommandDTO,
    UpdatePeriodCommandDTO,
    RestartPeriodCommandDTO,
    PeriodDTO,
    PeriodListDTO,
    PeriodSummaryDTO,
    PeriodModeDTO,
    MonthPeriodAction,
    EnsureMonthPeriodResultDTO,
    MonthlyPeriodRunResultDTO,
)

__all__ = [
    "StartPeriod",
    "EndPeriod",
    "LockPeriod",
    "UnlockPeriod",
    "ArchivePeriod",
    "UpdatePeriod",
    "DeletePeriod",
    "RestartPeriod",
    "EnsureMonthPeriod",
    "ChangePeriodMode",
    "GetPeriods",
    "GetCurrentPeriod",
    "GetPeriod",
    "GetPeriodsByMonth",
    "GetPeriodSummary",
    "StartPeriodCommandDTO",
    "UpdatePeriodCommandDTO",
    "RestartPeriodCommandDTO",
    "PeriodDTO",
    "PeriodListDTO",
    "PeriodSummaryDTO",
    "PeriodModeDTO",
    "MonthPeriodAction",
    "EnsureMonthPeriodResultDTO",
    "MonthlyPeriodRunResultDTO",
]
