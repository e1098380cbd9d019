from .period_repository import PeriodRepository
from .group_repository import GroupRepository
from .transaction_repository import TransactionRepository
from .transaction_history_repository import TransactionHistoryRepository
from .ledger_aggregate_repository import LedgerAggregateRepository

__all__ = [
    "PeriodRepository",
    "GroupRepository",
    "TransactionRepository",
    "TransactionHistoryRepository",
    "LedgerAggregateRepository",
]
