from .period_repository import SqlAlchemyPeriodRepository
from .group_repository import SqlAlchemyGroupRepository
from .transaction_repository import SqlAlchemyTransactionRepository
from .transaction_history_repository import SqlAlchemyTransactionHistoryRepository
from .ledger_aggregate_repository import SqlAlchemyLedgerAggregateRepository

__all__ = [
    "SqlAlchemyPeriodRepository",
    "SqlAlchemyGroupRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemyTransactionHistoryRepository",
    "SqlAlchemyLedgerAggregateRepository",
]
