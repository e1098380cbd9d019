"""Account transaction use cases"""
from .create_transaction import CreateTransaction
from .update_transaction import UpdateTransaction, DeleteTransaction
from .list_transactions import (
    ListTransactions,
    GetTransaction,
    GetTransactionHistory,
    GetAccountHistory,
)
from .dtos import (
    CreateTransactionCommandDTO,
    UpdateTransactionCommandDTO,
    TransactionDTO,
    TransactionHistoryDTO,
    TransactionPageDTO,
    TransactionHistoryListDTO,
    HistoryPageDTO,
)

__all__ = [
    "CreateTransaction",
    "UpdateTransaction",
    "DeleteTransaction",
    "ListTransactions",
    "GetTransaction",
    "GetTransactionHistory",
    "GetAccountHistory",
    "CreateTransactionCommandDTO",
    "UpdateTransactionCommandDTO",
    "TransactionDTO",
    "TransactionHistoryDTO",
    "TransactionPageDTO",
    "TransactionHistoryListDTO",
    "HistoryPageDTO",
]
