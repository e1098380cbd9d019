"""
Transaction read use cases

ListTransactions, GetTransaction, GetTransactionHistory and GetAccountHistory.
"""
from datetime import datetime
from typing import Optional

from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.repositories.transaction_history_repository import TransactionHistoryRepository
from messledger.app.repositories.transaction_repository import TransactionRepository
from messledger.app.services.cache_service import (
    CacheService,
    cache_key,
    group_tag,
    period_tag,
    transaction_tag,
)
from messledger.domain.errors import TransactionNotFound
from .dtos import (
    HistoryPageDTO,
    TransactionDTO,
    TransactionHistoryDTO,
    TransactionHistoryListDTO,
    TransactionPageDTO,
)

MAX_PAGE_SIZE = 100


class ListTransactions:
    """
    Use case: List a member's transactions

    Transactions the member sent or received in the given period (the
    group's active period by default), newest first. The cursor is the
    created_at of the last transaction of the previous page.
    """

    def __init__(
        self,
        period_repo: PeriodRepository,
        transaction_repo: TransactionRepository,
        cache: CacheService,
        ttl_seconds: int = 30,
    ):
        self.period_repo = period_repo
        self.transaction_repo = transaction_repo
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def execute(
        self,
        group_id: str,
        user_id: str,
        period_id: Optional[str] = None,
        cursor: Optional[datetime] = None,
        limit: int = 10,
    ) -> TransactionPageDTO:
        """
        List transactions for a member with cursor pagination.

        Args:
            group_id: Group identifier
            user_id: Member identifier
            period_id: Period to list (default: active period)
            cursor: created_at of the last item already seen
            limit: Page size (capped at 100)

        Returns:
            TransactionPageDTO, empty when no period resolves
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        if not period_id:
            active = await self.period_repo.get_active(group_id)
            period_id = active.id if active else None
        if not period_id:
            return TransactionPageDTO(items=[], next_cursor=None)

        async def load() -> TransactionPageDTO:
            rows = await self.transaction_repo.list_for_user(
                group_id, user_id, period_id, before=cursor, limit=limit + 1
            )
            page = rows[:limit]
            next_cursor = page[-1].created_at if len(rows) > limit else None
            return TransactionPageDTO(
                items=[TransactionDTO.model_validate(txn) for txn in page],
                next_cursor=next_cursor,
            )

        return await self.cache.get_or_load(
            cache_key("transactions", group_id, user_id, period_id, cursor.isoformat() if cursor else "-", limit),
            TransactionPageDTO,
            load,
            [group_tag(group_id), period_tag(period_id)],
            self.ttl_seconds,
        )


class GetTransaction:
    """Use case: One live transaction"""

    def __init__(self, transaction_repo: TransactionRepository):
        self.transaction_repo = transaction_repo

    async def execute(self, transaction_id: str) -> TransactionDTO:
        transaction = await self.transaction_repo.get_by_id(transaction_id)
        if not transaction:
            raise TransactionNotFound(transaction_id)
        return TransactionDTO.model_validate(transaction)


class GetTransactionHistory:
    """
    Use case: Audit trail of one transaction, newest first

    Works for deleted transactions too; an id with no history at all is
    reported as not found.
    """

    def __init__(self, history_repo: TransactionHistoryRepository, cache: CacheService, ttl_seconds: int = 30):
        self.history_repo = history_repo
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def execute(self, transaction_id: str) -> TransactionHistoryListDTO:
        async def load() -> TransactionHistoryListDTO:
            rows = await self.history_repo.list_by_transaction(transaction_id)
            if not rows:
                raise TransactionNotFound(transaction_id)
            return TransactionHistoryListDTO(
                items=[TransactionHistoryDTO.model_validate(row) for row in rows]
            )

        return await self.cache.get_or_load(
            cache_key("transaction_history", None, None, None, transaction_id),
            TransactionHistoryListDTO,
            load,
            [transaction_tag(transaction_id)],
            self.ttl_seconds,
        )


class GetAccountHistory:
    """
    Use case: Audit rows where a member is source or target

    Paginated by history id, newest first.
    """

    def __init__(self, history_repo: TransactionHistoryRepository, cache: CacheService, ttl_seconds: int = 30):
        self.history_repo = history_repo
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def execute(
        self,
        group_id: str,
        user_id: str,
        period_id: Optional[str] = None,
        cursor: Optional[int] = None,
        limit: int = 10,
    ) -> HistoryPageDTO:
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        async def load() -> HistoryPageDTO:
            rows = await self.history_repo.list_for_account(
                group_id, user_id, period_id=period_id, before_id=cursor, limit=limit + 1
            )
            page = rows[:limit]
            next_cursor = page[-1].id if len(rows) > limit else None
            return HistoryPageDTO(
                items=[TransactionHistoryDTO.model_validate(row) for row in page],
                next_cursor=next_cursor,
            )

        tags = [group_tag(group_id)]
        if period_id:
            tags.append(period_tag(period_id))

        return await self.cache.get_or_load(
            cache_key("account_history", group_id, user_id, period_id, cursor, limit),
            HistoryPageDTO,
            load,
            tags,
            self.ttl_seconds,
        )
