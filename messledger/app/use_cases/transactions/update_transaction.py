"""UpdateTransaction / DeleteTransaction Use Cases

Both write the pre-mutation snapshot to the history log before touching the
live row, inside one unit of work.
"""

import logging
from typing import Optional

from messledger.app.repositories.transaction_history_repository import TransactionHistoryRepository
from messledger.app.repositories.transaction_repository import TransactionRepository
from messledger.app.services.cache_service import CacheService, invalidate_transaction_cache
from messledger.app.services.notification_service import (
    LedgerEvent,
    LedgerEventType,
    NotificationService,
)
from messledger.app.services.unit_of_work import UnitOfWork
from messledger.domain.account_transaction import HistoryAction, TransactionHistory
from messledger.domain.errors import TransactionNotFound
from .dtos import TransactionDTO, UpdateTransactionCommandDTO

logger = logging.getLogger(__name__)


class UpdateTransaction:
    """
    Use Case: Update a transaction

    Business Rules:
    1. Only amount, type and description change; source, target and period are fixed
    2. The UPDATE history row holds the values from *before* the update
    """

    def __init__(
        self,
        uow: UnitOfWork,
        transaction_repo: TransactionRepository,
        history_repo: TransactionHistoryRepository,
        cache: CacheService,
        notifier: NotificationService,
    ):
        self.uow = uow
        self.transaction_repo = transaction_repo
        self.history_repo = history_repo
        self.cache = cache
        self.notifier = notifier

    async def execute(self, transaction_id: str, command: UpdateTransactionCommandDTO) -> TransactionDTO:
        """
        Raises:
            TransactionNotFound: Unknown transaction
        """
        try:
            transaction = await self.transaction_repo.get_by_id(transaction_id)
            if not transaction:
                raise TransactionNotFound(transaction_id)

            previous_amount = transaction.amount

            # Snapshot first, then mutate
            await self.history_repo.create(
                TransactionHistory.snapshot(transaction, HistoryAction.UPDATE, command.changed_by)
            )

            transaction.amount = command.amount
            transaction.type = command.type
            if "description" in command.model_fields_set:
                transaction.description = command.description
            updated = await self.transaction_repo.update(transaction)

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(
            f"Transaction updated: {transaction_id} amount {previous_amount} -> {updated.amount} "
            f"by {command.changed_by}"
        )

        await invalidate_transaction_cache(self.cache, updated.group_id, updated.period_id, transaction_id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.TRANSACTION_UPDATED,
                group_id=updated.group_id,
                actor_id=command.changed_by,
                period_id=updated.period_id,
                transaction_id=transaction_id,
                payload={
                    "previous_amount": str(previous_amount),
                    "amount": str(updated.amount),
                    "type": updated.type.value,
                },
            )
        )

        return TransactionDTO.model_validate(updated)


class DeleteTransaction:
    """
    Use Case: Delete a transaction

    The live row is hard-deleted; the DELETE history row keeps its full state.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        transaction_repo: TransactionRepository,
        history_repo: TransactionHistoryRepository,
        cache: CacheService,
        notifier: NotificationService,
    ):
        self.uow = uow
        self.transaction_repo = transaction_repo
        self.history_repo = history_repo
        self.cache = cache
        self.notifier = notifier

    async def execute(self, transaction_id: str, changed_by: str) -> None:
        """
        Raises:
            TransactionNotFound: Unknown transaction
        """
        group_id: Optional[str] = None
        period_id: Optional[str] = None

        try:
            transaction = await self.transaction_repo.get_by_id(transaction_id)
            if not transaction:
                raise TransactionNotFound(transaction_id)

            group_id = transaction.group_id
            period_id = transaction.period_id
            amount = transaction.amount

            await self.history_repo.create(
                TransactionHistory.snapshot(transaction, HistoryAction.DELETE, changed_by)
            )
            await self.transaction_repo.delete(transaction)

            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(f"Transaction deleted: {transaction_id} amount={amount} by {changed_by}")

        await invalidate_transaction_cache(self.cache, group_id, period_id, transaction_id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.TRANSACTION_DELETED,
                group_id=group_id,
                actor_id=changed_by,
                period_id=period_id,
                transaction_id=transaction_id,
                payload={"amount": str(amount)},
            )
        )
