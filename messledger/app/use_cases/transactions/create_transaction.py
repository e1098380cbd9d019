"""CreateTransaction Use Case

Records an account transaction together with its CREATE audit row.
"""

import logging

from messledger.app.repositories.period_repository import PeriodRepository
from messledger.app.repositories.transaction_history_repository import TransactionHistoryRepository
from messledger.app.repositories.transaction_repository import TransactionRepository
from messledger.app.services.cache_service import CacheService, invalidate_transaction_cache
from messledger.app.services.notification_service import (
    LedgerEvent,
    LedgerEventType,
    NotificationService,
)
from messledger.app.services.unit_of_work import UnitOfWork
from messledger.domain.account_transaction import (
    AccountTransaction,
    HistoryAction,
    TransactionHistory,
)
from messledger.domain.errors import PeriodNotFound
from .dtos import CreateTransactionCommandDTO, TransactionDTO

logger = logging.getLogger(__name__)


class CreateTransaction:
    """
    Use Case: Record an account transaction

    Business Rules:
    1. The creator is the source member
    2. Without an explicit period the group's active period is used;
       with no active period the transaction is recorded unscoped
    3. The transaction and its CREATE history row commit together or not at all

    Flow:
    1. Resolve the period
    2. Insert transaction
    3. Insert CREATE history snapshot
    4. Commit, invalidate cached reads, publish TRANSACTION_CREATED
    """

    def __init__(
        self,
        uow: UnitOfWork,
        period_repo: PeriodRepository,
        transaction_repo: TransactionRepository,
        history_repo: TransactionHistoryRepository,
        cache: CacheService,
        notifier: NotificationService,
    ):
        self.uow = uow
        self.period_repo = period_repo
        self.transaction_repo = transaction_repo
        self.history_repo = history_repo
        self.cache = cache
        self.notifier = notifier

    async def execute(self, command: CreateTransactionCommandDTO) -> TransactionDTO:
        """
        Execute transaction creation

        Args:
            command: CreateTransactionCommandDTO

        Returns:
            TransactionDTO of the created transaction

        Raises:
            PeriodNotFound: An explicit period_id does not resolve in the group
        """
        try:
            # Step 1: Resolve the period
            if command.period_id:
                period = await self.period_repo.get_by_id(command.period_id, group_id=command.group_id)
                if not period:
                    raise PeriodNotFound(period_id=command.period_id)
            else:
                period = await self.period_repo.get_active(command.group_id)
            period_id = period.id if period else None

            # Step 2: Insert transaction
            transaction = await self.transaction_repo.create(
                AccountTransaction(
                    group_id=command.group_id,
                    period_id=period_id,
                    created_by=command.created_by,
                    user_id=command.created_by,
                    target_user_id=command.target_user_id,
                    amount=command.amount,
                    type=command.type,
                    description=command.description,
                )
            )

            # Step 3: Audit row in the same transaction
            await self.history_repo.create(
                TransactionHistory.snapshot(transaction, HistoryAction.CREATE, command.created_by)
            )

            # Step 4: Commit both writes
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise

        logger.info(
            f"Transaction created: {transaction.id} amount={transaction.amount} "
            f"{transaction.user_id} -> {transaction.target_user_id} (group={command.group_id})"
        )

        await invalidate_transaction_cache(self.cache, command.group_id, period_id, transaction.id)
        await self.notifier.publish(
            LedgerEvent(
                event_type=LedgerEventType.TRANSACTION_CREATED,
                group_id=command.group_id,
                actor_id=command.created_by,
                period_id=period_id,
                transaction_id=transaction.id,
                payload={
                    "amount": str(transaction.amount),
                    "type": transaction.type.value,
                    "target_user_id": transaction.target_user_id,
                },
            )
        )

        return TransactionDTO.model_validate(transaction)
