"""Transaction API Routes

Recording, correcting and auditing account transactions.
"""

from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from messledger.adapter.repositories.period_repository import SqlAlchemyPeriodRepository
from messledger.adapter.repositories.transaction_history_repository import SqlAlchemyTransactionHistoryRepository
from messledger.adapter.repositories.transaction_repository import SqlAlchemyTransactionRepository
from messledger.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from messledger.api.permissions import (
    BALANCE_ROLES,
    TRANSACTION_DELETE_ROLES,
    authorize,
    can_view_balances,
    get_current_user_id,
    require_member,
)
from messledger.api.schemas.transaction_request import (
    CreateTransactionRequestSchema,
    UpdateTransactionRequestSchema,
)
from messledger.app.services.cache_service import CacheService
from messledger.app.services.notification_service import NotificationService
from messledger.app.use_cases.transactions import (
    CreateTransaction,
    CreateTransactionCommandDTO,
    DeleteTransaction,
    GetAccountHistory,
    GetTransaction,
    GetTransactionHistory,
    HistoryPageDTO,
    ListTransactions,
    TransactionDTO,
    TransactionHistoryListDTO,
    TransactionPageDTO,
    UpdateTransaction,
    UpdateTransactionCommandDTO,
)
from messledger.depends import get_cache_service, get_notification_service, get_session
from messledger.domain.errors import Unauthorized
from messledger.domain.group import GroupMember

group_router = APIRouter(prefix="/groups/{group_id}/transactions", tags=["Transactions"])
router = APIRouter(prefix="/transactions", tags=["Transactions"])

any_member = require_member()
balance_manager = require_member(BALANCE_ROLES)


def _check_can_view(member: GroupMember, user_id: str):
    if user_id != member.user_id and not can_view_balances(member):
        raise Unauthorized(reason=f"role={member.role.value}")


@group_router.get("", response_model=TransactionPageDTO)
async def list_transactions(
    group_id: str,
    user_id: Optional[str] = Query(default=None, description="Defaults to the caller"),
    period_id: Optional[str] = Query(default=None, description="Defaults to the active period"),
    cursor: Optional[datetime] = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
):
    """
    List transactions a member sent or received, newest first.

    Pass the returned `next_cursor` as `cursor` to fetch the next page.
    """
    user_id = user_id or member.user_id
    _check_can_view(member, user_id)

    use_case = ListTransactions(
        SqlAlchemyPeriodRepository(session),
        SqlAlchemyTransactionRepository(session),
        cache,
        ttl_seconds=ApplicationConfig.CACHE_TTL_SECONDS,
    )
    return await use_case.execute(group_id, user_id, period_id=period_id, cursor=cursor, limit=limit)


@group_router.get("/history", response_model=HistoryPageDTO)
async def get_account_history(
    group_id: str,
    user_id: Optional[str] = Query(default=None, description="Defaults to the caller"),
    period_id: Optional[str] = Query(default=None),
    cursor: Optional[int] = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
):
    """Audit rows where the member is source or target, newest first."""
    user_id = user_id or member.user_id
    _check_can_view(member, user_id)

    use_case = GetAccountHistory(
        SqlAlchemyTransactionHistoryRepository(session),
        cache,
        ttl_seconds=ApplicationConfig.CACHE_TTL_SECONDS,
    )
    return await use_case.execute(group_id, user_id, period_id=period_id, cursor=cursor, limit=limit)


@group_router.post(
    "",
    response_model=TransactionDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Transaction recorded"},
        400: {"description": "Invalid request (e.g. zero amount)"},
        404: {"description": "Explicit period not found"},
    },
)
async def create_transaction(
    group_id: str,
    request: CreateTransactionRequestSchema,
    member: GroupMember = Depends(balance_manager),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """
    Record a transaction from the caller to `target_user_id`.

    A transaction to oneself is a deposit; it counts toward the group's
    deposits, while a transfer between two members only moves money.
    """
    command = CreateTransactionCommandDTO(
        group_id=group_id,
        created_by=member.user_id,
        target_user_id=request.target_user_id,
        amount=request.amount,
        type=request.type,
        description=request.description,
        period_id=request.period_id,
    )
    use_case = CreateTransaction(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPeriodRepository(session),
        SqlAlchemyTransactionRepository(session),
        SqlAlchemyTransactionHistoryRepository(session),
        cache,
        notifier,
    )
    return await use_case.execute(command)


async def _authorize_for_transaction(session, transaction_id: str, user_id: str, roles) -> TransactionDTO:
    transaction = await GetTransaction(SqlAlchemyTransactionRepository(session)).execute(transaction_id)
    await authorize(session, transaction.group_id, user_id, roles)
    return transaction


@router.patch("/{transaction_id}", response_model=TransactionDTO)
async def update_transaction(
    transaction_id: str,
    request: UpdateTransactionRequestSchema,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Correct amount, type or description; the prior state is kept in history."""
    await _authorize_for_transaction(session, transaction_id, user_id, BALANCE_ROLES)

    # Forward description only when sent, so omitting it keeps the stored value
    command = UpdateTransactionCommandDTO(
        amount=request.amount,
        type=request.type,
        changed_by=user_id,
        **request.model_dump(include={"description"} & request.model_fields_set),
    )
    use_case = UpdateTransaction(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyTransactionRepository(session),
        SqlAlchemyTransactionHistoryRepository(session),
        cache,
        notifier,
    )
    return await use_case.execute(transaction_id, command)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    await _authorize_for_transaction(session, transaction_id, user_id, TRANSACTION_DELETE_ROLES)

    use_case = DeleteTransaction(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyTransactionRepository(session),
        SqlAlchemyTransactionHistoryRepository(session),
        cache,
        notifier,
    )
    await use_case.execute(transaction_id, changed_by=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{transaction_id}/history", response_model=TransactionHistoryListDTO)
async def get_transaction_history(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
):
    """
    Audit trail of a transaction, deleted ones included.

    Visible to the two parties of the transaction and to balance roles.
    """
    use_case = GetTransactionHistory(
        SqlAlchemyTransactionHistoryRepository(session),
        cache,
        ttl_seconds=ApplicationConfig.CACHE_TTL_SECONDS,
    )
    history = await use_case.execute(transaction_id)

    latest = history.items[0]
    member = await authorize(session, latest.group_id, user_id)
    if user_id not in (latest.user_id, latest.target_user_id) and not can_view_balances(member):
        raise Unauthorized(reason=f"role={member.role.value}")
    return history
