"""Balance API Routes

Group balance roster and per-member balances for the active period.
"""

import logging
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from messledger.adapter.repositories.group_repository import SqlAlchemyGroupRepository
from messledger.adapter.repositories.ledger_aggregate_repository import SqlAlchemyLedgerAggregateRepository
from messledger.adapter.repositories.period_repository import SqlAlchemyPeriodRepository
from messledger.api.permissions import BALANCE_ROLES, can_view_balances, require_member
from messledger.api.routes.periods import build_ensure_month_period
from messledger.app.services.cache_service import CacheService
from messledger.app.services.notification_service import NotificationService
from messledger.app.use_cases.ledger import (
    GetGroupBalanceSummary,
    GetUserBalance,
    GroupBalanceSummaryDTO,
    LedgerAggregator,
    UserBalanceDTO,
)
from messledger.depends import (
    get_cache_service,
    get_notification_service,
    get_session,
    get_session_factory,
)
from messledger.domain.errors import LedgerError, Unauthorized
from messledger.domain.group import GroupMember

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups/{group_id}/balances", tags=["Balances"])

any_member = require_member()
balance_viewer = require_member(BALANCE_ROLES)


@router.get(
    "",
    response_model=GroupBalanceSummaryDTO,
    responses={
        200: {"description": "Balance roster of every member"},
        403: {"description": "Caller lacks a balance role"},
    },
)
async def get_group_balance_summary(
    group_id: str,
    include_details: bool = Query(default=False),
    member: GroupMember = Depends(balance_viewer),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """
    Get every member's balance for the active period.

    A MONTHLY group has its current month's period reconciled first, so the
    summary always reflects the calendar month.
    """
    try:
        await build_ensure_month_period(session, session_factory, cache, notifier).execute(
            group_id, member.user_id
        )
    except LedgerError as e:
        logger.warning(f"Month period reconciliation skipped for group {group_id}: {e.code}")

    use_case = GetGroupBalanceSummary(
        SqlAlchemyPeriodRepository(session),
        LedgerAggregator(SqlAlchemyLedgerAggregateRepository(session_factory)),
        cache,
        ttl_seconds=ApplicationConfig.CACHE_TTL_SECONDS,
    )
    return await use_case.execute(group_id, member.user_id, include_details=include_details)


async def _get_balance(session, session_factory, group_id: str, user_id: str, include_details: bool):
    use_case = GetUserBalance(
        SqlAlchemyPeriodRepository(session),
        SqlAlchemyGroupRepository(session),
        LedgerAggregator(SqlAlchemyLedgerAggregateRepository(session_factory)),
    )
    return await use_case.execute(group_id, user_id, include_details=include_details)


@router.get("/me", response_model=UserBalanceDTO)
async def get_my_balance(
    group_id: str,
    include_details: bool = Query(default=False),
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
):
    """The caller's own balance."""
    return await _get_balance(session, session_factory, group_id, member.user_id, include_details)


@router.get("/{user_id}", response_model=UserBalanceDTO)
async def get_user_balance(
    group_id: str,
    user_id: str,
    include_details: bool = Query(default=False),
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
):
    """A member's balance; other members' balances need a balance role."""
    if user_id != member.user_id and not can_view_balances(member):
        raise Unauthorized(reason=f"role={member.role.value}")
    return await _get_balance(session, session_factory, group_id, user_id, include_details)
