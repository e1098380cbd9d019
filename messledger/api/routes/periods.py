"""Period API Routes

FastAPI routes for period lifecycle management.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from messledger.adapter.repositories.group_repository import SqlAlchemyGroupRepository
from messledger.adapter.repositories.ledger_aggregate_repository import SqlAlchemyLedgerAggregateRepository
from messledger.adapter.repositories.period_repository import SqlAlchemyPeriodRepository
from messledger.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from messledger.api.permissions import PERIOD_MANAGER_ROLES, require_member
from messledger.api.schemas.period_request import (
    EndPeriodRequestSchema,
    PeriodModeRequestSchema,
    RestartPeriodRequestSchema,
    StartPeriodRequestSchema,
    UnlockPeriodRequestSchema,
    UpdatePeriodRequestSchema,
)
from messledger.app.services.cache_service import CacheService
from messledger.app.services.notification_service import NotificationService
from messledger.app.use_cases.ledger.aggregator import LedgerAggregator
from messledger.app.use_cases.periods import (
    ArchivePeriod,
    ChangePeriodMode,
    DeletePeriod,
    EndPeriod,
    EnsureMonthPeriod,
    GetCurrentPeriod,
    GetPeriod,
    GetPeriods,
    GetPeriodsByMonth,
    GetPeriodSummary,
    LockPeriod,
    RestartPeriod,
    StartPeriod,
    UnlockPeriod,
    UpdatePeriod,
)
from messledger.app.use_cases.periods.dtos import (
    EnsureMonthPeriodResultDTO,
    PeriodDTO,
    PeriodListDTO,
    PeriodModeDTO,
    PeriodSummaryDTO,
    RestartPeriodCommandDTO,
    StartPeriodCommandDTO,
    UpdatePeriodCommandDTO,
)
from messledger.depends import (
    get_cache_service,
    get_notification_service,
    get_session,
    get_session_factory,
)
from messledger.domain.group import GroupMember

router = APIRouter(prefix="/groups/{group_id}", tags=["Periods"])

any_member = require_member()
period_manager = require_member(PERIOD_MANAGER_ROLES)


def build_end_period(session, session_factory, cache, notifier) -> EndPeriod:
    return EndPeriod(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPeriodRepository(session),
        SqlAlchemyGroupRepository(session),
        LedgerAggregator(SqlAlchemyLedgerAggregateRepository(session_factory)),
        cache,
        notifier,
    )


def build_ensure_month_period(session, session_factory, cache, notifier) -> EnsureMonthPeriod:
    uow = SqlAlchemyUnitOfWork(session)
    period_repo = SqlAlchemyPeriodRepository(session)
    return EnsureMonthPeriod(
        period_repo,
        SqlAlchemyGroupRepository(session),
        StartPeriod(uow, period_repo, cache, notifier),
        build_end_period(session, session_factory, cache, notifier),
    )


@router.get("/periods", response_model=PeriodListDTO)
async def list_periods(
    group_id: str,
    include_archived: bool = Query(default=False),
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
):
    """
    List the group's periods, newest first.

    ARCHIVED periods are included only with `include_archived=true`.
    """
    use_case = GetPeriods(
        SqlAlchemyPeriodRepository(session),
        cache,
        ttl_seconds=ApplicationConfig.PERIOD_LIST_CACHE_TTL_SECONDS,
    )
    return await use_case.execute(group_id, include_archived=include_archived)


@router.get("/periods/current", response_model=Optional[PeriodDTO])
async def get_current_period(
    group_id: str,
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
):
    """Return the ACTIVE period, or null when none is active."""
    return await GetCurrentPeriod(SqlAlchemyPeriodRepository(session)).execute(group_id)


@router.get("/periods/by-month", response_model=PeriodListDTO)
async def list_periods_by_month(
    group_id: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
):
    """Periods starting, ending, or spanning the given month."""
    return await GetPeriodsByMonth(SqlAlchemyPeriodRepository(session)).execute(group_id, year, month)


@router.post("/periods", response_model=PeriodDTO, status_code=status.HTTP_201_CREATED)
async def start_period(
    group_id: str,
    request: StartPeriodRequestSchema,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """
    Start a new ACTIVE period.

    **Returns:**
    - 201: Period started (the name may carry a " (n)" suffix)
    - 409: Another period is active, or the dates overlap an existing period
    - 422: start_date is not before end_date
    """
    command = StartPeriodCommandDTO(
        group_id=group_id,
        actor_id=member.user_id,
        name=request.name,
        start_date=request.start_date,
        end_date=request.end_date,
        opening_balance=request.opening_balance,
        carry_forward=request.carry_forward,
        notes=request.notes,
    )
    use_case = StartPeriod(SqlAlchemyUnitOfWork(session), SqlAlchemyPeriodRepository(session), cache, notifier)
    return await use_case.execute(command)


@router.post("/periods/end", response_model=PeriodDTO)
async def end_period(
    group_id: str,
    request: EndPeriodRequestSchema,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """End the active period (or `period_id`). A MONTHLY group switches to CUSTOM.

    An end_date not after the period start is rejected with 422.
    """
    use_case = build_end_period(session, session_factory, cache, notifier)
    return await use_case.execute(
        group_id,
        member.user_id,
        end_date=request.end_date,
        period_id=request.period_id,
    )


@router.post("/periods/ensure-month", response_model=EnsureMonthPeriodResultDTO)
async def ensure_month_period(
    group_id: str,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Reconcile the current calendar month's period for a MONTHLY group."""
    use_case = build_ensure_month_period(session, session_factory, cache, notifier)
    return await use_case.execute(group_id, member.user_id)


@router.put("/period-mode", response_model=PeriodModeDTO)
async def change_period_mode(
    group_id: str,
    request: PeriodModeRequestSchema,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Switch between MONTHLY and CUSTOM periods."""
    use_case = ChangePeriodMode(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyGroupRepository(session),
        SqlAlchemyPeriodRepository(session),
        build_ensure_month_period(session, session_factory, cache, notifier),
        cache,
    )
    return await use_case.execute(group_id, member.user_id, request.mode)


@router.get("/periods/{period_id}", response_model=PeriodDTO)
async def get_period(
    group_id: str,
    period_id: str,
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
):
    use_case = GetPeriod(
        SqlAlchemyPeriodRepository(session),
        cache,
        ttl_seconds=ApplicationConfig.PERIOD_LIST_CACHE_TTL_SECONDS,
    )
    return await use_case.execute(group_id, period_id)


@router.get("/periods/{period_id}/summary", response_model=PeriodSummaryDTO)
async def get_period_summary(
    group_id: str,
    period_id: str,
    member: GroupMember = Depends(any_member),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
    cache: CacheService = Depends(get_cache_service),
):
    """Meal, shopping, payment and expense totals of a period."""
    use_case = GetPeriodSummary(
        SqlAlchemyPeriodRepository(session),
        SqlAlchemyLedgerAggregateRepository(session_factory),
        cache,
        ttl_seconds=ApplicationConfig.CACHE_TTL_SECONDS,
    )
    return await use_case.execute(group_id, period_id)


@router.patch("/periods/{period_id}", response_model=PeriodDTO)
async def update_period(
    group_id: str,
    period_id: str,
    request: UpdatePeriodRequestSchema,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    patch = UpdatePeriodCommandDTO(**request.model_dump(exclude_unset=True))
    use_case = UpdatePeriod(SqlAlchemyUnitOfWork(session), SqlAlchemyPeriodRepository(session), cache, notifier)
    return await use_case.execute(group_id, member.user_id, period_id, patch)


@router.delete("/periods/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_period(
    group_id: str,
    period_id: str,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """Soft-delete a period; its records keep referencing it."""
    use_case = DeletePeriod(SqlAlchemyUnitOfWork(session), SqlAlchemyPeriodRepository(session), cache, notifier)
    await use_case.execute(group_id, member.user_id, period_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/periods/{period_id}/lock", response_model=PeriodDTO)
async def lock_period(
    group_id: str,
    period_id: str,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    use_case = LockPeriod(SqlAlchemyUnitOfWork(session), SqlAlchemyPeriodRepository(session), cache, notifier)
    return await use_case.execute(group_id, member.user_id, period_id)


@router.post("/periods/{period_id}/unlock", response_model=PeriodDTO)
async def unlock_period(
    group_id: str,
    period_id: str,
    request: UnlockPeriodRequestSchema,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    use_case = UnlockPeriod(SqlAlchemyUnitOfWork(session), SqlAlchemyPeriodRepository(session), cache, notifier)
    return await use_case.execute(group_id, member.user_id, period_id, resulting_status=request.status)


@router.post("/periods/{period_id}/archive", response_model=PeriodDTO)
async def archive_period(
    group_id: str,
    period_id: str,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    session_factory=Depends(get_session_factory),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    use_case = ArchivePeriod(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyPeriodRepository(session),
        SqlAlchemyGroupRepository(session),
        LedgerAggregator(SqlAlchemyLedgerAggregateRepository(session_factory)),
        cache,
        notifier,
    )
    return await use_case.execute(group_id, member.user_id, period_id)


@router.post("/periods/{period_id}/restart", response_model=PeriodDTO, status_code=status.HTTP_201_CREATED)
async def restart_period(
    group_id: str,
    period_id: str,
    request: RestartPeriodRequestSchema,
    member: GroupMember = Depends(period_manager),
    session: AsyncSession = Depends(get_session),
    cache: CacheService = Depends(get_cache_service),
    notifier: NotificationService = Depends(get_notification_service),
):
    """
    Start a new ACTIVE period continuing this one.

    With `with_data=true` every record of the old period is **moved** to the
    new period; the old period is left empty.
    """
    command = RestartPeriodCommandDTO(
        group_id=group_id,
        actor_id=member.user_id,
        period_id=period_id,
        new_name=request.new_name,
        with_data=request.with_data,
    )
    use_case = RestartPeriod(SqlAlchemyUnitOfWork(session), SqlAlchemyPeriodRepository(session), cache, notifier)
    return await use_case.execute(command)
