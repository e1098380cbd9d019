"""Period validation rules shared by the period use cases"""

from datetime import datetime
from typing import Optional

from messledger.app.repositories.period_repository import PeriodRepository
from messledger.domain.errors import ActivePeriodExists, InvalidDateRange, PeriodOverlap


def check_date_range(start_date: datetime, end_date: Optional[datetime]) -> None:
    if end_date is not None and start_date >= end_date:
        raise InvalidDateRange(start_date, end_date)


async def ensure_no_active_period(period_repo: PeriodRepository, group_id: str) -> None:
    active = await period_repo.get_active(group_id)
    if active:
        raise ActivePeriodExists(active.id, active.name)


async def check_overlap(
    period_repo: PeriodRepository,
    group_id: str,
    start_date: datetime,
    end_date: Optional[datetime],
    exclude_id: Optional[str] = None,
) -> None:
    """Open-ended ranges are exempt; only the single ACTIVE period can be open"""
    if end_date is None:
        return
    overlapping = await period_repo.find_overlapping(group_id, start_date, end_date, exclude_id)
    if overlapping:
        raise PeriodOverlap(
            overlapping.id,
            overlapping.name,
            overlapping.start_date,
            overlapping.end_date,
        )


async def resolve_unique_name(
    period_repo: PeriodRepository,
    group_id: str,
    name: str,
    exclude_id: Optional[str] = None,
) -> str:
    """
    Return ``name`` or the first free "name (n)" for n = 2, 3, ...

    Never fails on a collision.
    """
    candidate = name
    counter = 1
    while await period_repo.name_exists(group_id, candidate, exclude_id):
        counter += 1
        candidate = f"{name} ({counter})"
    return candidate


async def resolve_restart_name(period_repo: PeriodRepository, group_id: str, original_name: str) -> str:
    """'<name> (Restarted)', then '<name> (Restarted 1)', '<name> (Restarted 2)', ..."""
    candidate = f"{original_name} (Restarted)"
    counter = 1
    while await period_repo.name_exists(group_id, candidate):
        candidate = f"{original_name} (Restarted {counter})"
        counter += 1
    return candidate
