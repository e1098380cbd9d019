"""SQLAlchemy implementation of PeriodRepository

Provides persistence for Period entities. The single-active-period rule is
backed by the partial unique index ``uq_meal_periods_one_active_per_group``;
a violation is translated into ActivePeriodExists naming the winner.
"""

import logging
from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import and_, or_, update
from sqlalchemy.exc import IntegrityError
from messledger.app.repositories.period_repository import PeriodRepository
from messledger.domain.account_transaction import AccountTransaction
from messledger.domain.errors import ActivePeriodExists
from messledger.domain.period import Period, PeriodStatus
from messledger.domain.records import PERIOD_SCOPED_RECORDS

logger = logging.getLogger(__name__)

LISTED_STATUSES = (PeriodStatus.ACTIVE, PeriodStatus.ENDED, PeriodStatus.LOCKED)


class SqlAlchemyPeriodRepository(PeriodRepository):
    """
    SQLAlchemy implementation of PeriodRepository

    Features:
    - Soft-delete aware reads (deleted_at IS NULL everywhere)
    - Database-enforced single ACTIVE period per group
    - Bulk child-record reassignment for period restarts
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _live(self):
        return select(Period).where(Period.deleted_at.is_(None))

    async def get_by_id(self, period_id: str, group_id: Optional[str] = None) -> Optional[Period]:
        stmt = self._live().where(Period.id == period_id)
        if group_id:
            stmt = stmt.where(Period.group_id == group_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active(self, group_id: str) -> Optional[Period]:
        stmt = self._live().where(
            Period.group_id == group_id,
            Period.status == PeriodStatus.ACTIVE,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_by_group(self, group_id: str, include_archived: bool = False) -> List[Period]:
        stmt = self._live().where(Period.group_id == group_id)
        if not include_archived:
            stmt = stmt.where(Period.status.in_(LISTED_STATUSES))
        stmt = stmt.order_by(Period.start_date.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_in_range(self, group_id: str, range_start: datetime, range_end: datetime) -> List[Period]:
        """
        Periods starting in, ending in, or spanning [range_start, range_end]

        An open-ended period that started before the range spans it.
        """
        stmt = (
            self._live()
            .where(
                Period.group_id == group_id,
                or_(
                    Period.start_date.between(range_start, range_end),
                    Period.end_date.between(range_start, range_end),
                    and_(
                        Period.start_date <= range_start,
                        or_(Period.end_date >= range_end, Period.end_date.is_(None)),
                    ),
                ),
            )
            .order_by(Period.start_date.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def name_exists(self, group_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
        stmt = self._live().where(Period.group_id == group_id, Period.name == name)
        if exclude_id:
            stmt = stmt.where(Period.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first() is not None

    async def find_overlapping(
        self,
        group_id: str,
        start_date: datetime,
        end_date: datetime,
        exclude_id: Optional[str] = None,
    ) -> Optional[Period]:
        # Closed ranges intersect when each starts before the other ends
        stmt = self._live().where(
            Period.group_id == group_id,
            Period.end_date.is_not(None),
            Period.start_date <= end_date,
            Period.end_date >= start_date,
        )
        if exclude_id:
            stmt = stmt.where(Period.id != exclude_id)
        result = await self.session.execute(stmt.order_by(Period.start_date).limit(1))
        return result.scalars().first()

    async def get_last_ended(self, group_id: str) -> Optional[Period]:
        stmt = (
            self._live()
            .where(Period.group_id == group_id, Period.status == PeriodStatus.ENDED)
            .order_by(Period.end_date.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create(self, period: Period) -> Period:
        """
        Create a new period

        Raises:
            ActivePeriodExists: If the partial unique index rejects a second ACTIVE period
        """
        self.session.add(period)
        await self._flush_guarded(period)
        await self.session.refresh(period)
        return period

    async def update(self, period: Period) -> Period:
        self.session.add(period)
        await self._flush_guarded(period)
        await self.session.refresh(period)
        return period

    async def _flush_guarded(self, period: Period) -> None:
        try:
            await self.session.flush()
        except IntegrityError:
            if period.status != PeriodStatus.ACTIVE:
                raise
            await self.session.rollback()
            winner = await self.get_active(period.group_id)
            if winner is None:
                raise
            logger.warning(
                f"Concurrent ACTIVE period rejected for group {period.group_id}; "
                f"active period is {winner.id}"
            )
            raise ActivePeriodExists(winner.id, winner.name)

    async def reassign_records(self, from_period_id: str, to_period_id: str) -> int:
        moved = 0
        for model in (*PERIOD_SCOPED_RECORDS, AccountTransaction):
            result = await self.session.execute(
                update(model)
                .where(model.period_id == from_period_id)
                .values(period_id=to_period_id)
            )
            moved += result.rowcount or 0
        return moved
