"""SQLAlchemy implementation of GroupRepository"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import update
from messledger.app.repositories.group_repository import GroupRepository
from messledger.domain.group import Group, GroupMember
from messledger.domain.period import PeriodMode


class SqlAlchemyGroupRepository(GroupRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, group_id: str) -> Optional[Group]:
        stmt = select(Group).where(Group.id == group_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_member(self, group_id: str, user_id: str) -> Optional[GroupMember]:
        stmt = select(GroupMember).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_period_mode(self, mode: PeriodMode) -> List[Group]:
        stmt = select(Group).where(Group.period_mode == mode).order_by(Group.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_period_mode(self, group_id: str, mode: PeriodMode) -> None:
        """
        Update the group's period mode

        Args:
            group_id: Group identifier
            mode: New period mode
        """
        stmt = (
            update(Group)
            .where(Group.id == group_id)
            .values(period_mode=mode, updated_at=datetime.utcnow())
        )
        await self.session.execute(stmt)
        await self.session.flush()
