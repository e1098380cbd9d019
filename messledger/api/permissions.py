"""Identity and permission checks for the HTTP boundary

Authentication happens upstream; the caller's user id arrives in the
``X-User-Id`` header. Authorization is decided here from the caller's
membership role and handed to the core as a plain decision.
"""

from typing import Iterable, Optional
from fastapi import Depends, Header
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from messledger.adapter.repositories.group_repository import SqlAlchemyGroupRepository
from messledger.api.error import ClientError
from messledger.depends import get_session
from messledger.domain.errors import Unauthorized
from messledger.domain.group import GroupMember, MemberRole

PERIOD_MANAGER_ROLES = frozenset({
    MemberRole.OWNER,
    MemberRole.ADMIN,
    MemberRole.MANAGER,
    MemberRole.MODERATOR,
})

BALANCE_ROLES = frozenset({
    MemberRole.OWNER,
    MemberRole.ADMIN,
    MemberRole.ACCOUNTANT,
    MemberRole.MANAGER,
    MemberRole.MODERATOR,
    MemberRole.MEAL_MANAGER,
    MemberRole.MARKET_MANAGER,
})

TRANSACTION_DELETE_ROLES = frozenset({MemberRole.OWNER, MemberRole.ADMIN})


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if x_user_id:
        return x_user_id
    if ApplicationConfig.AUTH_DISABLED:
        return ApplicationConfig.SYSTEM_ACTOR_ID
    raise ClientError("UNAUTHENTICATED", "Missing X-User-Id header")


async def authorize(
    session: AsyncSession,
    group_id: str,
    user_id: str,
    roles: Optional[Iterable[MemberRole]] = None,
) -> GroupMember:
    """
    Resolve the caller's membership and check its role

    Args:
        session: Request session
        group_id: Group identifier
        user_id: Caller
        roles: Allowed roles; None admits every member

    Raises:
        Unauthorized: Not a current member, banned, or role not allowed
    """
    member = await SqlAlchemyGroupRepository(session).get_member(group_id, user_id)
    if not member or not member.is_current or member.is_banned:
        raise Unauthorized("You are not a member of this group")
    if roles is not None and member.role not in roles:
        raise Unauthorized(reason=f"role={member.role.value}")
    return member


def can_view_balances(member: GroupMember) -> bool:
    return member.role in BALANCE_ROLES


def require_member(roles: Optional[Iterable[MemberRole]] = None):
    """Dependency factory checking the caller against the path's group_id"""
    allowed = frozenset(roles) if roles is not None else None

    async def dependency(
        group_id: str,
        user_id: str = Depends(get_current_user_id),
        session: AsyncSession = Depends(get_session),
    ) -> GroupMember:
        return await authorize(session, group_id, user_id, allowed)

    return dependency
