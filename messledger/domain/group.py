"""Group and Membership Domain Entities

Read-only roster for the ledger core. Groups are owned by the group
subsystem; the ledger only reads membership and flips the period mode.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, Integer, String
from messledger.domain.base import BaseModel, generate_uuid
from messledger.domain.period import PeriodMode


class MemberRole(str, Enum):
    """Membership roles within a group"""
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    MODERATOR = "MODERATOR"
    ACCOUNTANT = "ACCOUNTANT"
    MEAL_MANAGER = "MEAL_MANAGER"
    MARKET_MANAGER = "MARKET_MANAGER"
    MEMBER = "MEMBER"


class Group(BaseModel, table=True):
    """
    Group - A shared-living household ("mess")

    Domain Rules:
    - period_mode decides whether monthly periods are created automatically
    - member_count is maintained by join/leave flows outside the ledger
    """

    __tablename__ = "groups"

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    name: str = Field(sa_column=Column(String(255), nullable=False))

    period_mode: PeriodMode = Field(
        default=PeriodMode.MONTHLY,
        description="MONTHLY (automatic rollover) or CUSTOM (manual periods)"
    )

    member_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)


class GroupMember(BaseModel, table=True):
    """Membership of a user in a group"""

    __tablename__ = "group_members"
    __table_args__ = (
        Index("uq_group_members_user_group", "user_id", "group_id", unique=True),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    group_id: str = Field(index=True)

    user_id: str = Field(index=True)

    display_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    role: MemberRole = Field(default=MemberRole.MEMBER)

    is_current: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
    )

    is_banned: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
    )

    joined_at: datetime = Field(default_factory=datetime.utcnow)
