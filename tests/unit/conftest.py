from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from messledger.adapter.services.cache_service import InMemoryCacheService
from messledger.domain.group import Group, GroupMember, MemberRole
from messledger.domain.period import Period, PeriodMode, PeriodStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_period_repo():
    """Period repository with an empty group by default"""
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.get_active = AsyncMock(return_value=None)
    repo.list_by_group = AsyncMock(return_value=[])
    repo.list_in_range = AsyncMock(return_value=[])
    repo.name_exists = AsyncMock(return_value=False)
    repo.find_overlapping = AsyncMock(return_value=None)
    repo.get_last_ended = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda period: period)
    repo.update = AsyncMock(side_effect=lambda period: period)
    repo.reassign_records = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def mock_group_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.get_member = AsyncMock(return_value=None)
    repo.list_by_period_mode = AsyncMock(return_value=[])
    repo.set_period_mode = AsyncMock()
    return repo


@pytest.fixture
def mock_aggregate_repo():
    repo = MagicMock()
    repo.sum_received = AsyncMock(return_value=Decimal("0"))
    repo.sum_received_by_user = AsyncMock(return_value={})
    repo.sum_self_deposits = AsyncMock(return_value=Decimal("0"))
    repo.sum_expenses = AsyncMock(return_value=Decimal("0"))
    repo.count_meals = AsyncMock(return_value=0)
    repo.count_meals_by_user = AsyncMock(return_value={})
    repo.sum_guest_meals = AsyncMock(return_value=0)
    repo.sum_purchased_shopping = AsyncMock(return_value=Decimal("0"))
    repo.sum_completed_payments = AsyncMock(return_value=Decimal("0"))
    repo.count_active_members = AsyncMock(return_value=0)
    repo.list_members = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def cache():
    return InMemoryCacheService()


@pytest.fixture
def mock_notifier():
    notifier = MagicMock()
    notifier.publish = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def make_period():
    """Factory for Period entities"""

    def _make(**overrides):
        values = dict(
            id="period_1",
            group_id="group_1",
            name="January 2025",
            start_date=datetime(2025, 1, 1),
            end_date=None,
            status=PeriodStatus.ACTIVE,
            is_locked=False,
            opening_balance=Decimal("0"),
            closing_balance=None,
            carry_forward=False,
            created_by="user_1",
            created_at=datetime(2025, 1, 1),
            updated_at=datetime(2025, 1, 1),
        )
        values.update(overrides)
        return Period(**values)

    return _make


@pytest.fixture
def make_group():
    def _make(mode=PeriodMode.MONTHLY, **overrides):
        values = dict(id="group_1", name="Hall 7", period_mode=mode)
        values.update(overrides)
        return Group(**values)

    return _make


@pytest.fixture
def make_member():
    def _make(user_id="user_1", role=MemberRole.MEMBER, **overrides):
        values = dict(
            id=f"member_{user_id}",
            group_id="group_1",
            user_id=user_id,
            role=role,
            joined_at=datetime(2025, 1, 1),
        )
        values.update(overrides)
        return GroupMember(**values)

    return _make
