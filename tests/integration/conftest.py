from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import messledger.domain  # noqa: F401
from messledger.adapter.services.cache_service import InMemoryCacheService
from messledger.depends import (
    get_cache_service,
    get_notification_service,
    get_session,
    get_session_factory,
)
from messledger.domain.group import Group, GroupMember, MemberRole
from messledger.domain.period import PeriodMode


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database, fresh for every test"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'ledger_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def cache():
    return InMemoryCacheService()


@pytest.fixture
def notifier():
    notifier = MagicMock()
    notifier.publish = AsyncMock(return_value=True)
    return notifier


@pytest_asyncio.fixture
async def seed_group(db_session):
    """Create a group with members; roles maps user id to MemberRole"""

    async def _seed(group_id="group_1", mode=PeriodMode.CUSTOM, roles=None):
        roles = roles or {"owner": MemberRole.OWNER}
        db_session.add(Group(id=group_id, name=f"Mess {group_id}", period_mode=mode, member_count=len(roles)))
        for user_id, role in roles.items():
            db_session.add(
                GroupMember(
                    group_id=group_id,
                    user_id=user_id,
                    display_name=user_id.title(),
                    role=role,
                    joined_at=datetime(2025, 1, 1),
                )
            )
        await db_session.commit()

    return _seed


@pytest_asyncio.fixture
async def client(session_factory, cache, notifier):
    """Create test client with database, cache and notifier overrides"""
    from messledger.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_cache_service] = lambda: cache
    app.dependency_overrides[get_notification_service] = lambda: notifier

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
