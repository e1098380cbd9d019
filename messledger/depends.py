from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from messledger.adapter.services.cache_service import create_cache_service
from messledger.adapter.services.notification_service import create_notification_service
from messledger.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from messledger.app.services.cache_service import CacheService
from messledger.app.services.notification_service import NotificationService


def _engine_options(db_uri: str) -> dict:
    # The aggregate repository holds one pooled connection per concurrent query
    if db_uri.startswith("sqlite"):
        return {}
    return {
        "pool_size": ApplicationConfig.DB_POOL_SIZE,
        "max_overflow": ApplicationConfig.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    ApplicationConfig.DB_URI, echo=False, future=True, **_engine_options(ApplicationConfig.DB_URI)
)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

_cache: Optional[CacheService] = None
_notifier: Optional[NotificationService] = None


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory():
    """Factory for the short-lived sessions of concurrent aggregate queries"""
    return AsyncSessionLocal


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_cache_service() -> CacheService:
    global _cache
    if _cache is None:
        _cache = create_cache_service(
            ApplicationConfig.CACHE_BACKEND,
            redis_url=ApplicationConfig.REDIS_URL,
            prefix=ApplicationConfig.CACHE_KEY_PREFIX,
        )
    return _cache


def get_notification_service() -> NotificationService:
    global _notifier
    if _notifier is None:
        _notifier = create_notification_service(ApplicationConfig.NOTIFICATION_WEBHOOK)
    return _notifier
