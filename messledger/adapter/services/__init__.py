from .unit_of_work import SqlAlchemyUnitOfWork
from .cache_service import (
    InMemoryCacheService,
    RedisCacheService,
    NullCacheService,
    create_cache_service,
)
from .notification_service import (
    LoggingNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)

__all__ = [
    "SqlAlchemyUnitOfWork",
    "InMemoryCacheService",
    "RedisCacheService",
    "NullCacheService",
    "create_cache_service",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
]
