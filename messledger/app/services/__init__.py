from .unit_of_work import UnitOfWork
from .cache_service import CacheService
from .notification_service import NotificationService, LedgerEvent, LedgerEventType

__all__ = [
    "UnitOfWork",
    "CacheService",
    "NotificationService",
    "LedgerEvent",
    "LedgerEventType",
]
