"""Notification Service Interface

Defines the contract for publishing ledger events to the external
notification dispatcher. Publishing is fire-and-forget from the core's
point of view; the core never formats user-facing text.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    PERIOD_STARTED = "PERIOD_STARTED"
    PERIOD_ENDED = "PERIOD_ENDED"
    PERIOD_LOCKED = "PERIOD_LOCKED"
    PERIOD_UNLOCKED = "PERIOD_UNLOCKED"
    PERIOD_ARCHIVED = "PERIOD_ARCHIVED"
    PERIOD_UPDATED = "PERIOD_UPDATED"
    PERIOD_DELETED = "PERIOD_DELETED"
    PERIOD_RESTARTED = "PERIOD_RESTARTED"
    TRANSACTION_CREATED = "TRANSACTION_CREATED"
    TRANSACTION_UPDATED = "TRANSACTION_UPDATED"
    TRANSACTION_DELETED = "TRANSACTION_DELETED"


class LedgerEvent(BaseModel):
    """Event emitted after a ledger mutation commits"""

    event_type: LedgerEventType
    group_id: str
    actor_id: str
    period_id: Optional[str] = None
    transaction_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=datetime.utcnow)


class NotificationService(ABC):
    """
    Abstract event publisher

    Implementations can deliver events via:
    - Logging
    - Webhook (HTTP POST)
    - A message queue consumed by the notification subsystem
    """

    @abstractmethod
    async def publish(self, event: LedgerEvent) -> bool:
        """
        Publish a ledger event

        Args:
            event: LedgerEvent to deliver

        Returns:
            True if delivered, False otherwise (never raises)
        """
        pass
