"""Ledger error taxonomy

Typed failures raised by the core. Each carries a stable ``code`` that the
boundary layer maps to a status and a user-facing message.
"""

from datetime import datetime
from typing import Optional


class LedgerError(Exception):
    """Base class for every failure the ledger core raises"""

    code = "LEDGER_ERROR"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class ActivePeriodExists(LedgerError):
    code = "ACTIVE_PERIOD_EXISTS"

    def __init__(self, period_id: str, period_name: str):
        super().__init__(
            f"Period '{period_name}' is already active for this group",
            reason=f"active_period_id={period_id}",
        )
        self.period_id = period_id
        self.period_name = period_name


class InvalidDateRange(LedgerError):
    code = "INVALID_DATE_RANGE"

    def __init__(self, start_date: datetime, end_date: datetime):
        super().__init__(
            "Start date must be before end date",
            reason=f"start_date={start_date.isoformat()}, end_date={end_date.isoformat()}",
        )
        self.start_date = start_date
        self.end_date = end_date


class PeriodOverlap(LedgerError):
    code = "PERIOD_OVERLAP"

    def __init__(
        self,
        period_id: str,
        period_name: str,
        start_date: datetime,
        end_date: Optional[datetime],
    ):
        end = end_date.isoformat() if end_date else "open"
        super().__init__(
            f"Period dates overlap with existing period '{period_name}'",
            reason=f"period_id={period_id}, range={start_date.isoformat()} - {end}",
        )
        self.period_id = period_id
        self.period_name = period_name
        self.start_date = start_date
        self.end_date = end_date


class PeriodNotFound(LedgerError):
    code = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: Optional[str] = None, group_id: Optional[str] = None):
        if period_id:
            message = f"Period {period_id} not found"
        else:
            message = f"No active period found for group {group_id}"
        super().__init__(message)
        self.period_id = period_id
        self.group_id = group_id


class PeriodNotActive(LedgerError):
    code = "PERIOD_NOT_ACTIVE"

    def __init__(self, period_id: str, status: str):
        super().__init__(
            f"Period {period_id} is not active",
            reason=f"status={status}",
        )
        self.period_id = period_id
        self.status = status


class PeriodNotLocked(LedgerError):
    code = "PERIOD_NOT_LOCKED"

    def __init__(self, period_id: str):
        super().__init__(f"Period {period_id} is neither locked nor archived")
        self.period_id = period_id


class PeriodAlreadyLocked(LedgerError):
    code = "PERIOD_ALREADY_LOCKED"

    def __init__(self, period_id: str):
        super().__init__(f"Period {period_id} is already locked")
        self.period_id = period_id


class InvalidStatusTransition(LedgerError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, period_id: str, current: str, target: str):
        super().__init__(
            f"Period {period_id} cannot move from {current} to {target}",
            reason=f"current={current}, target={target}",
        )
        self.period_id = period_id
        self.current = current
        self.target = target


class GroupNotFound(LedgerError):
    code = "GROUP_NOT_FOUND"

    def __init__(self, group_id: str):
        super().__init__(f"Group {group_id} not found")
        self.group_id = group_id


class GroupFull(LedgerError):
    code = "GROUP_FULL"

    def __init__(self, group_id: str, capacity: int):
        super().__init__(
            f"Group {group_id} has reached its member capacity",
            reason=f"capacity={capacity}",
        )
        self.group_id = group_id
        self.capacity = capacity


class TransactionNotFound(LedgerError):
    code = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class Unauthorized(LedgerError):
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Insufficient permissions", reason: Optional[str] = None):
        super().__init__(message, reason=reason)
