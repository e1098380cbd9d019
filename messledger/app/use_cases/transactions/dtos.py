"""Data Transfer Objects for Transaction Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from messledger.domain.account_transaction import HistoryAction, TransactionType


class CreateTransactionCommandDTO(BaseModel):
    """
    Command DTO for recording an account transaction

    The creator is the source member; creator == target records a deposit.
    """

    group_id: str = Field(..., description="Group identifier")

    created_by: str = Field(..., description="Recording (and source) member")

    target_user_id: str = Field(..., description="Receiving member")

    amount: Decimal = Field(..., description="Signed amount")

    type: TransactionType = Field(..., description="Transaction category")

    description: Optional[str] = Field(default=None, max_length=1000)

    period_id: Optional[str] = Field(
        default=None,
        description="Target period (defaults to the group's active period)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "group_id": "grp_123",
                "created_by": "user_456",
                "target_user_id": "user_456",
                "amount": "500",
                "type": "PAYMENT",
                "description": "Monthly deposit",
            }
        }


class UpdateTransactionCommandDTO(BaseModel):
    """
    Command DTO for updating a transaction

    Source, target and period are immutable after creation. An omitted
    description leaves the stored one unchanged; an explicit None clears it.
    """

    amount: Decimal
    type: TransactionType
    description: Optional[str] = Field(default=None, max_length=1000)
    changed_by: str


class TransactionDTO(BaseModel):
    id: str
    group_id: str
    period_id: Optional[str] = None
    created_by: str
    user_id: str
    target_user_id: str
    amount: Decimal
    type: TransactionType
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TransactionHistoryDTO(BaseModel):
    id: int
    transaction_id: str
    group_id: str
    period_id: Optional[str] = None
    user_id: str
    target_user_id: str
    amount: Decimal
    type: TransactionType
    description: Optional[str] = None
    action: HistoryAction
    changed_by: str
    changed_at: datetime

    class Config:
        from_attributes = True


class TransactionPageDTO(BaseModel):
    """A page of transactions; next_cursor is the created_at to continue from"""

    items: List[TransactionDTO]
    next_cursor: Optional[datetime] = None


class TransactionHistoryListDTO(BaseModel):
    items: List[TransactionHistoryDTO]


class HistoryPageDTO(BaseModel):
    """A page of account history; next_cursor is the last history id returned"""

    items: List[TransactionHistoryDTO]
    next_cursor: Optional[int] = None
