"""Request schemas for Transaction API"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from messledger.domain.account_transaction import TransactionType


class CreateTransactionRequestSchema(BaseModel):
    """
    Request schema for recording a transaction

    The caller is the source member; target_user_id == caller records a deposit.
    """

    target_user_id: str = Field(..., min_length=1, description="Receiving member")

    amount: Decimal = Field(..., description="Signed amount (non-zero)")

    type: TransactionType = Field(default=TransactionType.PAYMENT)

    description: Optional[str] = Field(default=None, max_length=1000)

    period_id: Optional[str] = Field(default=None, description="Defaults to the active period")

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        """Ensure amount is non-zero"""
        if v == 0:
            raise ValueError("Amount must not be zero")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "target_user_id": "user_456",
                "amount": "500",
                "type": "PAYMENT",
                "description": "Monthly deposit",
            }
        }


class UpdateTransactionRequestSchema(BaseModel):
    amount: Decimal

    type: TransactionType

    description: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        if v == 0:
            raise ValueError("Amount must not be zero")
        return v
