"""Account Transaction Domain Entities

Ledger entries moving value between two members inside a period, and the
immutable history log written for every mutation of an entry.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, Integer, Numeric, String, Text
from messledger.domain.base import BaseModel, generate_uuid


class TransactionType(str, Enum):
    """Account transaction categories"""
    PAYMENT = "PAYMENT"        # Member pays in (deposit or payment to a manager)
    ADJUSTMENT = "ADJUSTMENT"  # Manual correction by a privileged member
    REFUND = "REFUND"          # Money handed back to a member


class HistoryAction(str, Enum):
    """Kind of mutation recorded in TransactionHistory"""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AccountTransaction(BaseModel, table=True):
    """
    Account Transaction - Value moving between two members

    Domain Rules:
    - user_id == target_user_id is a self-deposit (counts toward group total)
    - user_id != target_user_id is a transfer (credits only the target)
    - Only amount, description and type may change after creation
    - Every mutation writes exactly one TransactionHistory row atomically
    """

    __tablename__ = "account_transactions"
    __table_args__ = (
        Index("ix_account_transactions_group_period", "group_id", "period_id"),
        Index("ix_account_transactions_target", "group_id", "period_id", "target_user_id"),
        Index("ix_account_transactions_created_at", "created_at"),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    group_id: str = Field(description="Owning group")

    period_id: Optional[str] = Field(
        default=None,
        index=True,
        description="Period the transaction belongs to"
    )

    created_by: str = Field(description="User who recorded the transaction")

    user_id: str = Field(description="Source member")

    target_user_id: str = Field(description="Receiving member")

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Signed amount (precision: 18,6)"
    )

    type: TransactionType = Field(description="Transaction category")

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)


class TransactionHistory(BaseModel, table=True):
    """
    Transaction History - Immutable audit trail

    Domain Rules:
    - CREATE rows capture the created state
    - UPDATE and DELETE rows capture the state *before* the mutation
    - Rows outlive the transaction they describe (no foreign key)
    """

    __tablename__ = "transaction_history"
    __table_args__ = (
        Index("ix_transaction_history_transaction", "transaction_id"),
        Index("ix_transaction_history_group_period", "group_id", "period_id"),
        Index("ix_transaction_history_changed_at", "changed_at"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            BigInteger().with_variant(Integer, "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        description="Unique history identifier (auto-increment)"
    )

    transaction_id: str = Field(description="Transaction the row describes")

    group_id: str

    period_id: Optional[str] = Field(default=None)

    user_id: str

    target_user_id: str

    amount: Decimal = Field(sa_column=Column(Numeric(18, 6), nullable=False))

    type: TransactionType

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    action: HistoryAction

    changed_by: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Acting user"
    )

    changed_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def snapshot(
        cls,
        transaction: AccountTransaction,
        action: HistoryAction,
        changed_by: str,
    ) -> "TransactionHistory":
        """Capture the transaction's current state as an audit row"""
        return cls(
            transaction_id=transaction.id,
            group_id=transaction.group_id,
            period_id=transaction.period_id,
            user_id=transaction.user_id,
            target_user_id=transaction.target_user_id,
            amount=transaction.amount,
            type=transaction.type,
            description=transaction.description,
            action=action,
            changed_by=changed_by,
        )
