"""
Transaction model.

Append-only balance movement ledger shared with deposits and withdrawals.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payout.models.base import Base
from payout.models.enums import TransactionStatus
from payout.models.types import MoneyType


class Transaction(Base):
    """Balance movement of one user."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), index=True, nullable=False
    )
    # TransactionType value
    type: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=TransactionStatus.COMPLETED.value,
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    # Set for PROFIT and BONUS rows
    trading_result_id: Mapped[int | None] = mapped_column(
        ForeignKey("trading_results.id"), index=True, nullable=True
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount})>"
        )
