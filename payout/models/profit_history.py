"""
Profit history model.

Append-only ledger of profit credited from trading results.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from payout.models.base import Base
from payout.models.types import MoneyType, PercentType


class ProfitHistory(Base):
    """Profit credited to one user for one trading result."""

    __tablename__ = "profit_history"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), index=True, nullable=False
    )
    trading_result_id: Mapped[int] = mapped_column(
        ForeignKey("trading_results.id"), index=True, nullable=False
    )
    trading_date: Mapped[date] = mapped_column(
        Date, index=True, nullable=False
    )

    profit_percent: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )
    # Snapshot balance the profit was computed from
    base_balance: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    # Rank used for the profit split
    rank: Mapped[str] = mapped_column(String(20), nullable=False)
    user_share_percent: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )
    profit_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ProfitHistory(id={self.id}, user_id={self.user_id}, "
            f"trading_date={self.trading_date}, "
            f"profit_amount={self.profit_amount})>"
        )
