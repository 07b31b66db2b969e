"""
Bonus history model.

Append-only ledger of referral commissions.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payout.models.base import Base
from payout.models.enums import BonusType
from payout.models.types import MoneyType, PercentType


class BonusHistory(Base):
    """Commission credited to an upline for a downline's trade."""

    __tablename__ = "bonus_history"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    # Recipient
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), index=True, nullable=False
    )
    # Downline whose trade funded the bonus
    source_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), index=True, nullable=False
    )
    trading_result_id: Mapped[int] = mapped_column(
        ForeignKey("trading_results.id"), index=True, nullable=False
    )
    trading_date: Mapped[date] = mapped_column(
        Date, index=True, nullable=False
    )

    bonus_type: Mapped[str] = mapped_column(
        String(50),
        default=BonusType.NETWORK_LEVEL_BONUS.value,
        nullable=False,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    # Level percentage applied
    rate: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    # Company portion the rate was applied to
    calculated_from: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )
    bonus_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<BonusHistory(id={self.id}, user_id={self.user_id}, "
            f"source_user_id={self.source_user_id}, level={self.level}, "
            f"bonus_amount={self.bonus_amount})>"
        )
