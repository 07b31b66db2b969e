"""
Distribution marker model.

Per (trading result, user) progress record. Created for the whole user
snapshot when a run starts and completed in the same transaction that credits
the user, so an interrupted run resumes without crediting anyone twice.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from payout.models.base import Base
from payout.models.enums import MarkerStatus
from payout.models.types import MoneyType


class DistributionMarker(Base):
    """Distribution progress of one user within one trading result."""

    __tablename__ = "distribution_markers"
    __table_args__ = (
        UniqueConstraint(
            "trading_result_id",
            "user_id",
            name="uq_distribution_marker_result_user",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    trading_result_id: Mapped[int] = mapped_column(
        ForeignKey("trading_results.id"), index=True, nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), index=True, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=MarkerStatus.PENDING.value,
        index=True,
        nullable=False,
    )

    # Balance at snapshot time; profit is computed from this
    base_balance: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    profit_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    bonus_total: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    bonus_walk_aborted: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<DistributionMarker(trading_result_id={self.trading_result_id}, "
            f"user_id={self.user_id}, status={self.status})>"
        )
