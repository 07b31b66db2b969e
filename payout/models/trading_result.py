"""
Trading result model.

One signed profit percentage per calendar date; the unit of work of a
distribution run.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payout.models.base import Base
from payout.models.types import PercentType


class TradingResult(Base):
    """Trading result entered by an operator."""

    __tablename__ = "trading_results"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # At most one result per date
    trading_date: Mapped[date] = mapped_column(
        Date, unique=True, index=True, nullable=False
    )

    # Signed; negative is a loss
    profit_percent: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # First distribution attempt; set together with the user snapshot
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Fingerprint of the rank/level config the run is pinned to
    config_version: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )

    # Set exactly once when every user has been distributed
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    @property
    def is_processed(self) -> bool:
        """Whether distribution has completed."""
        return self.processed_at is not None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TradingResult(id={self.id}, "
            f"trading_date={self.trading_date}, "
            f"profit_percent={self.profit_percent}, "
            f"processed_at={self.processed_at})>"
        )
