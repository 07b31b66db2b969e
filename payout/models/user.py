"""
User model.

Investor account: balance, derived rank and referrer pointer.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from payout.config.rank_tiers import RankTier
from payout.models.base import Base
from payout.models.types import MoneyType


class User(Base):
    """User model - registered investors."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    username: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )

    # Balance is signed: a loss may in principle drive it below zero
    balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False, index=True
    )

    # Derived from balance by RankResolver, never set directly
    rank: Mapped[str] = mapped_column(
        String(20),
        default=RankTier.STARTER.value,
        nullable=False,
        index=True,
    )

    # Referral forest (acyclicity is not enforced by the database)
    referrer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Optimistic concurrency counter for balance/rank writes
    version: Mapped[int] = mapped_column(
        Integer, default=1, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def rank_tier(self) -> RankTier:
        """Rank as enum."""
        return RankTier(self.rank)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, username={self.username!r}, "
            f"balance={self.balance}, rank={self.rank}, "
            f"referrer_id={self.referrer_id})>"
        )
