"""
Rank tier configuration model.

Database override of the built-in rank table. An empty table means the
defaults in payout.config.rank_tiers apply.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from payout.models.base import Base
from payout.models.types import MoneyType, PercentType


class RankTierConfig(Base):
    """Balance corridor, profit split and bonus depth of one rank tier."""

    __tablename__ = "rank_tier_configs"

    id: Mapped[int] = mapped_column(primary_key=True)

    # RankTier value: STARTER, BEGINNER, INVESTOR, VIP, VVIP
    tier: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )

    display_name: Mapped[str] = mapped_column(String(50), nullable=False)

    # Balance corridor [min_balance, max_balance); NULL max = unbounded
    min_balance: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    max_balance: Mapped[Decimal | None] = mapped_column(
        MoneyType, nullable=True
    )

    # Deepest referral level this tier receives commission at (0 = none)
    bonus_levels: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Profit split in percent, sums to 100
    profit_share_user: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )
    profit_share_company: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, index=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def contains(self, balance: Decimal) -> bool:
        """
        Check whether balance falls inside this tier's corridor.

        Args:
            balance: Balance to check (already network-scaled)

        Returns:
            True if min_balance <= balance < max_balance
        """
        if balance < self.min_balance:
            return False
        return self.max_balance is None or balance < self.max_balance

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RankTierConfig(id={self.id}, tier={self.tier}, "
            f"min_balance={self.min_balance}, "
            f"max_balance={self.max_balance}, "
            f"bonus_levels={self.bonus_levels})>"
        )
