"""
Rank tier config repository.

Data access layer for RankTierConfig model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.rank_tier_config import RankTierConfig
from payout.repositories.base import BaseRepository


class RankTierConfigRepository(BaseRepository[RankTierConfig]):
    """Rank tier config repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize rank tier config repository."""
        super().__init__(RankTierConfig, session)

    async def get_ordered_tiers(
        self, active_only: bool = True
    ) -> list[RankTierConfig]:
        """
        Get tier configurations ordered by minimum balance.

        Args:
            active_only: If True, return only active tiers

        Returns:
            List of configs, lowest tier first
        """
        stmt = select(RankTierConfig).order_by(RankTierConfig.min_balance)

        if active_only:
            stmt = stmt.where(RankTierConfig.is_active == True)  # noqa: E712

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
