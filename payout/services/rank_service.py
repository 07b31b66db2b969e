"""
Rank service.

Re-derives a user's rank outside distribution runs, e.g. after a deposit or
withdrawal changed the balance.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from payout.config.rank_tiers import RankTier
from payout.services.base_service import BaseService, transaction
from payout.services.distribution.balance_writer import BalanceWriter
from payout.services.distribution.config_snapshot import ConfigLoader
from payout.services.distribution.rank_resolver import RankResolver


class RankService(BaseService):
    """Keeps stored ranks in step with balances."""

    def __init__(
        self, session: AsyncSession, network_scale: Decimal | None = None
    ) -> None:
        """
        Initialize rank service.

        Args:
            session: Database session
            network_scale: Override for the configured network scale
        """
        super().__init__(session)
        self.network_scale = network_scale
        self.config_loader = ConfigLoader(session)

    async def get_resolver(self) -> RankResolver:
        """Resolver over the current configuration."""
        return RankResolver(await self.config_loader.load(self.network_scale))

    @transaction
    async def refresh_user_rank(self, user_id: int) -> RankTier:
        """
        Re-resolve and persist a user's rank from the current balance.

        Args:
            user_id: User ID

        Returns:
            Resolved rank

        Raises:
            NotFoundError: If the user does not exist
            ConcurrencyConflictError: If the row kept changing underneath
        """
        writer = BalanceWriter(self.session, await self.get_resolver())
        change = await writer.apply_delta(user_id, Decimal("0"))
        return RankTier(change.new_rank)
