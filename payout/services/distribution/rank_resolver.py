"""
Rank resolver.

Pure balance → tier resolution over a ConfigSnapshot.
"""

from decimal import Decimal

from loguru import logger

from payout.config.rank_tiers import RankTier
from payout.services.distribution.config_snapshot import ConfigSnapshot


class RankResolver:
    """
    Resolves ranks and tier parameters from one config snapshot.

    Floor policy: a scaled balance below the lowest tier's minimum, zero or
    negative included, resolves to the lowest tier. Negative balances are
    logged but never rejected.
    """

    def __init__(self, snapshot: ConfigSnapshot) -> None:
        """
        Initialize rank resolver.

        Args:
            snapshot: Configuration of the current run
        """
        self.snapshot = snapshot
        self.rank_table = snapshot.rank_table

    def resolve_rank(
        self, balance: Decimal, network_scale: Decimal | None = None
    ) -> RankTier:
        """
        Resolve tier for a balance.

        Args:
            balance: Current balance
            network_scale: Multiplier applied before comparison
                (defaults to the snapshot's network scale)

        Returns:
            Highest tier whose min_balance <= balance * network_scale,
            or the lowest tier when none qualifies
        """
        scale = network_scale if network_scale is not None else self.snapshot.network_scale
        scaled = balance * scale

        if balance < 0:
            logger.warning(
                "Resolving rank for negative balance, using floor tier",
                extra={"balance": str(balance)},
            )

        resolved = self.rank_table.lowest
        for entry in self.rank_table:
            if entry.min_balance <= scaled:
                resolved = entry
            else:
                break

        return resolved.tier

    def get_share_split(self, tier: RankTier | str) -> tuple[Decimal, Decimal]:
        """
        Profit split of a tier.

        Args:
            tier: Rank tier

        Returns:
            (user share percent, company share percent)

        Raises:
            ConfigurationError: If the tier is unknown
        """
        entry = self.rank_table.get(tier)
        return entry.profit_share_user, entry.profit_share_company

    def get_bonus_depth(self, tier: RankTier | str) -> int:
        """
        Deepest referral level a tier receives commission at.

        Args:
            tier: Rank tier

        Returns:
            Bonus depth (0 = none)

        Raises:
            ConfigurationError: If the tier is unknown
        """
        return self.rank_table.get(tier).bonus_levels

    def is_eligible(self, tier: RankTier | str, level: int) -> bool:
        """Whether a tier earns commission at a referral level."""
        return level <= self.get_bonus_depth(tier)
