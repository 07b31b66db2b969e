"""
Tests for rank resolution.

Covers:
- Tier boundaries (inclusive minimum, exclusive maximum)
- Floor policy for below-minimum, zero and negative balances
- Network scaling
- Share split and bonus depth lookups
"""

from decimal import Decimal

import pytest

from payout.config.rank_tiers import RankTier
from payout.services.distribution.config_snapshot import (
    ConfigSnapshot,
    LevelBonusTable,
    RankTable,
)
from payout.services.distribution.rank_resolver import RankResolver
from payout.utils.exceptions import ConfigurationError


class TestResolveRank:
    """Balance to tier mapping."""

    @pytest.mark.parametrize(
        "balance, expected",
        [
            ("100", RankTier.STARTER),
            ("499.99999999", RankTier.STARTER),
            ("500", RankTier.BEGINNER),
            ("999.99", RankTier.BEGINNER),
            ("1000", RankTier.INVESTOR),
            ("1060", RankTier.INVESTOR),
            ("5000", RankTier.VIP),
            ("9999.99999999", RankTier.VIP),
            ("10000", RankTier.VVIP),
            ("25000000", RankTier.VVIP),
        ],
    )
    def test_tier_boundaries(self, resolver, balance, expected):
        """Minimum is inclusive, next tier starts at the maximum."""
        assert resolver.resolve_rank(Decimal(balance)) == expected

    @pytest.mark.parametrize("balance", ["99.99", "1", "0", "-10", "-5000"])
    def test_floor_policy(self, resolver, balance):
        """Anything below the lowest minimum resolves to the lowest tier."""
        assert resolver.resolve_rank(Decimal(balance)) == RankTier.STARTER

    def test_network_scale_argument(self, resolver):
        """Testnet balances are multiplied before comparison."""
        assert resolver.resolve_rank(Decimal("10"), Decimal("100")) == RankTier.INVESTOR
        assert resolver.resolve_rank(Decimal("1"), Decimal("100")) == RankTier.STARTER
        assert resolver.resolve_rank(Decimal("100"), Decimal("100")) == RankTier.VVIP

    def test_snapshot_network_scale_is_default(self):
        """Without an argument the snapshot's scale applies."""
        resolver = RankResolver(
            ConfigSnapshot(
                rank_table=RankTable.defaults(),
                level_bonuses=LevelBonusTable.defaults(),
                network_scale=Decimal("100"),
            )
        )

        assert resolver.resolve_rank(Decimal("50")) == RankTier.VIP


class TestTierLookups:
    """Share split and bonus depth."""

    def test_share_split(self, resolver):
        """INVESTOR keeps 60%, company retains 40%."""
        assert resolver.get_share_split(RankTier.INVESTOR) == (
            Decimal("60"),
            Decimal("40"),
        )

    def test_share_split_accepts_value(self, resolver):
        """Stored rank strings work too."""
        assert resolver.get_share_split("VIP") == (Decimal("80"), Decimal("20"))

    @pytest.mark.parametrize(
        "tier, depth",
        [
            (RankTier.STARTER, 0),
            (RankTier.BEGINNER, 3),
            (RankTier.INVESTOR, 7),
            (RankTier.VIP, 10),
            (RankTier.VVIP, 10),
        ],
    )
    def test_bonus_depth(self, resolver, tier, depth):
        assert resolver.get_bonus_depth(tier) == depth

    def test_eligibility(self, resolver):
        """Eligible down to and including the tier's bonus depth."""
        assert resolver.is_eligible(RankTier.BEGINNER, 3) is True
        assert resolver.is_eligible(RankTier.BEGINNER, 4) is False
        assert resolver.is_eligible(RankTier.STARTER, 1) is False

    def test_unknown_tier_raises(self, resolver):
        """Unknown tiers are a configuration error, not a silent default."""
        with pytest.raises(ConfigurationError):
            resolver.get_share_split("PLATINUM")

        with pytest.raises(ConfigurationError):
            resolver.get_bonus_depth("PLATINUM")
