"""
Built-in rank tier and level bonus defaults.

Single source of truth for the default rank table and level bonus
percentages. Both can be overridden from the database (rank_tier_configs
table and the LEVEL_BONUS_PERCENTAGES system setting).
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple


class RankTier(str, Enum):
    """Balance-derived rank tiers, lowest first."""

    STARTER = "STARTER"
    BEGINNER = "BEGINNER"
    INVESTOR = "INVESTOR"
    VIP = "VIP"
    VVIP = "VVIP"


class RankTierDefaults(NamedTuple):
    """Default configuration of one rank tier."""

    tier: RankTier
    display_name: str
    min_balance: Decimal
    max_balance: Decimal | None  # exclusive, None = unbounded
    bonus_levels: int  # deepest referral level this tier earns on
    profit_share_user: Decimal  # percent
    profit_share_company: Decimal  # percent


# Referral walks never go past this many hops
MAX_REFERRAL_DEPTH = 10

# Balance multiplier on test networks (thresholds are 1/100th of production)
TESTNET_NETWORK_SCALE = Decimal("100")

# Ledger precision: 8 places, same as MoneyType
MONEY_QUANT = Decimal("0.00000001")

RANK_TIERS: tuple[RankTierDefaults, ...] = (
    RankTierDefaults(
        tier=RankTier.STARTER,
        display_name="Starter",
        min_balance=Decimal("100"),
        max_balance=Decimal("500"),
        bonus_levels=0,
        profit_share_user=Decimal("50"),
        profit_share_company=Decimal("50"),
    ),
    RankTierDefaults(
        tier=RankTier.BEGINNER,
        display_name="Beginner",
        min_balance=Decimal("500"),
        max_balance=Decimal("1000"),
        bonus_levels=3,
        profit_share_user=Decimal("55"),
        profit_share_company=Decimal("45"),
    ),
    RankTierDefaults(
        tier=RankTier.INVESTOR,
        display_name="Investor",
        min_balance=Decimal("1000"),
        max_balance=Decimal("5000"),
        bonus_levels=7,
        profit_share_user=Decimal("60"),
        profit_share_company=Decimal("40"),
    ),
    RankTierDefaults(
        tier=RankTier.VIP,
        display_name="VIP",
        min_balance=Decimal("5000"),
        max_balance=Decimal("10000"),
        bonus_levels=10,
        profit_share_user=Decimal("80"),
        profit_share_company=Decimal("20"),
    ),
    RankTierDefaults(
        tier=RankTier.VVIP,
        display_name="VVIP",
        min_balance=Decimal("10000"),
        max_balance=None,
        bonus_levels=10,
        profit_share_user=Decimal("80"),
        profit_share_company=Decimal("20"),
    ),
)

# Commission percentage per referral level
DEFAULT_LEVEL_BONUSES: dict[int, Decimal] = {
    1: Decimal("20"),
    2: Decimal("4"),
    3: Decimal("4"),
    4: Decimal("4"),
    5: Decimal("4"),
    6: Decimal("4"),
    7: Decimal("4"),
    8: Decimal("4"),
    9: Decimal("4"),
    10: Decimal("4"),
}

# system_settings key holding the level bonus table as JSON
LEVEL_BONUS_SETTING_KEY = "LEVEL_BONUS_PERCENTAGES"
