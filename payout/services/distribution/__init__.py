"""
Distribution services.

Rank resolution, profit distribution and referral bonus walks for trading
results.
"""

from payout.services.distribution.balance_writer import (
    BalanceChange,
    BalanceWriter,
)
from payout.services.distribution.bonus_walker import BonusWalker, WalkResult
from payout.services.distribution.config_snapshot import (
    ConfigLoader,
    ConfigSnapshot,
    LevelBonusTable,
    RankTable,
    RankTierEntry,
)
from payout.services.distribution.ledger_recorder import (
    LedgerRecorder,
    ReconciliationReport,
)
from payout.services.distribution.profit_distributor import (
    DistributionSummary,
    ProfitDistributor,
)
from payout.services.distribution.rank_resolver import RankResolver
from payout.services.distribution.runner import DistributionRunner

__all__ = [
    "BalanceChange",
    "BalanceWriter",
    "BonusWalker",
    "WalkResult",
    "ConfigLoader",
    "ConfigSnapshot",
    "LevelBonusTable",
    "RankTable",
    "RankTierEntry",
    "LedgerRecorder",
    "ReconciliationReport",
    "DistributionSummary",
    "ProfitDistributor",
    "RankResolver",
    "DistributionRunner",
]
