"""
Services.

Business logic layer.
"""

from payout.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from payout.services.distribution import (
    DistributionRunner,
    DistributionSummary,
    ProfitDistributor,
)
from payout.services.level_bonus_service import LevelBonusService
from payout.services.rank_service import RankService
from payout.services.trading_result_service import TradingResultService

__all__ = [
    "BaseService",
    "log_operation",
    "transaction",
    "DistributionRunner",
    "DistributionSummary",
    "ProfitDistributor",
    "LevelBonusService",
    "RankService",
    "TradingResultService",
]
