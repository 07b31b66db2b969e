"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from payout.models.admin_action import AdminAction
from payout.models.base import Base
from payout.models.bonus_history import BonusHistory
from payout.models.distribution_marker import DistributionMarker
from payout.models.enums import (
    AdminActionType,
    BonusType,
    MarkerStatus,
    TransactionStatus,
    TransactionType,
)
from payout.models.profit_history import ProfitHistory
from payout.models.rank_tier_config import RankTierConfig
from payout.models.system_setting import SystemSetting
from payout.models.trading_result import TradingResult
from payout.models.transaction import Transaction
from payout.models.user import User


__all__ = [
    "Base",
    # Accounts
    "User",
    # Configuration
    "RankTierConfig",
    "SystemSetting",
    # Distribution
    "TradingResult",
    "DistributionMarker",
    # Ledger
    "ProfitHistory",
    "BonusHistory",
    "Transaction",
    # Audit
    "AdminAction",
    # Enums
    "AdminActionType",
    "BonusType",
    "MarkerStatus",
    "TransactionStatus",
    "TransactionType",
]
