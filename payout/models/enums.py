"""
Model enums.

String enums stored in the database as plain strings.
"""

from enum import Enum


class TransactionType(str, Enum):
    """Ledger transaction type."""

    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    PROFIT = "PROFIT"
    BONUS = "BONUS"


class TransactionStatus(str, Enum):
    """Ledger transaction status."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class BonusType(str, Enum):
    """Bonus history type."""

    NETWORK_LEVEL_BONUS = "NETWORK_LEVEL_BONUS"


class MarkerStatus(str, Enum):
    """Per-user distribution progress."""

    PENDING = "pending"
    COMPLETED = "completed"


class AdminActionType(str, Enum):
    """Audited operator actions."""

    INPUT_TRADING_RESULT = "INPUT_TRADING_RESULT"
    DISTRIBUTE_PROFIT = "DISTRIBUTE_PROFIT"
    UPDATE_LEVEL_BONUSES = "UPDATE_LEVEL_BONUSES"
