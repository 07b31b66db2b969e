"""
Validators package.

Provides validation functions for operator input.
"""

from payout.validators.trading_result import (
    validate_level_bonus_entries,
    validate_profit_percent,
    validate_trading_date,
)


__all__ = [
    "validate_profit_percent",
    "validate_trading_date",
    "validate_level_bonus_entries",
]
