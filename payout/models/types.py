"""
Standard type definitions for database models.

Provides consistent types for monetary and percentage fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for balances, profits, bonuses
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Percentage type for profit shares, trading results and level rates
# Precision: 8 digits total, 4 after decimal point
# Range: -9999.9999 to 9999.9999
PercentType = DECIMAL(8, 4)
