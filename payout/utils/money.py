"""
Money rounding helpers.

Every ledger amount is rounded exactly once, when it is persisted, with
banker's rounding to MoneyType precision.
"""

from decimal import ROUND_HALF_EVEN, Decimal

from payout.config.rank_tiers import MONEY_QUANT

HUNDRED = Decimal("100")


def quantize_money(amount: Decimal) -> Decimal:
    """
    Round amount to ledger precision.

    Args:
        amount: Unrounded amount

    Returns:
        Amount rounded half-even to 8 decimal places

    Example:
        >>> quantize_money(Decimal("0.000000125"))
        Decimal('0.00000012')
    """
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_EVEN)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """
    Apply a percentage without rounding.

    Args:
        amount: Base amount
        percent: Percentage (e.g. 60 for 60%)

    Returns:
        amount * percent / 100
    """
    return amount * percent / HUNDRED
