"""
Trading result validators.

Each validator returns a tuple of (is_valid, parsed_value, error_message).
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from payout.config.rank_tiers import MAX_REFERRAL_DEPTH

# A trade cannot lose more than its notional
MIN_PROFIT_PERCENT = Decimal("-100")
MAX_PROFIT_PERCENT = Decimal("1000")


def validate_profit_percent(
    value: str | int | float | Decimal,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Validate a trading result percentage.

    Args:
        value: Percentage as entered (e.g. "2.5" or "-1")

    Returns:
        Tuple of (is_valid, parsed_percent, error_message)

    Examples:
        >>> validate_profit_percent("2.5")
        (True, Decimal('2.5'), None)
        >>> validate_profit_percent("-150")
        (False, None, "Profit percent cannot be below -100")
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return False, None, "Profit percent cannot be empty"

    if isinstance(value, bool):
        return False, None, "Profit percent must be a number"

    try:
        text = value.strip().replace(",", ".") if isinstance(value, str) else str(value)
        percent = Decimal(text)
    except (InvalidOperation, ValueError):
        return False, None, "Profit percent must be a number"

    if not percent.is_finite():
        return False, None, "Profit percent must be a number"

    if percent < MIN_PROFIT_PERCENT:
        return False, None, "Profit percent cannot be below -100"

    if percent > MAX_PROFIT_PERCENT:
        return False, None, "Profit percent cannot exceed 1000"

    # PercentType keeps 4 decimal places
    if percent.as_tuple().exponent < -4:
        return False, None, "Profit percent allows at most 4 decimal places"

    return True, percent, None


def validate_trading_date(
    value: str | date,
    today: date | None = None,
) -> tuple[bool, date | None, str | None]:
    """
    Validate a trading date.

    Args:
        value: ISO date string (YYYY-MM-DD) or date
        today: Reference date for the future check

    Returns:
        Tuple of (is_valid, parsed_date, error_message)
    """
    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date.fromisoformat(value.strip())
        except ValueError:
            return False, None, "Trading date must be in YYYY-MM-DD format"
    else:
        return False, None, "Trading date cannot be empty"

    if parsed > (today or date.today()):
        return False, None, "Trading date cannot be in the future"

    return True, parsed, None


def validate_level_bonus_entries(
    entries: list[dict],
) -> tuple[bool, dict[int, Decimal] | None, str | None]:
    """
    Validate level bonus entries as submitted by an operator.

    Args:
        entries: [{"level": 1, "percentage": 20}, ...]

    Returns:
        Tuple of (is_valid, {level: percentage}, error_message)
    """
    if not entries:
        return False, None, "At least one level is required"

    percentages: dict[int, Decimal] = {}
    for entry in entries:
        try:
            level = int(entry["level"])
            percentage = Decimal(str(entry["percentage"]))
        except (KeyError, TypeError, ValueError, InvalidOperation):
            return False, None, f"Malformed level entry: {entry!r}"

        if not 1 <= level <= MAX_REFERRAL_DEPTH:
            return False, None, f"Level must be between 1 and {MAX_REFERRAL_DEPTH}"
        if level in percentages:
            return False, None, f"Level {level} is listed twice"
        if not percentage.is_finite() or not 0 <= percentage <= 100:
            return False, None, f"Level {level}: percentage must be between 0 and 100"

        percentages[level] = percentage

    if sorted(percentages) != list(range(1, len(percentages) + 1)):
        return False, None, "Levels must be contiguous starting at 1"

    return True, percentages, None
