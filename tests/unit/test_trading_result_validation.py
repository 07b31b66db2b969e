"""Tests for trading result and level bonus validators."""

from datetime import date
from decimal import Decimal

import pytest

from payout.validators import (
    validate_level_bonus_entries,
    validate_profit_percent,
    validate_trading_date,
)


class TestValidateProfitPercent:
    """Signed percentage input."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2.5", Decimal("2.5")),
            ("-1", Decimal("-1")),
            ("0", Decimal("0")),
            (" 3,75 ", Decimal("3.75")),
            (10, Decimal("10")),
            (Decimal("-100"), Decimal("-100")),
            ("1000", Decimal("1000")),
        ],
    )
    def test_valid(self, value, expected):
        assert validate_profit_percent(value) == (True, expected, None)

    @pytest.mark.parametrize(
        "value",
        ["", "   ", None, "abc", "NaN", "Infinity", "-100.01", "1000.5", "1.23456", True],
    )
    def test_invalid(self, value):
        is_valid, parsed, error = validate_profit_percent(value)

        assert is_valid is False
        assert parsed is None
        assert error

    def test_below_total_loss_message(self):
        assert validate_profit_percent("-150")[2] == "Profit percent cannot be below -100"


class TestValidateTradingDate:
    """Trading date input."""

    def test_iso_string(self):
        assert validate_trading_date("2024-06-01", today=date(2024, 6, 2)) == (
            True,
            date(2024, 6, 1),
            None,
        )

    def test_date_object(self):
        assert validate_trading_date(date(2024, 6, 2), today=date(2024, 6, 2))[0]

    def test_future_date_rejected(self):
        is_valid, _, error = validate_trading_date("2024-06-03", today=date(2024, 6, 2))

        assert is_valid is False
        assert "future" in error

    @pytest.mark.parametrize("value", ["", "06/01/2024", "2024-13-01", None])
    def test_bad_format(self, value):
        assert validate_trading_date(value)[0] is False


class TestValidateLevelBonusEntries:
    """Operator-submitted level table."""

    def test_valid(self):
        is_valid, percentages, error = validate_level_bonus_entries(
            [{"level": 2, "percentage": "4"}, {"level": 1, "percentage": 20}]
        )

        assert is_valid is True
        assert percentages == {1: Decimal("20"), 2: Decimal("4")}
        assert error is None

    @pytest.mark.parametrize(
        "entries",
        [
            [],
            [{"level": 0, "percentage": 5}],
            [{"level": 11, "percentage": 5}],
            [{"level": 1, "percentage": 101}],
            [{"level": 1, "percentage": -1}],
            [{"level": 1, "percentage": 5}, {"level": 1, "percentage": 4}],
            [{"level": 1, "percentage": 5}, {"level": 3, "percentage": 4}],
            [{"percentage": 5}],
            [{"level": "x", "percentage": 5}],
        ],
    )
    def test_invalid(self, entries):
        assert validate_level_bonus_entries(entries)[0] is False
