"""
Unit tests for the commission rate table.

Tests cover:
- Table shape and per-level values
- Lookup past the last level
- Commission arithmetic and rounding
"""

from decimal import Decimal

import pytest

from stakeledger.services.referral.config import (
    REFERRAL_DEPTH,
    REFERRAL_RATES,
    get_commission_rate,
    iter_commission_rates,
)
from stakeledger.services.referral.earnings_manager import calculate_commission


class TestCommissionRateTable:
    """Test the 25-level rate schedule."""

    def test_depth_is_25(self):
        """Table covers levels 1 through 25."""
        assert REFERRAL_DEPTH == 25
        assert sorted(REFERRAL_RATES) == list(range(1, 26))

    @pytest.mark.parametrize(
        "level,expected",
        [
            (1, Decimal("12")),
            (2, Decimal("8")),
            (3, Decimal("6")),
            (4, Decimal("4")),
            (5, Decimal("2")),
            (6, Decimal("1")),
            (10, Decimal("1")),
            (11, Decimal("0.75")),
            (15, Decimal("0.75")),
            (16, Decimal("0.5")),
            (20, Decimal("0.5")),
            (21, Decimal("0.25")),
            (25, Decimal("0.25")),
        ],
    )
    def test_rate_per_level(self, level, expected):
        """Each level carries its scheduled rate."""
        assert get_commission_rate(level) == expected

    def test_rates_non_increasing(self):
        """Deeper levels never pay more than shallower ones."""
        rates = [rate for _, rate in iter_commission_rates()]
        assert rates == sorted(rates, reverse=True)

    @pytest.mark.parametrize("level", [0, 26, 100, -1])
    def test_no_rate_outside_table(self, level):
        """Missing rate is the walk's terminal condition, not an error."""
        assert get_commission_rate(level) is None

    def test_iter_is_ordered(self):
        """Display iteration yields (level, rate) from level 1."""
        pairs = list(iter_commission_rates())
        assert [level for level, _ in pairs] == list(range(1, 26))
        assert pairs[0] == (1, Decimal("12"))

    def test_total_payout_percent(self):
        """Whole upline shares 44.5% of a reward."""
        assert sum(REFERRAL_RATES.values()) == Decimal("44.5")


class TestCalculateCommission:
    """Test commission arithmetic."""

    def test_level_one_commission(self):
        """12% of 1200 is 144."""
        assert calculate_commission(Decimal("1200"), Decimal("12")) == Decimal(
            "144"
        )

    def test_fractional_rate(self):
        """0.25% of 100 is 0.25."""
        assert calculate_commission(Decimal("100"), Decimal("0.25")) == Decimal(
            "0.25"
        )

    def test_rounds_down_to_8_places(self):
        """Sub-quantum results truncate."""
        result = calculate_commission(Decimal("0.00000003"), Decimal("12"))
        assert result == Decimal("0")

        result = calculate_commission(Decimal("1.23456789"), Decimal("0.75"))
        assert result == Decimal("0.00925925")

    @pytest.mark.parametrize(
        "base,rate",
        [
            (Decimal("0"), Decimal("12")),
            (Decimal("-10"), Decimal("12")),
            (Decimal("100"), Decimal("0")),
        ],
    )
    def test_non_positive_inputs(self, base, rate):
        """Nothing is owed on zero or negative inputs."""
        assert calculate_commission(base, rate) == Decimal("0")
