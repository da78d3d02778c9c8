"""
Referral system configuration.

The commission rate table: the single source of truth for per-level
commission, read by the chain builder and by any commission display.
"""

from collections.abc import Iterator
from decimal import Decimal

# 25-level referral program, rates in percent
REFERRAL_DEPTH = 25
REFERRAL_RATES: dict[int, Decimal] = {
    1: Decimal("12"),  # direct referrals
    2: Decimal("8"),
    3: Decimal("6"),
    4: Decimal("4"),
    5: Decimal("2"),
    **{level: Decimal("1") for level in range(6, 11)},
    **{level: Decimal("0.75") for level in range(11, 16)},
    **{level: Decimal("0.5") for level in range(16, 21)},
    **{level: Decimal("0.25") for level in range(21, 26)},
}


def get_commission_rate(level: int) -> Decimal | None:
    """
    Get commission rate for a referral level.

    Args:
        level: Referral level (1 = direct)

    Returns:
        Rate in percent, or None past the last level
    """
    return REFERRAL_RATES.get(level)


def iter_commission_rates() -> Iterator[tuple[int, Decimal]]:
    """Yield ``(level, rate)`` pairs in level order."""
    for level in range(1, REFERRAL_DEPTH + 1):
        yield level, REFERRAL_RATES[level]
