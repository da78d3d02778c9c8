"""
Business logic constants for the staking ledger.

Central location for staking rules used across the application.
Referral commission rates live in ``stakeledger.services.referral.config``.
"""

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal


# One accrual period. Maturity and reward accrual both count in these
# fixed 30-day "months", so a stake closed at maturity earns exactly
# monthly_reward * lock_period_months.
PERIOD_DAYS = 30
PERIOD = timedelta(days=PERIOD_DAYS)

# Money precision (matches the 8-place money columns)
MONEY_QUANTUM = Decimal("0.00000001")


@dataclass(frozen=True)
class LockPeriod:
    """Permitted stake lock duration and its monthly yield."""

    months: int
    label: str
    apy_rate: Decimal  # monthly rate, percent of principal

    @property
    def duration(self) -> timedelta:
        """Lock duration expressed in accrual periods."""
        return PERIOD * self.months


LOCK_PERIODS: dict[int, LockPeriod] = {
    12: LockPeriod(months=12, label="1 Year", apy_rate=Decimal("10")),
    24: LockPeriod(months=24, label="2 Years", apy_rate=Decimal("12")),
    36: LockPeriod(months=36, label="3 Years", apy_rate=Decimal("15")),
}


def get_lock_period(months: int) -> LockPeriod | None:
    """
    Get lock period configuration by duration.

    Args:
        months: Lock duration in periods

    Returns:
        LockPeriod or None if the duration is not offered
    """
    return LOCK_PERIODS.get(months)
