"""
Stake reward calculator.

Pure calculation logic for stake maturity and reward accrual. No database
access; the lifecycle manager and the dashboard projection both use it.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_DOWN, Decimal

from stakeledger.config.business_constants import (
    MONEY_QUANTUM,
    PERIOD,
    get_lock_period,
)
from stakeledger.utils.exceptions import ValidationError


@dataclass(frozen=True)
class StakeProjection:
    """Expected outcome of a stake held to maturity."""

    amount: Decimal
    lock_period_months: int
    apy_rate: Decimal
    monthly_reward: Decimal
    total_rewards: Decimal
    total_payout: Decimal


class StakeRewardCalculator:
    """
    Simple-interest reward calculator.

    Rewards accrue per whole period (30 days): partial periods are
    truncated, never prorated.
    """

    def __init__(self, period: timedelta = PERIOD) -> None:
        """
        Initialize calculator.

        Args:
            period: Length of one accrual period
        """
        self.period = period

    def calculate_monthly_reward(
        self, amount: Decimal, rate_percent: Decimal
    ) -> Decimal:
        """
        Reward for one whole period.

        Formula: (amount * rate_percent) / 100

        Args:
            amount: Stake principal
            rate_percent: Monthly rate as percentage (e.g. 10 = 10%)

        Returns:
            Reward per period

        Example:
            >>> calc = StakeRewardCalculator()
            >>> calc.calculate_monthly_reward(Decimal("1000"), Decimal("10"))
            Decimal('100')
        """
        if amount <= 0 or rate_percent < 0:
            return Decimal("0")
        return amount * rate_percent / 100

    def calculate_maturity(self, start: datetime, months: int) -> datetime:
        """
        Maturity timestamp: start + months whole periods.

        Args:
            start: Stake start
            months: Lock duration in periods

        Returns:
            Maturity timestamp
        """
        return start + self.period * months

    def calculate_elapsed_periods(self, start: datetime, now: datetime) -> int:
        """
        Whole periods between ``start`` and ``now`` (floor division).

        Args:
            start: Stake start
            now: Evaluation time

        Returns:
            Number of completed periods (0 if ``now`` precedes ``start``)
        """
        elapsed = now - start
        if elapsed <= timedelta(0):
            return 0
        return elapsed // self.period

    def calculate_reward(
        self, amount: Decimal, rate_percent: Decimal, periods: int
    ) -> Decimal:
        """
        Reward for a number of whole periods, 8 dp rounded down.

        Formula: (amount * rate_percent / 100) * periods

        Args:
            amount: Stake principal
            rate_percent: Monthly rate as percentage
            periods: Whole periods elapsed

        Returns:
            Total reward
        """
        if periods <= 0:
            return Decimal("0")
        reward = self.calculate_monthly_reward(amount, rate_percent) * periods
        return reward.quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)

    def calculate_accrued_reward(
        self,
        amount: Decimal,
        rate_percent: Decimal,
        start: datetime,
        now: datetime,
    ) -> Decimal:
        """
        Reward accrued from ``start`` to ``now``.

        Args:
            amount: Stake principal
            rate_percent: Monthly rate as percentage
            start: Stake start
            now: Evaluation time

        Returns:
            Reward for the whole periods elapsed
        """
        periods = self.calculate_elapsed_periods(start, now)
        return self.calculate_reward(amount, rate_percent, periods)

    def project(self, amount: Decimal, lock_period_months: int) -> StakeProjection:
        """
        Project the outcome of a stake held exactly to maturity.

        Args:
            amount: Principal
            lock_period_months: Lock duration (must be an offered period)

        Returns:
            StakeProjection

        Raises:
            ValidationError: If the duration is not offered or amount <= 0
        """
        lock_period = get_lock_period(lock_period_months)
        if lock_period is None:
            raise ValidationError(
                f"Unsupported lock period: {lock_period_months}",
                code="invalid_lock_period",
            )
        if amount <= 0:
            raise ValidationError(
                "Amount must be positive", code="invalid_amount"
            )

        monthly = self.calculate_monthly_reward(amount, lock_period.apy_rate)
        total_rewards = self.calculate_reward(
            amount, lock_period.apy_rate, lock_period.months
        )
        return StakeProjection(
            amount=amount,
            lock_period_months=lock_period.months,
            apy_rate=lock_period.apy_rate,
            monthly_reward=monthly,
            total_rewards=total_rewards,
            total_payout=amount + total_rewards,
        )
