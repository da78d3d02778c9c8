"""
Stake model.

Represents one staking commitment and its lifecycle.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from stakeledger.models.base import Base
from stakeledger.models.enums import StakeState
from stakeledger.models.types import MoneyType, PercentType, UTCDateTime


class Stake(Base):
    """Stake model - locked principal earning a fixed monthly rate."""

    __tablename__ = "stakes"
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_stake_amount_positive"),
        CheckConstraint(
            "earned_amount >= 0", name="check_stake_earned_non_negative"
        ),
        CheckConstraint(
            "lock_period_months > 0", name="check_stake_lock_period_positive"
        ),
        Index("idx_stake_account_active", "account_id", "is_active"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Owner
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Terms (immutable once created)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    lock_period_months: Mapped[int] = mapped_column(Integer, nullable=False)
    apy_rate: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )  # monthly percent

    # Written once, at close
    earned_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Timeline
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False
    )  # maturity = start_date + lock duration
    closed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    # Status
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    can_unstake: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )  # monotonic
    close_reason: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )  # unstake, emergency

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Stake(id={self.id}, account_id={self.account_id}, "
            f"amount={self.amount}, months={self.lock_period_months}, "
            f"state={self.state})>"
        )

    @property
    def state(self) -> StakeState:
        """Lifecycle state derived from the persisted flags."""
        if not self.is_active:
            return StakeState.CLOSED
        if self.can_unstake:
            return StakeState.UNLOCKABLE
        return StakeState.LOCKED

    @property
    def monthly_reward(self) -> Decimal:
        """Fixed reward per whole period: amount * apy_rate / 100."""
        return self.amount * self.apy_rate / 100

    def is_mature(self, now: datetime) -> bool:
        """Check if the lock period has elapsed at ``now``."""
        return now >= self.end_date
