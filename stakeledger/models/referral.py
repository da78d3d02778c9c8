"""
Referral model.

Represents one edge of the multi-level referral network.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from stakeledger.models.base import Base
from stakeledger.models.types import MoneyType, PercentType, UTCDateTime
from stakeledger.utils.datetime_utils import utc_now


class Referral(Base):
    """Referral model - multi-level referral relationships."""

    __tablename__ = "referrals"
    __table_args__ = (
        UniqueConstraint(
            "referred_id", "level", name="uq_referral_referred_level"
        ),
        UniqueConstraint(
            "referrer_id", "referred_id", name="uq_referral_referrer_referred"
        ),
        CheckConstraint(
            "level >= 1 AND level <= 25", name="check_referral_level_range"
        ),
        CheckConstraint(
            "total_earned >= 0", name="check_referral_total_earned_non_negative"
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Referrer (ancestor who receives commission)
    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Referred (the newly joined account)
    referred_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Referral level (1-25), 1 = direct
    level: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # Frozen at creation from the commission rate table
    commission_rate: Mapped[Decimal] = mapped_column(
        PercentType, nullable=False
    )

    # Total commission credited along this edge
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, referrer_id={self.referrer_id}, "
            f"referred_id={self.referred_id}, level={self.level}, "
            f"rate={self.commission_rate})>"
        )
