"""
ReferralEarning model.

Tracks individual commission credits for claiming.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
)
from sqlalchemy.orm import Mapped, mapped_column

from stakeledger.models.base import Base
from stakeledger.models.types import MoneyType, UTCDateTime
from stakeledger.utils.datetime_utils import utc_now


class ReferralEarning(Base):
    """
    ReferralEarning entity.

    One commission credit along a referral edge:
    - Amount credited to the referrer
    - Stake whose reward produced it
    - Claim status

    Attributes:
        id: Primary key
        referral_id: Referral edge the commission flowed along
        referrer_id: Account credited (copied from the edge)
        source_stake_id: Stake whose closing reward was the base
        amount: Commission amount
        paid: True once claimed
        paid_at: Claim timestamp
        created_at: Credit timestamp
    """

    __tablename__ = "referral_earnings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    referral_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("referrals.id"), nullable=False, index=True
    )
    referrer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=False, index=True
    )
    source_stake_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("stakes.id"), nullable=True
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    paid: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )

    @property
    def is_pending(self) -> bool:
        """Check if earning is still claimable."""
        return not self.paid

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ReferralEarning(id={self.id}, "
            f"referral_id={self.referral_id}, "
            f"amount={self.amount}, "
            f"paid={self.paid})"
        )


# Composite indexes
Index(
    "idx_referral_earning_referrer_paid",
    ReferralEarning.referrer_id,
    ReferralEarning.paid,
)
