"""
Account model.

Represents one registered wallet identity in the referral network.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from stakeledger.models.base import Base
from stakeledger.models.types import MoneyType, UTCDateTime
from stakeledger.utils.datetime_utils import utc_now


class Account(Base):
    """Account model - registered wallets with denormalized totals."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            "total_staked >= 0", name="check_account_total_staked_non_negative"
        ),
        CheckConstraint(
            "total_earned >= 0", name="check_account_total_earned_non_negative"
        ),
        CheckConstraint(
            "referral_earnings >= 0",
            name="check_account_referral_earnings_non_negative",
        ),
        CheckConstraint(
            "total_referrals >= 0",
            name="check_account_total_referrals_non_negative",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Identity
    wallet_address: Mapped[str] = mapped_column(
        String(42), nullable=False, unique=True, index=True
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True
    )
    telegram_id: Mapped[str | None] = mapped_column(
        String(32), nullable=True, unique=True
    )

    # Upward referrer (direct sponsor)
    referrer_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Aggregates (derived, see AccountingService)
    total_staked: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    # Pending (unclaimed) referral commission
    referral_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    # Direct (level 1) referrals only
    total_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    is_registered: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Account(id={self.id}, wallet={self.wallet_address}, "
            f"code={self.referral_code}, referrer_id={self.referrer_id})>"
        )
