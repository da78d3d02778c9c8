"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from stakeledger.models.account import Account
from stakeledger.models.base import Base
from stakeledger.models.enums import CloseReason, StakeState
from stakeledger.models.global_settings import GlobalSettings, SettingsSnapshot
from stakeledger.models.referral import Referral
from stakeledger.models.referral_earning import ReferralEarning
from stakeledger.models.stake import Stake

__all__ = [
    # Base
    "Base",
    # Enums
    "StakeState",
    "CloseReason",
    # Core Models
    "Account",
    "Stake",
    "Referral",
    "ReferralEarning",
    # System Models
    "GlobalSettings",
    "SettingsSnapshot",
]
