"""
Repositories.

Data access layer: one repository per entity collection.
"""

from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.repositories.base import BaseRepository
from stakeledger.repositories.global_settings_repository import (
    GlobalSettingsRepository,
)
from stakeledger.repositories.referral_earning_repository import (
    ReferralEarningRepository,
)
from stakeledger.repositories.referral_repository import ReferralRepository
from stakeledger.repositories.stake_repository import StakeRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "StakeRepository",
    "ReferralRepository",
    "ReferralEarningRepository",
    "GlobalSettingsRepository",
]
