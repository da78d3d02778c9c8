"""
Validators package.

Provides common validation functions for engine input.
"""

from stakeledger.validators.common import (
    validate_amount,
    validate_lock_period,
    validate_referral_code,
    validate_telegram_id,
    validate_wallet_address,
)


__all__ = [
    "validate_amount",
    "validate_lock_period",
    "validate_referral_code",
    "validate_telegram_id",
    "validate_wallet_address",
]
