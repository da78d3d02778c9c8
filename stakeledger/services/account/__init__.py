"""Account services package."""

from stakeledger.services.account.registration import (
    AccountRegistrationService,
    generate_referral_code,
    normalize_wallet,
)


__all__ = [
    "AccountRegistrationService",
    "generate_referral_code",
    "normalize_wallet",
]
