"""
Common validators for engine input.

Each validator returns a tuple of (is_valid, parsed_value, error_message).
"""

import re
from decimal import Decimal, InvalidOperation

from loguru import logger
from web3 import Web3

from stakeledger.config.business_constants import LOCK_PERIODS, LockPeriod

# Largest accepted principal; rewards and totals get wider columns
MAX_AMOUNT = Decimal("9999999999.99999999")

REFERRAL_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{4,20}$")


def validate_wallet_address(
    value: str,
) -> tuple[bool, str | None, str | None]:
    """
    Validate EVM wallet address.

    Args:
        value: String to validate as wallet address

    Returns:
        Tuple of (is_valid, checksummed_address, error_message)

    Examples:
        >>> validate_wallet_address("0x742d35cc6634c0532925a3b844bc9e7595f0beb0")
        (True, '0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0', None)
        >>> validate_wallet_address("invalid")
        (False, None, 'Address must start with 0x')
    """
    if not value or not isinstance(value, str):
        return False, None, "Address is empty"

    value = value.strip()

    if not value:
        return False, None, "Address is empty"

    if not value.startswith("0x"):
        return False, None, "Address must start with 0x"

    if len(value) != 42:
        return False, None, "Address must be 42 characters"

    try:
        int(value[2:], 16)
    except ValueError:
        return False, None, "Invalid address format"

    try:
        return True, Web3.to_checksum_address(value), None
    except (ValueError, TypeError) as e:
        logger.debug(f"Address validation failed for {value}: {e}")
        return False, None, "Invalid address format"


def validate_amount(
    value: Decimal | str | int,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Validate a stake amount.

    Args:
        value: Decimal, integer or numeric string

    Returns:
        Tuple of (is_valid, parsed_amount, error_message)

    Examples:
        >>> validate_amount("100.50")
        (True, Decimal('100.50'), None)
        >>> validate_amount("0")
        (False, None, 'Amount must be positive')
    """
    if isinstance(value, bool) or value is None:
        return False, None, "Amount is empty"

    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return False, None, "Amount is empty"

    if isinstance(value, float):
        return False, None, "Amount must be a Decimal, integer or string"

    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return False, None, "Invalid amount format"

    if not amount.is_finite():
        return False, None, "Amount must be a finite number"

    if amount <= 0:
        return False, None, "Amount must be positive"

    if amount > MAX_AMOUNT:
        return False, None, f"Amount must be <= {MAX_AMOUNT}"

    if amount.as_tuple().exponent < -8:
        return False, None, "Amount has too many decimal places (maximum 8)"

    return True, amount, None


def validate_lock_period(
    months: int,
) -> tuple[bool, LockPeriod | None, str | None]:
    """
    Validate a stake lock duration.

    Args:
        months: Requested lock duration in periods

    Returns:
        Tuple of (is_valid, lock_period, error_message)
    """
    if isinstance(months, bool) or not isinstance(months, int):
        return False, None, "Lock period must be an integer number of months"

    lock_period = LOCK_PERIODS.get(months)
    if lock_period is None:
        allowed = ", ".join(str(m) for m in sorted(LOCK_PERIODS))
        return False, None, f"Lock period must be one of: {allowed}"

    return True, lock_period, None


def validate_referral_code(
    value: str,
) -> tuple[bool, str | None, str | None]:
    """
    Validate a referral code.

    Args:
        value: Code as entered

    Returns:
        Tuple of (is_valid, stripped_code, error_message)
    """
    if not value or not isinstance(value, str):
        return False, None, "Referral code is empty"

    value = value.strip()

    if not REFERRAL_CODE_PATTERN.match(value):
        return (
            False,
            None,
            "Referral code must be 4-20 letters, digits, '-' or '_'",
        )

    return True, value, None


def validate_telegram_id(
    value: str | int,
) -> tuple[bool, str | None, str | None]:
    """
    Validate Telegram ID.

    Args:
        value: Telegram user ID as string or integer

    Returns:
        Tuple of (is_valid, normalized_id, error_message)

    Examples:
        >>> validate_telegram_id("123456789")
        (True, '123456789', None)
        >>> validate_telegram_id("-123")
        (False, None, 'Telegram ID must be a positive integer')
    """
    if isinstance(value, bool) or value is None:
        return False, None, "Telegram ID cannot be empty"

    text = str(value).strip()
    if not text:
        return False, None, "Telegram ID cannot be empty"

    try:
        telegram_id = int(text)
    except ValueError:
        return False, None, "Telegram ID must be a positive integer"

    if telegram_id <= 0:
        return False, None, "Telegram ID must be a positive integer"

    # Telegram IDs fit in 64 bits
    if telegram_id > 2**63 - 1:
        return False, None, "Telegram ID is too large"

    return True, str(telegram_id), None
