"""
Ledger exceptions.

Defines categorized exception types so callers can tell a malformed
request from a missing entity or an entity in the wrong state.
"""

from typing import Any


class LedgerError(Exception):
    """
    Base class for all ledger rejections.

    Attributes:
        code: Machine-readable reason code
        message: Human-readable description
        details: Extra context for logs and API responses
    """

    default_code = "ledger_error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        **details: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(LedgerError, ValueError):
    """Malformed or out-of-range input. Raised before any write."""

    default_code = "invalid_input"


class NotFoundError(LedgerError):
    """Referenced account or stake does not exist."""

    default_code = "not_found"


class StateConflictError(LedgerError):
    """Entity exists but is in the wrong state for the operation."""

    default_code = "state_conflict"


class DuplicateError(LedgerError):
    """Uniqueness violation (wallet, referral code, messaging id)."""

    default_code = "duplicate"


# Exception categories based on handling strategy

# Caller mistakes - rejected without side effects, logged at warning level
CLIENT_ERRORS = (
    ValidationError,
    NotFoundError,
    StateConflictError,
    DuplicateError,
)


def is_client_error(exc: BaseException) -> bool:
    """
    Check if exception is an expected rejection rather than a fault.

    Args:
        exc: Exception to check

    Returns:
        True if the exception is one of the ledger rejection types
    """
    return isinstance(exc, CLIENT_ERRORS)
