"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from collections.abc import Callable
from datetime import UTC, datetime


# Injectable time source (tests pass a controllable clock)
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Return ``value`` as an aware UTC datetime.

    Naive datetimes are assumed to already be UTC (SQLite drops tzinfo).

    Args:
        value: Datetime to normalize

    Returns:
        Timezone-aware UTC datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
