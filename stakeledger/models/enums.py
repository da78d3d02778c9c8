"""
Model enumerations.
"""

from enum import StrEnum


class StakeState(StrEnum):
    """Stake lifecycle state."""

    LOCKED = "locked"
    UNLOCKABLE = "unlockable"
    CLOSED = "closed"


class CloseReason(StrEnum):
    """How a stake reached the closed state."""

    UNSTAKE = "unstake"  # normal close, reward credited
    EMERGENCY = "emergency"  # principal only, reward forfeited
