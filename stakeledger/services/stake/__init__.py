"""
Stake services package.

- lifecycle: Stake creation, unlock transition, unstake paths
- reward_calculator: Pure reward/maturity arithmetic and projections
"""

from stakeledger.services.stake.lifecycle import StakeLifecycleManager
from stakeledger.services.stake.reward_calculator import (
    StakeProjection,
    StakeRewardCalculator,
)


__all__ = [
    "StakeLifecycleManager",
    "StakeRewardCalculator",
    "StakeProjection",
]
