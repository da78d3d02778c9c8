"""
Global Settings model.

Stores operational switches configurable by administrators.
Singleton pattern (only one row expected).
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Boolean, Integer
from sqlalchemy.orm import Mapped, mapped_column

from stakeledger.models.base import Base
from stakeledger.models.types import UTCDateTime
from stakeledger.utils.datetime_utils import utc_now


class GlobalSettings(Base):
    """Global settings model."""

    __tablename__ = "global_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Emergency stop flags
    is_paused: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    emergency_unstake_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    last_updated: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )

    def snapshot(self) -> "SettingsSnapshot":
        """Immutable copy of the current row."""
        return SettingsSnapshot(
            is_paused=self.is_paused,
            emergency_unstake_enabled=self.emergency_unstake_enabled,
            last_updated=self.last_updated,
        )

    def __repr__(self) -> str:
        return (
            f"<GlobalSettings(paused={self.is_paused}, "
            f"emergency_unstake={self.emergency_unstake_enabled})>"
        )


@dataclass(frozen=True)
class SettingsSnapshot:
    """Consistent read of the settings singleton."""

    is_paused: bool
    emergency_unstake_enabled: bool
    last_updated: datetime

    @property
    def emergency_unstake_available(self) -> bool:
        """Emergency exit needs both the pause and the explicit switch."""
        return self.is_paused and self.emergency_unstake_enabled
