"""
Global settings repository.

Data access layer for the GlobalSettings singleton.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.models.global_settings import GlobalSettings
from stakeledger.repositories.base import BaseRepository


class GlobalSettingsRepository(BaseRepository[GlobalSettings]):
    """Repository for the settings singleton row."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize global settings repository."""
        super().__init__(GlobalSettings, session)

    async def get_settings(self) -> GlobalSettings:
        """
        Get the settings row, creating it with defaults on first access.

        Returns:
            GlobalSettings singleton
        """
        stmt = select(GlobalSettings).order_by(GlobalSettings.id).limit(1)
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            row = await self.create()
        return row

    async def update_settings(self, **data: Any) -> GlobalSettings:
        """
        Update the settings singleton.

        Args:
            **data: Fields to change

        Returns:
            Updated settings row
        """
        row = await self.get_settings()
        for key, value in data.items():
            setattr(row, key, value)

        await self.session.flush()
        await self.session.refresh(row)
        return row
