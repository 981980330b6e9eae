"""
Commission settings repository.

Data access layer for the MlSettings singleton.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.models.ml_settings import MlSettings
from solarflow.repositories.base import BaseRepository


class MlSettingsRepository(BaseRepository[MlSettings]):
    """Singleton settings repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize settings repository."""
        super().__init__(MlSettings, session)

    async def get_or_create(self) -> MlSettings:
        """
        Get the settings row, creating it with defaults if absent.

        Returns:
            Settings singleton
        """
        stmt = select(MlSettings).order_by(MlSettings.id).limit(1)
        result = await self.session.execute(stmt)
        settings = result.scalar_one_or_none()

        if settings is None:
            settings = await self.create()

        return settings
