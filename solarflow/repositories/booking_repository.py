"""
Booking repository.

Data access layer for Booking model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.models.booking import Booking
from solarflow.repositories.base import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    """Booking repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize booking repository."""
        super().__init__(Booking, session)

    async def get_ids_batch(
        self, after_id: int = 0, limit: int = 500
    ) -> list[int]:
        """
        Get booking IDs in ascending order for batch processing.

        Args:
            after_id: Return IDs strictly greater than this
            limit: Batch size

        Returns:
            List of booking IDs
        """
        stmt = (
            select(Booking.id)
            .where(Booking.id > after_id)
            .order_by(Booking.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
