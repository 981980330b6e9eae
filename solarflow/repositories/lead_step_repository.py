"""
Lead step repository.

Data access layer for LeadStep model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.models.lead_step import LeadStep
from solarflow.repositories.base import BaseRepository


class LeadStepRepository(BaseRepository[LeadStep]):
    """Lead step repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize lead step repository."""
        super().__init__(LeadStep, session)

    async def list_for_booking(self, booking_id: int) -> list[LeadStep]:
        """
        Get steps of a booking ordered by position.

        Args:
            booking_id: Booking ID

        Returns:
            Steps ordered by `order` ascending
        """
        stmt = (
            select(LeadStep)
            .where(LeadStep.booking_id == booking_id)
            .order_by(LeadStep.order)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_update(self, step_id: int) -> LeadStep | None:
        """
        Get step with a row lock (serializes completions of one step).

        The locked row overwrites any copy already in the identity map.

        Args:
            step_id: Step ID

        Returns:
            Step or None
        """
        stmt = (
            select(LeadStep)
            .where(LeadStep.id == step_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
