"""
Commission repository.

Data access layer for the commission ledger.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.models.commission import Commission
from solarflow.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Commission ledger repository (insert-only)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def get_by_booking(self, booking_id: int) -> list[Commission]:
        """
        Get ledger rows written for a booking.

        Args:
            booking_id: Booking ID

        Returns:
            List of commissions ordered by level
        """
        stmt = (
            select(Commission)
            .where(Commission.booking_id == booking_id)
            .order_by(Commission.level_from_downline)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_by_level(self, customer_id: int) -> dict[int, Decimal]:
        """
        Total commission received per downline level.

        Args:
            customer_id: Recipient customer ID

        Returns:
            Dict level -> total amount
        """
        stmt = (
            select(
                Commission.level_from_downline,
                func.sum(Commission.amount).label("total"),
            )
            .where(Commission.customer_id == customer_id)
            .group_by(Commission.level_from_downline)
        )
        result = await self.session.execute(stmt)
        return {
            row.level_from_downline: Decimal(str(row.total or 0))
            for row in result.all()
        }

    async def get_recent_for_recipient(
        self, customer_id: int, limit: int = 10
    ) -> list[Commission]:
        """
        Get newest commissions received by a customer.

        Args:
            customer_id: Recipient customer ID
            limit: Max rows

        Returns:
            Commissions, newest first
        """
        stmt = (
            select(Commission)
            .where(Commission.customer_id == customer_id)
            .order_by(Commission.created_at.desc(), Commission.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
