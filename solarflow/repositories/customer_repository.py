"""
Customer repository.

Data access layer for Customer model (the referral graph store).
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.models.customer import Customer
from solarflow.repositories.base import BaseRepository


class CustomerRepository(BaseRepository[Customer]):
    """Customer repository with referral graph queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize customer repository."""
        super().__init__(Customer, session)

    async def get_by_referral_code(
        self, referral_code: str
    ) -> Customer | None:
        """
        Get customer by referral code.

        Args:
            referral_code: Normalized referral code

        Returns:
            Customer or None
        """
        return await self.get_by(referral_code=referral_code)

    async def get_by_mobile(self, mobile: str) -> Customer | None:
        """
        Get customer by mobile number.

        Args:
            mobile: Mobile number

        Returns:
            Customer or None
        """
        return await self.get_by(mobile=mobile)

    async def get_referrer_id(self, customer_id: int) -> tuple[bool, int | None]:
        """
        Read only the referrer pointer of a customer.

        Args:
            customer_id: Customer ID

        Returns:
            Tuple of (customer exists, referred_by_id)
        """
        stmt = select(Customer.referred_by_id).where(Customer.id == customer_id)
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return False, None
        return True, row[0]

    async def get_direct_referral_ids(
        self, referrer_ids: list[int]
    ) -> list[int]:
        """
        Get IDs of customers directly referred by any of the given customers.

        Args:
            referrer_ids: Referrer customer IDs

        Returns:
            List of downline customer IDs one level below
        """
        if not referrer_ids:
            return []

        stmt = select(Customer.id).where(
            Customer.referred_by_id.in_(referrer_ids)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
