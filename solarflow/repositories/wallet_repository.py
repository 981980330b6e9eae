"""
Wallet repository.

Data access layer for Wallet model.
"""

from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.models.wallet import Wallet
from solarflow.repositories.base import BaseRepository
from solarflow.utils.datetime_utils import utc_now


class WalletRepository(BaseRepository[Wallet]):
    """Wallet repository with atomic credit."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet repository."""
        super().__init__(Wallet, session)

    async def credit(self, customer_id: int, amount: Decimal) -> None:
        """
        Add amount to a customer's wallet, creating it on first credit.

        Uses a single UPDATE ... SET balance = balance + amount so concurrent
        credits do not lose increments.

        Args:
            customer_id: Wallet owner
            amount: Amount to add (> 0)
        """
        stmt = (
            update(Wallet)
            .where(Wallet.customer_id == customer_id)
            .values(balance=Wallet.balance + amount, updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)

        if result.rowcount == 0:
            # Unique customer_id makes a racing second insert fail loudly
            await self.create(customer_id=customer_id, balance=amount)
        else:
            await self.session.flush()
