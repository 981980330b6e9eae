"""
Upline resolution.

Walks the referral forest upward from a customer, bounded by depth.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.config.constants import REFERRAL_DEPTH
from solarflow.repositories.customer_repository import CustomerRepository
from solarflow.utils.exceptions import NotFoundError


@dataclass(frozen=True)
class UplineEntry:
    """Ancestor of a customer and its distance (1 = direct referrer)."""

    customer_id: int
    depth: int


class UplineResolver:
    """Read-only upline walker over the referral graph store."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize upline resolver."""
        self.session = session
        self.customer_repo = CustomerRepository(session)

    async def resolve_upline(
        self, customer_id: int, max_depth: int = REFERRAL_DEPTH
    ) -> list[UplineEntry]:
        """
        Get ordered ancestors of a customer.

        The walk is iterative and stops at a root, after `max_depth` hops,
        on a revisited node (cycle) or on a dangling referrer pointer.

        Args:
            customer_id: Starting customer ID
            max_depth: Maximum number of hops

        Returns:
            Ancestors ordered by depth, starting at 1

        Raises:
            NotFoundError: If the starting customer does not exist
        """
        exists, referrer_id = await self.customer_repo.get_referrer_id(customer_id)
        if not exists:
            raise NotFoundError(f"Customer {customer_id} not found")

        chain: list[UplineEntry] = []
        visited = {customer_id}
        depth = 1

        while referrer_id is not None and depth <= max_depth:
            if referrer_id in visited:
                logger.warning(
                    "Referral cycle detected",
                    extra={
                        "customer_id": customer_id,
                        "revisited_id": referrer_id,
                        "chain_ids": [e.customer_id for e in chain],
                    },
                )
                break

            exists, next_referrer_id = await self.customer_repo.get_referrer_id(
                referrer_id
            )
            if not exists:
                logger.warning(
                    "Referrer not found, chain truncated",
                    extra={"customer_id": customer_id, "missing_id": referrer_id},
                )
                break

            chain.append(UplineEntry(customer_id=referrer_id, depth=depth))
            visited.add(referrer_id)

            referrer_id = next_referrer_id
            depth += 1

        logger.debug(
            "Upline resolved",
            extra={
                "customer_id": customer_id,
                "max_depth": max_depth,
                "chain_length": len(chain),
            },
        )

        return chain
