"""
Referral overview for a customer.

Downline counts and earnings per level, plus recent commissions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.config.constants import REFERRAL_DEPTH
from solarflow.repositories.commission_repository import CommissionRepository
from solarflow.repositories.customer_repository import CustomerRepository
from solarflow.repositories.ml_settings_repository import MlSettingsRepository
from solarflow.utils.exceptions import NotFoundError
from solarflow.utils.formatters import mask_mobile


@dataclass
class ReferralOverview:
    """Referral program summary for one customer."""

    customer_id: int
    referral_code: str | None
    downline_counts: dict[int, int] = field(default_factory=dict)
    earnings_by_level: dict[int, Decimal] = field(default_factory=dict)
    max_payout_percent: Decimal = Decimal("0")
    level_percents: dict[int, Decimal] = field(default_factory=dict)

    @property
    def total_earnings(self) -> Decimal:
        """Sum of earnings over all levels."""
        return sum(self.earnings_by_level.values(), Decimal("0"))


@dataclass(frozen=True)
class RecentCommission:
    """Commission row as shown to the recipient."""

    amount: Decimal
    level: int
    source_mobile: str
    created_at: datetime


class ReferralOverviewService:
    """Read-only referral statistics for a customer."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize overview service."""
        self.session = session
        self.customer_repo = CustomerRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.settings_repo = MlSettingsRepository(session)

    async def get_overview(self, customer_id: int) -> ReferralOverview:
        """
        Build referral overview.

        Args:
            customer_id: Customer ID

        Returns:
            ReferralOverview

        Raises:
            NotFoundError: If customer does not exist
        """
        customer = await self.customer_repo.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found")

        counts: dict[int, int] = {}
        frontier = [customer_id]
        seen = {customer_id}
        for level in range(1, REFERRAL_DEPTH + 1):
            ids = await self.customer_repo.get_direct_referral_ids(frontier)
            frontier = [i for i in ids if i not in seen]
            seen.update(frontier)
            counts[level] = len(frontier)

        earnings = await self.commission_repo.sum_by_level(customer_id)
        ml_settings = await self.settings_repo.get_or_create()

        return ReferralOverview(
            customer_id=customer_id,
            referral_code=customer.referral_code,
            downline_counts=counts,
            earnings_by_level={
                level: earnings.get(level, Decimal("0"))
                for level in range(1, REFERRAL_DEPTH + 1)
            },
            max_payout_percent=ml_settings.max_payout_percent,
            level_percents=ml_settings.level_percents(),
        )

    async def get_recent_commissions(
        self, customer_id: int, limit: int = 10
    ) -> list[RecentCommission]:
        """
        Get newest commissions received, with masked source mobile.

        Args:
            customer_id: Recipient customer ID
            limit: Max rows

        Returns:
            List of RecentCommission, newest first
        """
        rows = await self.commission_repo.get_recent_for_recipient(
            customer_id, limit=limit
        )

        recent = []
        for row in rows:
            source = await self.customer_repo.get_by_id(row.from_customer_id)
            recent.append(
                RecentCommission(
                    amount=row.amount,
                    level=row.level_from_downline,
                    source_mobile=mask_mobile(source.mobile if source else None),
                    created_at=row.created_at,
                )
            )
        return recent
