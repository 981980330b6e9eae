"""
Commission distribution.

Pays a purchase's multi-level commission to up to three uplines, scaled
down proportionally when the schedule exceeds the global payout cap.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.config.constants import REFERRAL_DEPTH
from solarflow.repositories.booking_repository import BookingRepository
from solarflow.repositories.commission_repository import CommissionRepository
from solarflow.repositories.ml_settings_repository import MlSettingsRepository
from solarflow.repositories.wallet_repository import WalletRepository
from solarflow.services.base_service import BaseService, transaction
from solarflow.services.referral.upline_resolver import UplineEntry, UplineResolver
from solarflow.utils.datetime_utils import utc_now
from solarflow.utils.exceptions import (
    DuplicateDistributionError,
    IntegrationFailureError,
    InvalidAmountError,
    NotFoundError,
)
from solarflow.utils.formatters import quantize_money

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CommissionDetail:
    """Amount credited to one upline."""

    customer_id: int
    level_from_downline: int
    amount: Decimal


@dataclass
class DistributionResult:
    """Result of a distribution call."""

    count: int
    total_distributed: Decimal
    details: list[CommissionDetail] = field(default_factory=list)


def parse_gross_amount(value: Decimal | int | float | str | None) -> Decimal:
    """
    Convert a gross purchase amount to Decimal.

    Args:
        value: Amount as received from the caller

    Returns:
        Positive finite Decimal

    Raises:
        InvalidAmountError: If missing, non-numeric, non-finite or <= 0
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError("Gross amount is required")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmountError(f"Gross amount is not a number: {value!r}") from e

    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(f"Gross amount must be positive: {value!r}")

    return amount


def allocate_commissions(
    gross: Decimal,
    max_payout_percent: Decimal,
    level_percents: dict[int, Decimal],
    upline: list[UplineEntry],
) -> list[CommissionDetail]:
    """
    Compute per-upline commission amounts.

    raw = percent[depth] / 100 * gross; when the raw total exceeds
    cap = max_payout_percent / 100 * gross every amount is multiplied by
    cap / total, so level ratios are preserved. Non-positive amounts are
    dropped.

    Args:
        gross: Purchase amount
        max_payout_percent: Global cap as percent of gross
        level_percents: Percent schedule indexed by depth
        upline: Ancestors from the upline resolver

    Returns:
        Positive commission amounts in upline order
    """
    cap = Decimal(max_payout_percent) / HUNDRED * gross
    raw = [
        Decimal(level_percents.get(entry.depth, 0)) / HUNDRED * gross
        for entry in upline
    ]

    total = sum(raw, Decimal("0"))
    if total > cap and total > 0:
        scale = cap / total
        raw = [amount * scale for amount in raw]

    details = []
    for entry, amount in zip(upline, raw):
        amount = quantize_money(amount)
        if amount <= 0:
            continue
        details.append(
            CommissionDetail(
                customer_id=entry.customer_id,
                level_from_downline=entry.depth,
                amount=amount,
            )
        )
    return details


class CommissionDistributor(BaseService):
    """
    Multi-level commission distributor.

    distribute() is not idempotent: each call writes new ledger rows.
    distribute_for_booking() keys the payout on the booking and refuses to
    pay the same booking twice.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission distributor."""
        super().__init__(session)
        self.resolver = UplineResolver(session)
        self.settings_repo = MlSettingsRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.wallet_repo = WalletRepository(session)
        self.booking_repo = BookingRepository(session)

    @transaction
    async def distribute(
        self,
        source_customer_id: int,
        gross_amount: Decimal | int | float | str,
    ) -> DistributionResult:
        """
        Distribute commission for a purchase by a source customer.

        Args:
            source_customer_id: Customer who purchased
            gross_amount: Purchase amount

        Returns:
            DistributionResult with count, total and per-recipient detail

        Raises:
            InvalidAmountError: If amount is not positive and finite
            NotFoundError: If source customer does not exist
            IntegrationFailureError: If a ledger row or wallet credit fails
        """
        gross = parse_gross_amount(gross_amount)
        return await self._distribute(source_customer_id, gross)

    @transaction
    async def distribute_for_booking(self, booking_id: int) -> DistributionResult:
        """
        Distribute commission for a booking at most once.

        Args:
            booking_id: Booking ID

        Returns:
            DistributionResult

        Raises:
            NotFoundError: Unknown booking or booking without customer
            InvalidAmountError: Booking total payable missing or invalid
            DuplicateDistributionError: Commission already paid for booking
        """
        booking = await self.booking_repo.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        if booking.customer_id is None:
            raise NotFoundError(f"Booking {booking_id} has no customer")
        if booking.commission_distributed_at is not None:
            raise DuplicateDistributionError(
                f"Commission already distributed for booking {booking_id}"
            )

        gross = parse_gross_amount(booking.total_payable)
        result = await self._distribute(booking.customer_id, gross, booking_id)

        booking.commission_distributed_at = utc_now()
        await self.session.flush()

        return result

    async def _distribute(
        self,
        source_customer_id: int,
        gross: Decimal,
        booking_id: int | None = None,
    ) -> DistributionResult:
        """Shared distribution body; caller owns the transaction."""
        ml_settings = await self.settings_repo.get_or_create()
        upline = await self.resolver.resolve_upline(
            source_customer_id, REFERRAL_DEPTH
        )

        if not upline:
            self.logger.debug(
                "No upline for source customer",
                extra={"source_customer_id": source_customer_id},
            )
            return DistributionResult(count=0, total_distributed=Decimal("0"))

        details = allocate_commissions(
            gross,
            ml_settings.max_payout_percent,
            ml_settings.level_percents(),
            upline,
        )

        for detail in details:
            await self._post_commission(detail, source_customer_id, booking_id)

        total = sum((d.amount for d in details), Decimal("0"))

        self.logger.info(
            "Commission distributed",
            extra={
                "source_customer_id": source_customer_id,
                "booking_id": booking_id,
                "gross": str(gross),
                "count": len(details),
                "total": str(total),
            },
        )

        return DistributionResult(
            count=len(details), total_distributed=total, details=details
        )

    async def _post_commission(
        self,
        detail: CommissionDetail,
        source_customer_id: int,
        booking_id: int | None,
    ) -> None:
        """
        Write one ledger row and the matching wallet credit.

        Raises:
            IntegrationFailureError: If either write fails
        """
        try:
            await self.commission_repo.create(
                customer_id=detail.customer_id,
                from_customer_id=source_customer_id,
                booking_id=booking_id,
                level_from_downline=detail.level_from_downline,
                amount=detail.amount,
            )
            await self.wallet_repo.credit(detail.customer_id, detail.amount)
        except SQLAlchemyError as e:
            self.logger.opt(exception=e).error(
                "Commission posting failed",
                extra={
                    "recipient_id": detail.customer_id,
                    "level": detail.level_from_downline,
                    "amount": str(detail.amount),
                    "booking_id": booking_id,
                },
            )
            raise IntegrationFailureError(
                f"Failed to post commission for customer {detail.customer_id}"
            ) from e
