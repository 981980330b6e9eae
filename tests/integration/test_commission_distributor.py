"""Integration tests for commission distribution."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from solarflow.models import Commission
from solarflow.repositories.commission_repository import CommissionRepository
from solarflow.services.referral.commission_distributor import CommissionDistributor
from solarflow.utils.exceptions import (
    DuplicateDistributionError,
    InvalidAmountError,
    NotFoundError,
)


async def count_commissions(session) -> int:
    result = await session.execute(select(func.count(Commission.id)))
    return result.scalar_one()


class TestDistribute:
    """Tests for CommissionDistributor.distribute."""

    @pytest.mark.asyncio
    async def test_nominal_split_credits_each_upline(
        self, session, make_chain, set_ml_settings, wallet_balance
    ):
        """Cap 4%, levels 2/1/1, gross 100,000: 2000/1000/1000, no scaling."""
        await set_ml_settings("4", "2", "1", "1")
        chain = await make_chain(4)
        buyer = chain[-1]

        result = await CommissionDistributor(session).distribute(
            buyer.id, Decimal("100000")
        )

        assert result.count == 3
        assert result.total_distributed == Decimal("4000")
        assert [(d.customer_id, d.level_from_downline, d.amount) for d in result.details] == [
            (chain[2].id, 1, Decimal("2000")),
            (chain[1].id, 2, Decimal("1000")),
            (chain[0].id, 3, Decimal("1000")),
        ]
        assert await wallet_balance(chain[2].id) == Decimal("2000")
        assert await wallet_balance(chain[1].id) == Decimal("1000")
        assert await wallet_balance(chain[0].id) == Decimal("1000")
        assert await wallet_balance(buyer.id) is None
        assert await count_commissions(session) == 3

    @pytest.mark.asyncio
    async def test_split_over_cap_is_scaled(
        self, session, make_chain, set_ml_settings, wallet_balance
    ):
        """Levels 3/2/2 exceed the 4% cap; amounts scale by 4000/7000."""
        await set_ml_settings("4", "3", "2", "2")
        chain = await make_chain(4)

        result = await CommissionDistributor(session).distribute(
            chain[-1].id, Decimal("100000")
        )

        amounts = [d.amount for d in result.details]
        assert amounts == [
            Decimal("1714.28571429"),
            Decimal("1142.85714286"),
            Decimal("1142.85714286"),
        ]
        assert abs(result.total_distributed - Decimal("4000")) <= Decimal("0.00000003")
        assert abs(amounts[0] / amounts[1] - Decimal("1.5")) < Decimal("0.000001")
        assert abs(
            Decimal(str(await wallet_balance(chain[2].id))) - Decimal("1714.28571429")
        ) < Decimal("0.000001")

    @pytest.mark.asyncio
    async def test_defaults_used_when_settings_missing(self, session, make_chain):
        """Settings row is created with 4/2/1/1 on first use."""
        chain = await make_chain(2)

        result = await CommissionDistributor(session).distribute(chain[1].id, 50000)

        assert result.count == 1
        assert result.details[0].amount == Decimal("1000")

    @pytest.mark.asyncio
    async def test_no_upline_pays_nothing(self, session, make_customer):
        root = await make_customer()

        result = await CommissionDistributor(session).distribute(root.id, "2500")

        assert result.count == 0
        assert result.total_distributed == Decimal("0")
        assert await count_commissions(session) == 0

    @pytest.mark.asyncio
    async def test_repeated_calls_pay_again(self, session, make_chain, wallet_balance):
        """Plain distribute writes new ledger rows on every call."""
        chain = await make_chain(2)
        distributor = CommissionDistributor(session)

        await distributor.distribute(chain[1].id, 1000)
        await distributor.distribute(chain[1].id, 1000)

        assert await wallet_balance(chain[0].id) == Decimal("40")
        assert await count_commissions(session) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -100, "abc", None, "NaN"])
    async def test_invalid_amount(self, session, make_chain, amount):
        chain = await make_chain(2)

        with pytest.raises(InvalidAmountError):
            await CommissionDistributor(session).distribute(chain[1].id, amount)

    @pytest.mark.asyncio
    async def test_unknown_source_customer(self, session):
        with pytest.raises(NotFoundError):
            await CommissionDistributor(session).distribute(12345, 1000)


class TestDistributeForBooking:
    """Tests for booking-keyed distribution."""

    @pytest.mark.asyncio
    async def test_pays_once_per_booking(
        self, session, make_chain, make_booking, wallet_balance
    ):
        chain = await make_chain(4)
        booking = await make_booking(customer=chain[-1], total_payable=Decimal("100000"))
        distributor = CommissionDistributor(session)
        # Rejected calls roll back and expire loaded rows; keep plain ids
        booking_id = booking.id
        direct_referrer_id = chain[2].id

        result = await distributor.distribute_for_booking(booking_id)

        assert result.count == 3
        assert booking.commission_distributed_at is not None
        rows = await CommissionRepository(session).get_by_booking(booking_id)
        assert [r.level_from_downline for r in rows] == [1, 2, 3]

        with pytest.raises(DuplicateDistributionError):
            await distributor.distribute_for_booking(booking_id)

        assert await wallet_balance(direct_referrer_id) == Decimal("2000")
        assert await count_commissions(session) == 3

    @pytest.mark.asyncio
    async def test_unknown_booking(self, session):
        with pytest.raises(NotFoundError):
            await CommissionDistributor(session).distribute_for_booking(777)

    @pytest.mark.asyncio
    async def test_booking_without_customer(self, session, make_booking):
        booking = await make_booking(customer=None)
        await session.commit()

        with pytest.raises(NotFoundError):
            await CommissionDistributor(session).distribute_for_booking(booking.id)

    @pytest.mark.asyncio
    async def test_booking_without_amount(self, session, make_chain, make_booking):
        chain = await make_chain(2)
        booking = await make_booking(customer=chain[1], total_payable=None)
        await session.commit()

        with pytest.raises(InvalidAmountError):
            await CommissionDistributor(session).distribute_for_booking(booking.id)
