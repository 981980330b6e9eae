"""
Commission model.

Immutable ledger row written by the commission distributor.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from solarflow.models.base import Base
from solarflow.utils.datetime_utils import utc_now


class Commission(Base):
    """Commission ledger row."""

    __tablename__ = "commissions"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_commission_amount_non_negative"),
        CheckConstraint(
            "level_from_downline BETWEEN 1 AND 3",
            name="check_commission_level_range",
        ),
        # One payout per level per purchase
        UniqueConstraint(
            "booking_id", "level_from_downline",
            name="uq_commission_booking_level",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    # Recipient (upline)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    # Source (downline who purchased)
    from_customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    booking_id: Mapped[int | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    level_from_downline: Mapped[int] = mapped_column(
        Integer, nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 8), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
