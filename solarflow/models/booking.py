"""
Booking model.

A purchase / installation project with its ordered workflow steps.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from solarflow.models.base import Base
from solarflow.utils.datetime_utils import utc_now


class Booking(Base):
    """Booking model - solar installation project."""

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Ownership (both optional: public bookings may be unassociated)
    customer_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assigned_staff_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )

    # Project facts (used on the certificate)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    project_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sized_kw: Mapped[str | None] = mapped_column(String(50), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Gross amount commissions are computed against
    total_payable: Mapped[Decimal | None] = mapped_column(
        DECIMAL(18, 2), nullable=True
    )
    percent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Certificate (url presence means "already issued")
    certificate_url: Mapped[str | None] = mapped_column(
        String(1024), nullable=True
    )
    certificate_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    certificate_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Purchase-to-commission dedupe marker
    commission_distributed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    @property
    def location(self) -> str:
        """City, state and country, skipping blanks."""
        return ", ".join(
            part for part in (self.city, self.state, self.country) if part
        )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, customer_id={self.customer_id}, "
            f"percent={self.percent})>"
        )
