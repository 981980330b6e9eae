"""
Customer model.

A customer and its single-parent referral back-reference.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from solarflow.models.base import Base
from solarflow.utils.datetime_utils import utc_now


class Customer(Base):
    """Customer model - node of the referral forest."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    mobile: Mapped[str] = mapped_column(
        String(32), unique=True, index=True, nullable=False
    )
    full_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    # Referral
    referral_code: Mapped[str | None] = mapped_column(
        String(40), nullable=True, unique=True, index=True
    )
    referred_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # 0 for root, parent level + 1 otherwise; assigned once
    level: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Customer(id={self.id}, code={self.referral_code}, "
            f"referred_by_id={self.referred_by_id}, level={self.level})>"
        )
