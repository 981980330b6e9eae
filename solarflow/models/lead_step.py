"""
Lead step model.

One ordered step of a booking's installation workflow.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from solarflow.models.base import Base


class LeadStep(Base):
    """Workflow step of a booking."""

    __tablename__ = "lead_steps"
    __table_args__ = (
        UniqueConstraint("booking_id", "order", name="uq_lead_step_booking_order"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # 1-based position in the template
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    completed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completion_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Snapshot for listings; real value is computed on read
    due_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<LeadStep(id={self.id}, booking_id={self.booking_id}, "
            f"order={self.order}, name={self.name!r}, completed={self.completed})>"
        )
