"""
Commission program settings.

Process-wide singleton row, created with defaults on first access.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from solarflow.config.constants import (
    DEFAULT_LEVEL_PERCENTS,
    DEFAULT_MAX_PAYOUT_PERCENT,
)
from solarflow.models.base import Base
from solarflow.utils.datetime_utils import utc_now


class MlSettings(Base):
    """Multi-level commission settings (percent of gross)."""

    __tablename__ = "ml_settings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    max_payout_percent: Mapped[Decimal] = mapped_column(
        DECIMAL(7, 4), default=DEFAULT_MAX_PAYOUT_PERCENT, nullable=False
    )
    level1_percent: Mapped[Decimal] = mapped_column(
        DECIMAL(7, 4), default=DEFAULT_LEVEL_PERCENTS[1], nullable=False
    )
    level2_percent: Mapped[Decimal] = mapped_column(
        DECIMAL(7, 4), default=DEFAULT_LEVEL_PERCENTS[2], nullable=False
    )
    level3_percent: Mapped[Decimal] = mapped_column(
        DECIMAL(7, 4), default=DEFAULT_LEVEL_PERCENTS[3], nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    def level_percents(self) -> dict[int, Decimal]:
        """Percent schedule indexed by depth (1..3)."""
        return {
            1: Decimal(self.level1_percent),
            2: Decimal(self.level2_percent),
            3: Decimal(self.level3_percent),
        }
