"""
Commission settings administration.
"""

from decimal import Decimal, InvalidOperation

from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.models.ml_settings import MlSettings
from solarflow.repositories.ml_settings_repository import MlSettingsRepository
from solarflow.services.base_service import BaseService, transaction
from solarflow.utils.exceptions import InvalidSettingsError

_PERCENT_FIELDS = (
    "max_payout_percent",
    "level1_percent",
    "level2_percent",
    "level3_percent",
)


def _to_percent(name: str, value: Decimal | int | float | str) -> Decimal:
    try:
        percent = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidSettingsError(f"{name} is not a number: {value!r}") from e

    if not percent.is_finite() or percent < 0 or percent > 100:
        raise InvalidSettingsError(f"{name} must be between 0 and 100: {value!r}")
    return percent


class CommissionSettingsService(BaseService):
    """Read and update the commission settings singleton."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize settings service."""
        super().__init__(session)
        self.settings_repo = MlSettingsRepository(session)

    @transaction
    async def get_settings(self) -> MlSettings:
        """Get settings, creating defaults on first access."""
        return await self.settings_repo.get_or_create()

    @transaction
    async def update_settings(self, **values: Decimal | int | float | str) -> MlSettings:
        """
        Update commission percentages.

        Args:
            **values: Any of max_payout_percent, level1_percent,
                level2_percent, level3_percent

        Returns:
            Updated settings

        Raises:
            InvalidSettingsError: Unknown field or percent out of range
        """
        unknown = set(values) - set(_PERCENT_FIELDS)
        if unknown:
            raise InvalidSettingsError(f"Unknown settings: {sorted(unknown)}")

        parsed = {name: _to_percent(name, value) for name, value in values.items()}

        ml_settings = await self.settings_repo.get_or_create()
        for name, value in parsed.items():
            setattr(ml_settings, name, value)
        await self.session.flush()

        self.logger.info(
            "Commission settings updated",
            extra={name: str(value) for name, value in parsed.items()},
        )
        return ml_settings
