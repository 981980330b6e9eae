"""
Due-day snapshot reconciliation.

Rewrites the stored LeadStep.due_days snapshot from the canonical
calendar-day formula. Safe to run any number of times, including after
downtime.
"""

from datetime import datetime, tzinfo

from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.config.settings import settings
from solarflow.repositories.booking_repository import BookingRepository
from solarflow.repositories.lead_step_repository import LeadStepRepository
from solarflow.services.base_service import BaseService, transaction
from solarflow.services.workflow.due_days import compute_due_days
from solarflow.utils.datetime_utils import utc_now
from solarflow.utils.exceptions import NotFoundError


class DueDaysSyncService(BaseService):
    """Batch reconciler for stored due-day snapshots."""

    def __init__(
        self,
        session: AsyncSession,
        tz: tzinfo | None = None,
        batch_size: int = 500,
    ) -> None:
        """
        Initialize due days sync service.

        Args:
            session: Async database session
            tz: Timezone for calendar days (defaults to settings)
            batch_size: Bookings per committed batch
        """
        super().__init__(session)
        self.tz = tz or settings.workflow_tz
        self.batch_size = batch_size
        self.booking_repo = BookingRepository(session)
        self.step_repo = LeadStepRepository(session)

    @transaction
    async def sync_booking(self, booking_id: int, now: datetime | None = None) -> int:
        """
        Reconcile one booking.

        Args:
            booking_id: Booking ID
            now: Evaluation time (defaults to current time)

        Returns:
            Number of step rows changed

        Raises:
            NotFoundError: If booking does not exist
        """
        return await self._sync_booking(booking_id, now or utc_now())

    async def sync_all(self, now: datetime | None = None) -> int:
        """
        Reconcile every booking, committing once per batch.

        Args:
            now: Evaluation time (defaults to current time)

        Returns:
            Total number of step rows changed
        """
        now = now or utc_now()
        changed = 0
        last_id = 0

        while True:
            booking_ids = await self.booking_repo.get_ids_batch(
                after_id=last_id, limit=self.batch_size
            )
            if not booking_ids:
                break

            try:
                for booking_id in booking_ids:
                    changed += await self._sync_booking(booking_id, now)
                await self.commit()
            except Exception as e:
                await self.rollback()
                self.logger.opt(exception=e).error(
                    "Due days sync batch failed",
                    extra={"first_id": booking_ids[0], "last_id": booking_ids[-1]},
                )
                raise

            last_id = booking_ids[-1]

        self.logger.info(
            "Due days sync complete", extra={"changed": changed}
        )
        return changed

    async def _sync_booking(self, booking_id: int, now: datetime) -> int:
        booking = await self.booking_repo.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")

        steps = await self.step_repo.list_for_booking(booking_id)
        if not steps:
            return 0

        by_id = {s.id: s for s in steps}
        changed = 0
        for view in compute_due_days(steps, booking.created_at, now, self.tz):
            step = by_id[view.id]
            if step.due_days != view.due_days:
                step.due_days = view.due_days
                changed += 1

        if changed:
            await self.session.flush()
        return changed
