"""
Step workflow engine.

Materializes the fixed step template for a booking, lists steps with their
due days and runs the completion transition, including the one-time
certificate cascade.
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from solarflow.config.constants import (
    CERTIFICATE_STEP_NAME,
    DEFAULT_STEP_NAMES,
    TEMPLATE_STEP_COUNT,
)
from solarflow.config.settings import settings
from solarflow.models.booking import Booking
from solarflow.models.lead_step import LeadStep
from solarflow.repositories.booking_repository import BookingRepository
from solarflow.repositories.lead_step_repository import LeadStepRepository
from solarflow.services.base_service import BaseService, transaction
from solarflow.services.workflow.certificate import (
    CertificateIssuer,
    CertificateRequest,
    build_certificate_id,
)
from solarflow.services.workflow.due_days import StepView, compute_due_days
from solarflow.utils.datetime_utils import ensure_utc, format_long_date, utc_now
from solarflow.utils.exceptions import (
    AlreadyCompletedError,
    IntegrationFailureError,
    NotAssignedError,
    NotesRequiredError,
    NotFoundError,
)


@dataclass
class StepCompletionResult:
    """Outcome of a completion transition."""

    step: LeadStep
    percent: int
    certificate_issued: bool = False
    certificate_url: str | None = None


def compute_percent(steps: list[LeadStep]) -> int:
    """
    Percent complete against the full template size.

    Steps are created lazily, so the denominator is the template size and
    not the number of rows present.
    """
    completed = sum(1 for s in steps if s.completed)
    percent = (Decimal(completed * 100) / Decimal(TEMPLATE_STEP_COUNT)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return min(int(percent), 100)


class StepWorkflowService(BaseService):
    """Booking step workflow."""

    def __init__(
        self,
        session: AsyncSession,
        certificate_issuer: CertificateIssuer | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        """
        Initialize step workflow service.

        Args:
            session: Async database session
            certificate_issuer: Certificate trigger collaborator
            tz: Timezone for calendar days (defaults to settings)
        """
        super().__init__(session)
        self.certificate_issuer = certificate_issuer
        self.tz = tz or settings.workflow_tz
        self.booking_repo = BookingRepository(session)
        self.step_repo = LeadStepRepository(session)

    # ------------------------------------------------------------------
    # Template materialization and listing
    # ------------------------------------------------------------------

    @transaction
    async def ensure_steps(self, booking_id: int) -> list[LeadStep]:
        """
        Create missing template steps for a booking.

        Args:
            booking_id: Booking ID

        Returns:
            All steps ordered by position

        Raises:
            NotFoundError: If booking does not exist
        """
        await self._get_booking(booking_id)
        return await self._ensure_steps(booking_id)

    @transaction
    async def list_steps_with_due_days(
        self, booking_id: int, now: datetime | None = None
    ) -> list[StepView]:
        """
        List a booking's steps with derived state and due days.

        Args:
            booking_id: Booking ID
            now: Evaluation time (defaults to current time)

        Returns:
            StepView list ordered by position

        Raises:
            NotFoundError: If booking does not exist
        """
        await self._get_booking(booking_id)
        steps = await self._ensure_steps(booking_id)
        # Re-read: a concurrent-create rollback expires loaded rows
        booking = await self._get_booking(booking_id)
        return compute_due_days(steps, booking.created_at, now or utc_now(), self.tz)

    async def _ensure_steps(self, booking_id: int) -> list[LeadStep]:
        """Check-then-create; unique (booking_id, order) guards concurrent callers."""
        existing = await self.step_repo.list_for_booking(booking_id)
        present = {s.order for s in existing}
        missing = [
            (index + 1, name)
            for index, name in enumerate(DEFAULT_STEP_NAMES)
            if index + 1 not in present
        ]
        if not missing:
            return existing

        try:
            for order, name in missing:
                self.session.add(
                    LeadStep(booking_id=booking_id, order=order, name=name)
                )
            await self.session.flush()
        except IntegrityError:
            # Another request created them first
            await self.session.rollback()
            self.logger.info(
                "Concurrent step creation detected, reusing existing rows",
                extra={"booking_id": booking_id},
            )
            return await self.step_repo.list_for_booking(booking_id)

        self.logger.info(
            "Template steps created",
            extra={"booking_id": booking_id, "created": len(missing)},
        )
        return await self.step_repo.list_for_booking(booking_id)

    # ------------------------------------------------------------------
    # Completion transition
    # ------------------------------------------------------------------

    @transaction
    async def complete_step(
        self,
        step_id: int,
        notes: str | None,
        require_notes: bool = True,
        now: datetime | None = None,
    ) -> StepCompletionResult:
        """
        Complete a step and run the cascade.

        Args:
            step_id: Step ID
            notes: Completion notes
            require_notes: Reject blank notes (staff policy)
            now: Completion time (defaults to current time)

        Returns:
            StepCompletionResult

        Raises:
            NotFoundError: Unknown step
            AlreadyCompletedError: Step already completed
            NotesRequiredError: Blank notes when required
        """
        step = await self._get_step(step_id)
        return await self._complete(step, notes, require_notes, now or utc_now())

    @transaction
    async def complete_step_as_staff(
        self,
        step_id: int,
        notes: str | None,
        staff_id: int,
        now: datetime | None = None,
    ) -> StepCompletionResult:
        """
        Staff completion: notes required, booking must be assigned to staff.

        Raises:
            NotAssignedError: Booking assigned to someone else
        """
        step = await self._get_step(step_id)
        booking = await self._get_booking(step.booking_id)
        if booking.assigned_staff_id != staff_id:
            raise NotAssignedError(
                f"Staff {staff_id} is not assigned to booking {booking.id}"
            )
        return await self._complete(step, notes, True, now or utc_now())

    @transaction
    async def complete_step_as_admin(
        self,
        step_id: int,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> StepCompletionResult:
        """Admin completion: notes optional."""
        step = await self._get_step(step_id)
        return await self._complete(step, notes, False, now or utc_now())

    @transaction
    async def undo_step(self, step_id: int) -> LeadStep:
        """
        Admin undo: mark a step incomplete again.

        An issued certificate is left untouched.

        Args:
            step_id: Step ID

        Returns:
            Updated step

        Raises:
            NotFoundError: Unknown step
        """
        step = await self._get_step(step_id)
        step.completed = False
        step.completed_at = None
        await self.session.flush()

        booking = await self._get_booking(step.booking_id)
        steps = await self.step_repo.list_for_booking(booking.id)
        percent = await self._update_percent(booking, steps)

        self.logger.info(
            "Step completion undone",
            extra={"step_id": step_id, "booking_id": booking.id, "percent": percent},
        )
        return step

    async def _complete(
        self,
        step: LeadStep,
        notes: str | None,
        require_notes: bool,
        now: datetime,
    ) -> StepCompletionResult:
        if step.completed:
            raise AlreadyCompletedError(f"Step {step.id} is already completed")

        cleaned = notes.strip() if notes else ""
        if require_notes and not cleaned:
            raise NotesRequiredError("Completion notes are required")

        step.completed = True
        step.completed_at = now
        step.completion_notes = cleaned or None
        step.due_days = 0
        await self.session.flush()

        booking = await self._get_booking(step.booking_id)
        steps = await self.step_repo.list_for_booking(booking.id)
        percent = await self._update_percent(booking, steps)

        certificate_url = await self._maybe_issue_certificate(booking, steps, now)
        if certificate_url is not None:
            percent = booking.percent

        self.logger.info(
            "Step completed",
            extra={
                "step_id": step.id,
                "booking_id": booking.id,
                "step": step.name,
                "percent": percent,
                "certificate_issued": certificate_url is not None,
            },
        )

        return StepCompletionResult(
            step=step,
            percent=percent,
            certificate_issued=certificate_url is not None,
            certificate_url=booking.certificate_url,
        )

    async def _update_percent(self, booking: Booking, steps: list[LeadStep]) -> int:
        percent = compute_percent(steps)
        if booking.percent != percent:
            booking.percent = percent
            await self.session.flush()
        return percent

    # ------------------------------------------------------------------
    # Certificate cascade
    # ------------------------------------------------------------------

    @transaction
    async def issue_certificate_if_ready(
        self, booking_id: int, now: datetime | None = None
    ) -> str | None:
        """
        Retry path: issue the certificate if all work steps are done.

        No-op when the certificate already exists or steps are pending.

        Args:
            booking_id: Booking ID
            now: Issue time (defaults to current time)

        Returns:
            Document handle if issued now, otherwise None
        """
        booking = await self._get_booking(booking_id)
        steps = await self.step_repo.list_for_booking(booking_id)
        return await self._maybe_issue_certificate(booking, steps, now or utc_now())

    @transaction
    async def regenerate_certificate(
        self, booking_id: int, now: datetime | None = None
    ) -> str:
        """
        Admin: force re-issue of the certificate.

        Args:
            booking_id: Booking ID
            now: Issue time (defaults to current time)

        Returns:
            New document handle

        Raises:
            NotFoundError: Unknown booking
            IntegrationFailureError: Certificate trigger failed
        """
        booking = await self._get_booking(booking_id)
        steps = await self.step_repo.list_for_booking(booking_id)
        url = await self._issue_certificate(
            booking, steps, now or utc_now(), raise_on_failure=True
        )
        # raise_on_failure guarantees a handle here
        return url or ""

    async def _maybe_issue_certificate(
        self, booking: Booking, steps: list[LeadStep], now: datetime
    ) -> str | None:
        if booking.certificate_url:
            return None

        work_steps = [s for s in steps if s.name != CERTIFICATE_STEP_NAME]
        if len(work_steps) < TEMPLATE_STEP_COUNT - 1:
            return None
        if not all(s.completed for s in work_steps):
            return None

        return await self._issue_certificate(booking, steps, now, raise_on_failure=False)

    async def _issue_certificate(
        self,
        booking: Booking,
        steps: list[LeadStep],
        now: datetime,
        raise_on_failure: bool,
    ) -> str | None:
        """
        Call the certificate trigger and record its handle.

        Failures are logged; the caller's step completion stands.
        """
        if self.certificate_issuer is None:
            self.logger.warning(
                "No certificate issuer configured",
                extra={"booking_id": booking.id},
            )
            if raise_on_failure:
                raise IntegrationFailureError("No certificate issuer configured")
            return None

        work_steps = [s for s in steps if s.name != CERTIFICATE_STEP_NAME]
        completion_times = [
            ensure_utc(s.completed_at) for s in work_steps if s.completed_at
        ]
        installed_at = max(completion_times) if completion_times else now

        request = CertificateRequest(
            booking_id=booking.id,
            customer_name=booking.full_name,
            project_type=booking.project_type,
            size=booking.sized_kw,
            install_date=format_long_date(installed_at, self.tz),
            location=booking.location,
            certificate_id=build_certificate_id(booking.id, now),
        )

        try:
            url = await self.certificate_issuer.issue(request)
        except Exception as e:
            self.logger.opt(exception=e).error(
                "Certificate generation failed, left for manual retry",
                extra={"booking_id": booking.id, "certificate_id": request.certificate_id},
            )
            if raise_on_failure:
                raise IntegrationFailureError(
                    f"Certificate generation failed for booking {booking.id}"
                ) from e
            return None

        booking.certificate_url = url
        booking.certificate_id = request.certificate_id
        booking.certificate_generated_at = now

        certificate_step = next(
            (s for s in steps if s.name == CERTIFICATE_STEP_NAME and not s.completed),
            None,
        )
        if certificate_step is not None:
            certificate_step.completed = True
            certificate_step.completed_at = now
            certificate_step.due_days = 0

        await self.session.flush()
        await self._update_percent(booking, steps)

        self.logger.info(
            "Certificate issued",
            extra={
                "booking_id": booking.id,
                "certificate_id": request.certificate_id,
            },
        )
        return url

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _get_booking(self, booking_id: int) -> Booking:
        booking = await self.booking_repo.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        return booking

    async def _get_step(self, step_id: int) -> LeadStep:
        step = await self.step_repo.get_for_update(step_id)
        if step is None:
            raise NotFoundError(f"Step {step_id} not found")
        return step
