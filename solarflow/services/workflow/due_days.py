"""
Due-day computation.

Pure function of the ordered step list and the booking creation time.
Recomputed on every read; the stored LeadStep.due_days is only a snapshot.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from enum import StrEnum

from solarflow.config.constants import MAX_DUE_DAYS, MIN_DUE_DAYS
from solarflow.models.lead_step import LeadStep
from solarflow.utils.datetime_utils import calendar_days_between, utc_now


class StepState(StrEnum):
    """Inferred state of a workflow step."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class StepView:
    """Step with its derived state and due days."""

    id: int
    booking_id: int
    order: int
    name: str
    completed: bool
    completed_at: datetime | None
    completion_notes: str | None
    state: StepState
    due_days: int
    clock_started_at: datetime | None = None


def clamp_due_days(calendar_days: int) -> int:
    """Active steps show at least 1 and at most 5 days."""
    return min(max(calendar_days, MIN_DUE_DAYS), MAX_DUE_DAYS)


def compute_due_days(
    steps: Sequence[LeadStep],
    booking_created_at: datetime,
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> list[StepView]:
    """
    Compute state and due days for every step of a booking.

    - completed steps: 0
    - step 1 clock starts at booking creation
    - step k clock starts at step k-1 completion; none yet -> pending, 0
    - active steps: calendar days in `tz` since clock start, clamped 1..5

    Args:
        steps: Steps of one booking (any order)
        booking_created_at: Booking creation timestamp
        now: Evaluation time (defaults to current UTC time)
        tz: Timezone defining calendar-day boundaries

    Returns:
        StepView list ordered by step order
    """
    now = now or utc_now()
    ordered = sorted(steps, key=lambda s: s.order or 0)

    views = []
    for index, step in enumerate(ordered):
        clock_start: datetime | None = None

        if step.completed:
            state, due_days = StepState.COMPLETED, 0
        else:
            if index == 0:
                clock_start = booking_created_at
            else:
                previous = ordered[index - 1]
                if previous.completed and previous.completed_at is not None:
                    clock_start = previous.completed_at

            if clock_start is None:
                state, due_days = StepState.PENDING, 0
            else:
                state = StepState.ACTIVE
                due_days = clamp_due_days(
                    calendar_days_between(clock_start, now, tz)
                )

        views.append(
            StepView(
                id=step.id,
                booking_id=step.booking_id,
                order=step.order,
                name=step.name,
                completed=step.completed,
                completed_at=step.completed_at,
                completion_notes=step.completion_notes,
                state=state,
                due_days=due_days,
                clock_started_at=clock_start,
            )
        )

    return views
