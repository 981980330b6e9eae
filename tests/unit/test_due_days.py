"""
Unit tests for due-day computation and workflow helpers.

Calendar days are midnight boundaries in the workflow timezone, so the
scenarios below use explicit wall-clock times.
"""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from solarflow.config.constants import DEFAULT_STEP_NAMES
from solarflow.models.lead_step import LeadStep
from solarflow.services.workflow.certificate import build_certificate_id
from solarflow.services.workflow.due_days import (
    StepState,
    clamp_due_days,
    compute_due_days,
)
from solarflow.services.workflow.step_workflow import compute_percent
from solarflow.utils.datetime_utils import calendar_days_between, format_long_date

BOOKED_AT = datetime(2026, 10, 1, 10, 0, tzinfo=UTC)


def make_steps(completed_at: dict[int, datetime] | None = None) -> list[LeadStep]:
    """Full template, with given orders completed at given times."""
    completed_at = completed_at or {}
    return [
        LeadStep(
            id=order,
            booking_id=1,
            order=order,
            name=name,
            completed=order in completed_at,
            completed_at=completed_at.get(order),
            due_days=0,
        )
        for order, name in enumerate(DEFAULT_STEP_NAMES, start=1)
    ]


class TestClampDueDays:
    """Tests for the 1..5 clamp."""

    @pytest.mark.parametrize(
        "days, expected",
        [(-2, 1), (0, 1), (1, 1), (3, 3), (5, 5), (6, 5), (40, 5)],
    )
    def test_clamp(self, days, expected):
        assert clamp_due_days(days) == expected


class TestComputeDueDays:
    """Tests for step state and due days."""

    def test_first_step_counts_from_booking_creation(self):
        """Day 3 after booking: step 1 active with 3 due days."""
        views = compute_due_days(
            make_steps(), BOOKED_AT, BOOKED_AT + timedelta(days=3, hours=-1)
        )

        assert views[0].state == StepState.ACTIVE
        assert views[0].due_days == 3
        assert views[0].clock_started_at == BOOKED_AT

    def test_due_days_clamp_at_five(self):
        """Day 7 after booking: clamped to 5."""
        views = compute_due_days(make_steps(), BOOKED_AT, BOOKED_AT + timedelta(days=7))

        assert views[0].due_days == 5

    def test_same_day_is_one_not_zero(self):
        """Active step checked on the calendar day its clock started shows 1."""
        views = compute_due_days(make_steps(), BOOKED_AT, BOOKED_AT + timedelta(hours=2))

        assert views[0].due_days == 1

    def test_next_step_clock_starts_at_previous_completion(self):
        """Step 1 done on day 3; step 2 checked later that day shows 1."""
        day3 = BOOKED_AT + timedelta(days=3)
        views = compute_due_days(
            make_steps({1: day3}), BOOKED_AT, day3 + timedelta(hours=5)
        )

        assert views[0].state == StepState.COMPLETED
        assert views[0].due_days == 0
        assert views[1].state == StepState.ACTIVE
        assert views[1].due_days == 1
        assert views[1].clock_started_at == day3

    def test_steps_after_active_are_pending(self):
        """Steps whose predecessor is incomplete show 0."""
        views = compute_due_days(make_steps(), BOOKED_AT, BOOKED_AT + timedelta(days=2))

        assert all(v.state == StepState.PENDING for v in views[1:])
        assert all(v.due_days == 0 for v in views[1:])
        assert all(v.clock_started_at is None for v in views[1:])

    def test_midnight_crossing_counts_as_a_day(self):
        """23:00 to 01:00 next day is one calendar day."""
        late = datetime(2026, 10, 1, 23, 0, tzinfo=UTC)
        views = compute_due_days(make_steps(), late, late + timedelta(hours=2))

        assert views[0].due_days == 1
        assert calendar_days_between(late, late + timedelta(hours=2), UTC) == 1

    def test_timezone_defines_day_boundaries(self):
        """The same instants span different calendar days per timezone."""
        booked = datetime(2026, 10, 1, 18, 0, tzinfo=UTC)  # 23:30 in Kolkata
        now = datetime(2026, 10, 2, 19, 0, tzinfo=UTC)  # 00:30 Oct 3 in Kolkata

        utc_views = compute_due_days(make_steps(), booked, now, UTC)
        ist_views = compute_due_days(make_steps(), booked, now, ZoneInfo("Asia/Kolkata"))

        assert utc_views[0].due_days == 1
        assert ist_views[0].due_days == 2

    def test_naive_timestamps_are_read_as_utc(self):
        """Timestamps without tzinfo (as some stores return them) are UTC."""
        naive = BOOKED_AT.replace(tzinfo=None)
        views = compute_due_days(make_steps(), naive, BOOKED_AT + timedelta(days=2))

        assert views[0].due_days == 2

    def test_order_is_taken_from_step_order(self):
        """Input order does not matter; output is sorted by position."""
        steps = list(reversed(make_steps()))
        views = compute_due_days(steps, BOOKED_AT, BOOKED_AT + timedelta(days=1))

        assert [v.order for v in views] == list(range(1, len(DEFAULT_STEP_NAMES) + 1))
        assert views[0].state == StepState.ACTIVE

    def test_repeated_reads_are_identical(self):
        """Pure function: same input, same output."""
        steps = make_steps({1: BOOKED_AT + timedelta(days=1)})
        now = BOOKED_AT + timedelta(days=4)

        assert compute_due_days(steps, BOOKED_AT, now) == compute_due_days(
            steps, BOOKED_AT, now
        )


class TestComputePercent:
    """Tests for percent complete against the 12-step template."""

    @pytest.mark.parametrize(
        "completed, expected",
        [(0, 0), (1, 8), (6, 50), (11, 92), (12, 100)],
    )
    def test_percent(self, completed, expected):
        done = {order: BOOKED_AT for order in range(1, completed + 1)}
        assert compute_percent(make_steps(done)) == expected

    def test_denominator_is_template_size(self):
        """Partially materialized steps still divide by 12."""
        steps = make_steps({1: BOOKED_AT, 2: BOOKED_AT, 3: BOOKED_AT})[:3]
        assert compute_percent(steps) == 25


class TestCertificateHelpers:
    """Tests for certificate id and install date formatting."""

    def test_certificate_id_format(self):
        issued_at = datetime(2026, 10, 18, 12, 0, 0, 123000, tzinfo=UTC)
        millis = int(issued_at.timestamp() * 1000)

        certificate_id = build_certificate_id(42, issued_at)

        assert certificate_id == f"000042-{millis % 1_000_000:06d}"
        assert len(certificate_id.split("-")[1]) == 6

    def test_install_date_format(self):
        assert format_long_date(datetime(2026, 10, 18, 9, 0, tzinfo=UTC), UTC) == (
            "18 October 2026"
        )

    def test_install_date_uses_workflow_timezone(self):
        late = datetime(2026, 10, 18, 20, 0, tzinfo=UTC)
        assert format_long_date(late, ZoneInfo("Asia/Kolkata")) == "19 October 2026"
