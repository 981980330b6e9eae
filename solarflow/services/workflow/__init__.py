"""
Booking lifecycle workflow.

Step template, due-day computation, completion cascade and the
certificate trigger contract.
"""

from solarflow.services.workflow.certificate import (
    CertificateIssuer,
    CertificateRequest,
    build_certificate_id,
)
from solarflow.services.workflow.due_days import (
    StepState,
    StepView,
    clamp_due_days,
    compute_due_days,
)
from solarflow.services.workflow.due_days_sync import DueDaysSyncService
from solarflow.services.workflow.step_workflow import (
    StepCompletionResult,
    StepWorkflowService,
    compute_percent,
)

__all__ = [
    "CertificateIssuer",
    "CertificateRequest",
    "DueDaysSyncService",
    "StepCompletionResult",
    "StepState",
    "StepView",
    "StepWorkflowService",
    "build_certificate_id",
    "clamp_due_days",
    "compute_due_days",
    "compute_percent",
]
