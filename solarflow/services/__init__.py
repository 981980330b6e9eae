"""
Services.

Business logic layer.
"""

from solarflow.services.base_service import BaseService, transaction
from solarflow.services.referral import (
    CommissionDistributor,
    CommissionSettingsService,
    CustomerReferralService,
    DistributionResult,
    ReferralOverviewService,
    UplineEntry,
    UplineResolver,
)
from solarflow.services.workflow import (
    CertificateIssuer,
    CertificateRequest,
    DueDaysSyncService,
    StepCompletionResult,
    StepState,
    StepView,
    StepWorkflowService,
    compute_due_days,
)

__all__ = [
    "BaseService",
    "transaction",
    # Referral program
    "UplineResolver",
    "UplineEntry",
    "CommissionDistributor",
    "DistributionResult",
    "CustomerReferralService",
    "ReferralOverviewService",
    "CommissionSettingsService",
    # Booking workflow
    "StepWorkflowService",
    "StepCompletionResult",
    "StepView",
    "StepState",
    "compute_due_days",
    "CertificateIssuer",
    "CertificateRequest",
    "DueDaysSyncService",
]
