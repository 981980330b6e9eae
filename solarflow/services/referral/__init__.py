"""
Referral services package.

Contains modular services for the referral commission program:
- upline_resolver: Bounded upline walk over the referral graph
- commission_distributor: Capped multi-level commission payout
- customer_referrals: Customer onboarding and referral codes
- overview: Per-customer referral statistics
- settings_service: Commission settings administration
"""

from solarflow.services.referral.commission_distributor import (
    CommissionDetail,
    CommissionDistributor,
    DistributionResult,
    allocate_commissions,
    parse_gross_amount,
)
from solarflow.services.referral.customer_referrals import (
    CustomerReferralService,
    normalize_referral_code,
)
from solarflow.services.referral.overview import (
    RecentCommission,
    ReferralOverview,
    ReferralOverviewService,
)
from solarflow.services.referral.settings_service import CommissionSettingsService
from solarflow.services.referral.upline_resolver import UplineEntry, UplineResolver

__all__ = [
    # Upline
    "UplineResolver",
    "UplineEntry",
    # Distribution
    "CommissionDistributor",
    "CommissionDetail",
    "DistributionResult",
    "allocate_commissions",
    "parse_gross_amount",
    # Customers
    "CustomerReferralService",
    "normalize_referral_code",
    # Statistics
    "ReferralOverviewService",
    "ReferralOverview",
    "RecentCommission",
    # Settings
    "CommissionSettingsService",
]
