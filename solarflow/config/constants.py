"""
Application constants.

Business rules that are not deployment knobs.
"""

from decimal import Decimal

# ========================================================================
# REFERRAL PROGRAM
# ========================================================================

# Commission is paid to at most this many uplines
REFERRAL_DEPTH = 3

# MlSettings defaults (percent of gross)
DEFAULT_MAX_PAYOUT_PERCENT = Decimal("4.0")
DEFAULT_LEVEL_PERCENTS = {
    1: Decimal("2.0"),
    2: Decimal("1.0"),
    3: Decimal("1.0"),
}

# Money precision for ledger rows and wallet credits (matches Numeric(18, 8))
MONEY_QUANTUM = Decimal("0.00000001")

# Unambiguous alphabet for generated referral codes (no 0/O, 1/I)
REFERRAL_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

# ========================================================================
# BOOKING WORKFLOW
# ========================================================================

CERTIFICATE_STEP_NAME = "certificate"

DEFAULT_STEP_NAMES: tuple[str, ...] = (
    "meeting",
    "survey",
    "structure install",
    "civil work",
    "wiring",
    "panel installation",
    "net metering",
    "testing",
    "full plant start",
    "subsidy process request",
    "subsidy disbursement",
    CERTIFICATE_STEP_NAME,
)

# Denominator for percent-complete; steps may be materialized lazily
TEMPLATE_STEP_COUNT = len(DEFAULT_STEP_NAMES)

# Displayed due days for an active step are clamped to this range
MIN_DUE_DAYS = 1
MAX_DUE_DAYS = 5
