"""
Formatting helpers for customer-facing output.
"""

import re
from decimal import ROUND_HALF_UP, Decimal

from solarflow.config.constants import MONEY_QUANTUM

_MOBILE_MASK_RE = re.compile(r"(\d{3})\d+(\d{2})")


def mask_mobile(mobile: str | None) -> str:
    """
    Mask the middle digits of a mobile number.

    Args:
        mobile: Mobile number

    Returns:
        Masked number like '987****10', or 'unknown'
    """
    if not mobile:
        return "unknown"
    return _MOBILE_MASK_RE.sub(r"\1****\2", mobile, count=1)


def quantize_money(value: Decimal) -> Decimal:
    """Round a money amount to ledger precision."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
