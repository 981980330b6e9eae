"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from solarflow.models.base import Base
from solarflow.models.booking import Booking
from solarflow.models.commission import Commission
from solarflow.models.customer import Customer
from solarflow.models.lead_step import LeadStep
from solarflow.models.ml_settings import MlSettings
from solarflow.models.wallet import Wallet

__all__ = [
    "Base",
    # Referral program
    "Customer",
    "Wallet",
    "Commission",
    "MlSettings",
    # Booking workflow
    "Booking",
    "LeadStep",
]
