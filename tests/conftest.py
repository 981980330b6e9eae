"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings validation
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("WORKFLOW_TIMEZONE", "UTC")
os.environ.setdefault("REFERRAL_CODE_PREFIX", "SOL-")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import itertools
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from solarflow.config.database import create_session_maker
from solarflow.models import Base, Booking, Customer, MlSettings
from solarflow.utils.datetime_utils import utc_now


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    """Database session for one test."""
    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_customer(session):
    """
    Factory for customers.

    Returns:
        Async callable (referred_by=None, mobile=None) -> Customer
    """
    counter = itertools.count(1)

    async def _make(referred_by: Customer | None = None, mobile: str | None = None):
        n = next(counter)
        customer = Customer(
            mobile=mobile or f"98765{n:05d}",
            full_name=f"Customer {n}",
            referral_code=f"SOL-TEST{n:04d}",
            referred_by_id=referred_by.id if referred_by else None,
            level=(referred_by.level + 1) if referred_by else 0,
        )
        session.add(customer)
        await session.flush()
        return customer

    return _make


@pytest.fixture
def make_chain(make_customer):
    """
    Factory for a straight referral chain.

    Returns:
        Async callable (length) -> [root, ..., leaf]
    """

    async def _make(length: int):
        chain = [await make_customer()]
        for _ in range(length - 1):
            chain.append(await make_customer(referred_by=chain[-1]))
        return chain

    return _make


@pytest.fixture
def make_booking(session):
    """
    Factory for bookings.

    Returns:
        Async callable -> Booking
    """

    async def _make(
        customer: Customer | None = None,
        total_payable: Decimal | None = Decimal("100000"),
        created_at: datetime | None = None,
        assigned_staff_id: int | None = None,
    ):
        booking = Booking(
            customer_id=customer.id if customer else None,
            assigned_staff_id=assigned_staff_id,
            full_name=customer.full_name if customer else "Walk-in Customer",
            project_type="Residential Rooftop",
            sized_kw="5 kW",
            city="Pune",
            state="Maharashtra",
            country="India",
            total_payable=total_payable,
            created_at=created_at or utc_now(),
        )
        session.add(booking)
        await session.flush()
        return booking

    return _make


@pytest.fixture
def set_ml_settings(session):
    """
    Store commission settings.

    Returns:
        Async callable (max_payout, l1, l2, l3) -> MlSettings
    """

    async def _set(max_payout: str, l1: str, l2: str, l3: str):
        ml_settings = MlSettings(
            max_payout_percent=Decimal(max_payout),
            level1_percent=Decimal(l1),
            level2_percent=Decimal(l2),
            level3_percent=Decimal(l3),
        )
        session.add(ml_settings)
        await session.flush()
        return ml_settings

    return _set


@pytest.fixture
def certificate_issuer():
    """Mock certificate trigger returning a fixed document URL."""
    issuer = AsyncMock()
    issuer.issue = AsyncMock(
        return_value="https://files.example.com/certificates/default.pdf"
    )
    return issuer


@pytest.fixture
def wallet_balance(session):
    """
    Read a wallet balance straight from the database.

    Returns:
        Async callable (customer_id) -> Decimal | None
    """
    from sqlalchemy import select

    from solarflow.models import Wallet

    async def _balance(customer_id: int):
        result = await session.execute(
            select(Wallet.balance).where(Wallet.customer_id == customer_id)
        )
        return result.scalar_one_or_none()

    return _balance
