"""Pytest configuration and fixtures."""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable

import pytest

from condo_billing.models.billing import (
    BillingConfiguration,
    PaymentRecord,
    PaymentStatus,
    Resident,
)
from condo_billing.store import InMemoryBillingStore


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def building_id() -> str:
    """Sample building ID."""
    return "bldg-test-001"


@pytest.fixture
def resident(building_id: str) -> Resident:
    """Sample resident."""
    return Resident(
        resident_id="res-test-001",
        building_id=building_id,
        unit="101",
        name="Maria Souza",
        email="maria@example.com",
    )


@pytest.fixture
def configuration() -> BillingConfiguration:
    """Building configuration: R$ 500,00 due on the 10th."""
    return BillingConfiguration(default_amount=Decimal("500.00"), due_day=10)


@pytest.fixture
def store(building_id: str, resident: Resident, configuration: BillingConfiguration) -> InMemoryBillingStore:
    """Store with one configured building and one resident."""
    store = InMemoryBillingStore()
    store.save_configuration(building_id, configuration)
    store.add_resident(resident)
    return store


@pytest.fixture
def make_record(building_id: str) -> Callable[..., PaymentRecord]:
    """Factory for unsaved payment records."""

    def _make(
        resident_id: str = "res-test-001",
        month: int = 1,
        year: int = 2024,
        status: PaymentStatus = PaymentStatus.PENDING,
        due_date: date | None = None,
        payment_date: date | None = None,
        amount: Decimal = Decimal("500.00"),
    ) -> PaymentRecord:
        return PaymentRecord(
            resident_id=resident_id,
            building_id=building_id,
            amount=amount,
            month=month,
            year=year,
            status=status,
            due_date=due_date or date(year, month, 10),
            payment_date=payment_date,
        )

    return _make


def at_noon(day: date) -> datetime:
    """Noon UTC on ``day``; the same calendar day in America/Sao_Paulo."""
    return datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock() -> Callable[[date], Callable[[], datetime]]:
    """Build a clock frozen at noon UTC on a given day."""

    def _clock(day: date) -> Callable[[], datetime]:
        return lambda: at_noon(day)

    return _clock
