"""Payment record model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from condo_billing.models.billing.enums import PaymentMethod, PaymentStatus

CENTS = Decimal("0.01")

# Fields fixed at creation; updates touching them are rejected
IMMUTABLE_FIELDS = frozenset(
    {"record_id", "resident_id", "building_id", "month", "year", "due_date", "created_at"}
)
UPDATABLE_FIELDS = frozenset(
    {"status", "payment_method", "payment_date", "proof_reference", "note", "amount"}
)


def to_amount(value: Decimal | int | str) -> Decimal:
    """Normalize a monetary value to a non-negative two-place Decimal."""
    amount = Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    return amount


@dataclass
class PaymentRecord:
    """Monthly charge (cobrança) for one resident and billing period."""

    resident_id: str
    building_id: str
    amount: Decimal
    month: int  # 1-12
    year: int
    status: PaymentStatus
    due_date: date
    payment_method: PaymentMethod | None = None
    payment_date: date | None = None  # set iff status is CONFIRMED
    proof_reference: str | None = None  # external storage pointer
    note: str | None = None
    record_id: str | None = None  # assigned by the store
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def period(self) -> tuple[int, int]:
        """``(year, month)`` key, sortable chronologically."""
        return (self.year, self.month)

    @property
    def is_confirmed(self) -> bool:
        return self.status == PaymentStatus.CONFIRMED
