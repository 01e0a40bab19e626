"""Payment status state machine.

    PENDING ──confirm──▶ CONFIRMED
       │                    ▲
       └──sweep──▶ OVERDUE ─┘ (late payment)

CONFIRMED is terminal. Every check here runs before any store call.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from condo_billing.exceptions import InvalidTransitionError
from condo_billing.models.billing import PaymentRecord, PaymentStatus
from condo_billing.models.billing.payment import IMMUTABLE_FIELDS, UPDATABLE_FIELDS

ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.CONFIRMED, PaymentStatus.OVERDUE}),
    PaymentStatus.OVERDUE: frozenset({PaymentStatus.CONFIRMED}),
    PaymentStatus.CONFIRMED: frozenset(),
}


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(record: PaymentRecord, target: PaymentStatus) -> None:
    """Raise if ``record`` cannot move to ``target``."""
    if not can_transition(record.status, target):
        raise InvalidTransitionError(
            f"Payment {record.record_id} cannot move from {record.status.value} to {target.value}"
        )


def check_payment_date(status: PaymentStatus, payment_date: date | None) -> None:
    """Payment date must be present exactly when the status is CONFIRMED."""
    if status == PaymentStatus.CONFIRMED and payment_date is None:
        raise InvalidTransitionError("A confirmed payment requires a payment date")
    if status != PaymentStatus.CONFIRMED and payment_date is not None:
        raise InvalidTransitionError(
            f"Payment date can only be set on confirmed payments, status is {status.value}"
        )


def validate_new_record(record: PaymentRecord) -> None:
    """Check a record about to be created.

    New records start PENDING (billing cycle) or CONFIRMED (direct
    registration); never OVERDUE.
    """
    if record.status == PaymentStatus.OVERDUE:
        raise InvalidTransitionError("Payment records cannot be created as overdue")
    check_payment_date(record.status, record.payment_date)


def validate_update(record: PaymentRecord, fields: dict[str, Any]) -> None:
    """Check a partial update against ``record``'s current state."""
    frozen = IMMUTABLE_FIELDS.intersection(fields)
    if frozen:
        raise InvalidTransitionError(f"Fields cannot change after creation: {sorted(frozen)}")
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown payment fields: {sorted(unknown)}")

    if record.status == PaymentStatus.CONFIRMED and (
        "status" in fields or "payment_date" in fields or "amount" in fields
    ):
        raise InvalidTransitionError(f"Payment {record.record_id} is already confirmed")

    target = fields.get("status", record.status)
    if target != record.status:
        ensure_transition(record, target)
    check_payment_date(target, fields.get("payment_date", record.payment_date))
