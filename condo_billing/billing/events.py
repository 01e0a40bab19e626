"""Event envelopes describing completed billing operations."""

from __future__ import annotations

import uuid
from datetime import datetime

from condo_billing.billing.results import BatchResult
from condo_billing.models.base import Event
from condo_billing.models.billing import PaymentRecord, PaymentStatus
from condo_billing.periods import utcnow
from condo_billing.sinks.serialization import to_dict

PAYMENT_CREATED = "payment.created"
PAYMENT_CONFIRMED = "payment.confirmed"
PAYMENT_OVERDUE = "payment.overdue"

DEFAULT_SOURCE = "condo-billing"


def _event_type_for(record: PaymentRecord) -> str:
    if record.status == PaymentStatus.CONFIRMED:
        return PAYMENT_CONFIRMED
    if record.status == PaymentStatus.OVERDUE:
        return PAYMENT_OVERDUE
    return PAYMENT_CREATED


def event_for_record(
    record: PaymentRecord,
    event_type: str | None = None,
    source: str = DEFAULT_SOURCE,
    event_time: datetime | None = None,
) -> Event:
    """Wrap a record in an event; the type follows its status unless given."""
    return Event(
        event_id=uuid.uuid4().hex,
        event_type=event_type or _event_type_for(record),
        event_time=event_time or utcnow(),
        source=source,
        subject=record.record_id or "",
        data=to_dict(record),
        metadata={"building_id": record.building_id, "resident_id": record.resident_id},
    )


def events_from_batch(result: BatchResult, source: str = DEFAULT_SOURCE) -> list[Event]:
    """One event per record a batch run created or transitioned."""
    event_time = utcnow()
    return [
        event_for_record(record, source=source, event_time=event_time)
        for record in result.records
    ]
