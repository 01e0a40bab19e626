"""Repository interfaces the billing engine depends on.

Every query is scoped by an explicit building or resident id; no store
implementation may rely on an ambient "current user".
"""

from __future__ import annotations

from datetime import date
from typing import Any, Protocol, runtime_checkable

from condo_billing.models.billing import (
    BillingConfiguration,
    PaymentRecord,
    PaymentStatus,
    Resident,
)


@runtime_checkable
class PaymentStore(Protocol):
    """Payment record collection."""

    def find_by_resident_and_period(
        self, resident_id: str, month: int, year: int
    ) -> PaymentRecord | None: ...

    def find_pending_before(self, building_id: str, cutoff: date) -> list[PaymentRecord]:
        """PENDING records of ``building_id`` with ``due_date < cutoff``."""
        ...

    def find_latest_by_resident(self, resident_id: str) -> PaymentRecord | None:
        """Most recent record by payment date; undated records rank last."""
        ...

    def create(self, record: PaymentRecord) -> PaymentRecord:
        """Persist ``record`` and assign its ``record_id``.

        Raises ``DuplicateRecordError`` if the resident already has a record
        for the same period.
        """
        ...

    def update(
        self,
        record_id: str,
        fields: dict[str, Any],
        *,
        expected_status: PaymentStatus | None = None,
    ) -> None:
        """Apply a partial update.

        Raises ``RecordNotFoundError`` for unknown ids and ``StaleRecordError``
        when ``expected_status`` no longer matches.
        """
        ...

    def get_record(self, record_id: str) -> PaymentRecord | None: ...

    def list_by_resident(self, resident_id: str) -> list[PaymentRecord]: ...

    def list_by_building(self, building_id: str, year: int | None = None) -> list[PaymentRecord]: ...


@runtime_checkable
class BillingConfigStore(Protocol):
    """Per-building billing configuration."""

    def get_configuration(self, building_id: str) -> BillingConfiguration:
        """Saved configuration, or the default policy when none was saved.

        Raises ``ConfigurationMissingError`` when neither exists.
        """
        ...

    def save_configuration(self, building_id: str, config: BillingConfiguration) -> None: ...


@runtime_checkable
class ResidentDirectory(Protocol):
    """Read-only view of a building's residents."""

    def list_residents(self, building_id: str) -> list[Resident]: ...

    def get_resident(self, resident_id: str) -> Resident | None: ...


def latest_payment_key(record: PaymentRecord) -> tuple:
    """Sort key ranking records by payment date, undated records last.

    Used descending: dated records first (newest payment first), then
    undated ones by newest period.
    """
    has_date = record.payment_date is not None
    return (has_date, record.payment_date or date.min, record.period)
