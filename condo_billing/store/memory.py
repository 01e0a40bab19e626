"""In-memory billing store with referential integrity."""

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from condo_billing.exceptions import (
    ConfigurationMissingError,
    DuplicateRecordError,
    RecordNotFoundError,
    ReferentialIntegrityError,
    StaleRecordError,
)
from condo_billing.models.billing import (
    BillingConfiguration,
    PaymentRecord,
    PaymentStatus,
    Resident,
)
from condo_billing.models.billing.payment import UPDATABLE_FIELDS
from condo_billing.periods import utcnow
from condo_billing.store.base import latest_payment_key


@dataclass
class InMemoryBillingStore:
    """In-memory store implementing the payment, configuration and resident interfaces.

    Records are copied on the way in and out, so callers never hold a
    reference to stored state. The (resident, month, year) index is the
    unique-key guard: ``create`` checks and inserts under one lock.

    Parameters
    ----------
    default_configuration : BillingConfiguration | None
        Returned for buildings without a saved configuration. ``None``
        makes such lookups raise ``ConfigurationMissingError``.
    """

    default_configuration: BillingConfiguration | None = field(
        default_factory=BillingConfiguration.default
    )

    # Primary entities
    residents: dict[str, Resident] = field(default_factory=dict)
    payments: dict[str, PaymentRecord] = field(default_factory=dict)
    configurations: dict[str, BillingConfiguration] = field(default_factory=dict)

    # Relationship indexes
    _building_residents: dict[str, list[str]] = field(default_factory=dict)
    _resident_payments: dict[str, list[str]] = field(default_factory=dict)
    _period_index: dict[tuple[str, int, int], str] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    # Resident directory
    def add_resident(self, resident: Resident) -> None:
        """Add a resident to the store."""
        self.residents[resident.resident_id] = resident
        building = self._building_residents.setdefault(resident.building_id, [])
        if resident.resident_id not in building:
            building.append(resident.resident_id)
        self._resident_payments.setdefault(resident.resident_id, [])

    def list_residents(self, building_id: str) -> list[Resident]:
        """Get all residents of a building."""
        resident_ids = self._building_residents.get(building_id, [])
        return [self.residents[rid] for rid in resident_ids]

    def get_resident(self, resident_id: str) -> Resident | None:
        return self.residents.get(resident_id)

    # Billing configuration
    def get_configuration(self, building_id: str) -> BillingConfiguration:
        """Get the building's configuration or the default policy."""
        config = self.configurations.get(building_id)
        if config is not None:
            return replace(config)
        if self.default_configuration is None:
            raise ConfigurationMissingError(f"No billing configuration for building {building_id}")
        return replace(self.default_configuration)

    def save_configuration(self, building_id: str, config: BillingConfiguration) -> None:
        """Replace the building's configuration."""
        self.configurations[building_id] = replace(config, updated_at=utcnow())

    # Payment records
    def create(self, record: PaymentRecord) -> PaymentRecord:
        """Add a payment record, assigning its id."""
        if record.resident_id not in self.residents:
            raise ReferentialIntegrityError(f"Resident {record.resident_id} not found")

        key = (record.resident_id, record.month, record.year)
        with self._lock:
            if key in self._period_index:
                raise DuplicateRecordError(
                    f"Resident {record.resident_id} already has a record for "
                    f"{record.month:02d}/{record.year}"
                )
            stored = replace(record, record_id=uuid.uuid4().hex, created_at=utcnow())
            self.payments[stored.record_id] = stored
            self._period_index[key] = stored.record_id
            self._resident_payments[record.resident_id].append(stored.record_id)
        return replace(stored)

    def update(
        self,
        record_id: str,
        fields: dict[str, Any],
        *,
        expected_status: PaymentStatus | None = None,
    ) -> None:
        """Apply a partial update to a payment record."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown payment fields: {sorted(unknown)}")

        with self._lock:
            current = self.payments.get(record_id)
            if current is None:
                raise RecordNotFoundError(f"Payment {record_id} not found")
            if expected_status is not None and current.status != expected_status:
                raise StaleRecordError(
                    f"Payment {record_id} is {current.status.value}, expected {expected_status.value}"
                )
            self.payments[record_id] = replace(current, **fields, updated_at=utcnow())

    def get_record(self, record_id: str) -> PaymentRecord | None:
        record = self.payments.get(record_id)
        return replace(record) if record is not None else None

    def find_by_resident_and_period(
        self, resident_id: str, month: int, year: int
    ) -> PaymentRecord | None:
        """Get the resident's record for a billing period, if any."""
        record_id = self._period_index.get((resident_id, month, year))
        return self.get_record(record_id) if record_id is not None else None

    def find_pending_before(self, building_id: str, cutoff: date) -> list[PaymentRecord]:
        """Get pending records of a building due strictly before ``cutoff``."""
        return [
            replace(record)
            for record in self.payments.values()
            if record.building_id == building_id
            and record.status == PaymentStatus.PENDING
            and record.due_date < cutoff
        ]

    def find_latest_by_resident(self, resident_id: str) -> PaymentRecord | None:
        """Get the resident's most recent payment."""
        records = self.list_by_resident(resident_id)
        return records[0] if records else None

    def list_by_resident(self, resident_id: str) -> list[PaymentRecord]:
        """Get all records for a resident, latest payment first."""
        record_ids = self._resident_payments.get(resident_id, [])
        records = [replace(self.payments[rid]) for rid in record_ids]
        return sorted(records, key=latest_payment_key, reverse=True)

    def list_by_building(self, building_id: str, year: int | None = None) -> list[PaymentRecord]:
        """Get all records for a building, optionally for one year."""
        return [
            replace(record)
            for record in self.payments.values()
            if record.building_id == building_id and (year is None or record.year == year)
        ]

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        by_status = {status.value.lower(): 0 for status in PaymentStatus}
        for record in self.payments.values():
            by_status[record.status.value.lower()] += 1
        return {
            "residents": len(self.residents),
            "buildings": len(self._building_residents),
            "payments": len(self.payments),
            **by_status,
        }
