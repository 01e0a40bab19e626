"""Payment registration and record maintenance."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from condo_billing.billing.transitions import (
    ensure_transition,
    validate_new_record,
    validate_update,
)
from condo_billing.exceptions import (
    InvalidTransitionError,
    RecordNotFoundError,
    ReferentialIntegrityError,
)
from condo_billing.models.billing import (
    BillingConfiguration,
    PaymentMethod,
    PaymentRecord,
    PaymentStatus,
    to_amount,
)
from condo_billing.periods import due_date_for, local_date, utcnow, validate_period
from condo_billing.store.base import BillingConfigStore, PaymentStore, ResidentDirectory

logger = logging.getLogger(__name__)


class PaymentService:
    """Administrator actions on individual payment records.

    Every state check runs before the store is touched; store errors
    propagate unchanged for the caller to retry.
    """

    def __init__(
        self,
        payments: PaymentStore,
        configurations: BillingConfigStore,
        residents: ResidentDirectory,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.payments = payments
        self.configurations = configurations
        self.residents = residents
        self.clock = clock

    def _get(self, record_id: str) -> PaymentRecord:
        record = self.payments.get_record(record_id)
        if record is None:
            raise RecordNotFoundError(f"Payment {record_id} not found")
        return record

    def _apply(self, record: PaymentRecord, fields: dict[str, Any]) -> PaymentRecord:
        validate_update(record, fields)
        self.payments.update(record.record_id, fields, expected_status=record.status)
        return replace(record, **fields)

    def register_payment(
        self,
        building_id: str,
        resident_id: str,
        *,
        method: PaymentMethod,
        amount: Decimal | None = None,
        paid_on: date | None = None,
        month: int | None = None,
        year: int | None = None,
        proof_reference: str | None = None,
        note: str | None = None,
    ) -> PaymentRecord:
        """Record a payment collected outside the billing cycle.

        The charge for the period is confirmed if it exists; otherwise a
        record is created directly as CONFIRMED.

        Parameters
        ----------
        building_id : str
            Resident's building.
        resident_id : str
            Paying resident.
        method : PaymentMethod
            How the payment was made.
        amount : Decimal | None
            Amount paid; defaults to the building's default amount.
        paid_on : date | None
            Payment date; defaults to today in the building's time zone.
        month, year : int | None
            Billing period paid; defaults to ``paid_on``'s month.
        proof_reference : str | None
            Pointer to an uploaded proof of payment.
        note : str | None
            Free-text observation.

        Returns
        -------
        PaymentRecord
            The confirmed record.

        Raises
        ------
        InvalidTransitionError
            If the period is already confirmed.
        ReferentialIntegrityError
            If the resident does not belong to the building.
        """
        if (month is None) != (year is None):
            raise ValueError("Give both month and year, or neither")

        resident = self.residents.get_resident(resident_id)
        if resident is None or resident.building_id != building_id:
            raise ReferentialIntegrityError(
                f"Resident {resident_id} not found in building {building_id}"
            )

        config = self.configurations.get_configuration(building_id)
        paid_on = paid_on or local_date(self.clock(), config.zone)
        if month is None or year is None:
            month, year = paid_on.month, paid_on.year
        validate_period(month, year)
        paid = to_amount(config.default_amount if amount is None else amount)

        existing = self.payments.find_by_resident_and_period(resident_id, month, year)
        if existing is not None:
            if existing.is_confirmed:
                raise InvalidTransitionError(
                    f"Resident {resident_id} already paid {month:02d}/{year}"
                )
            fields: dict[str, Any] = {
                "status": PaymentStatus.CONFIRMED,
                "payment_date": paid_on,
                "payment_method": method,
                "amount": paid,
            }
            if proof_reference is not None:
                fields["proof_reference"] = proof_reference
            if note is not None:
                fields["note"] = note
            record = self._apply(existing, fields)
            logger.info(
                "Confirmed %s charge %s for resident %s (%02d/%d)",
                existing.status.value.lower(),
                record.record_id,
                resident_id,
                month,
                year,
            )
            return record

        record = PaymentRecord(
            resident_id=resident_id,
            building_id=building_id,
            amount=paid,
            month=month,
            year=year,
            status=PaymentStatus.CONFIRMED,
            due_date=due_date_for(year, month, config.due_day),
            payment_method=method,
            payment_date=paid_on,
            proof_reference=proof_reference,
            note=note,
        )
        validate_new_record(record)
        created = self.payments.create(record)
        logger.info(
            "Registered payment %s for resident %s (%02d/%d, %s)",
            created.record_id,
            resident_id,
            month,
            year,
            method.value,
        )
        return created

    def confirm_payment(
        self,
        record_id: str,
        *,
        method: PaymentMethod,
        paid_on: date | None = None,
        proof_reference: str | None = None,
        note: str | None = None,
    ) -> PaymentRecord:
        """Confirm a pending or overdue charge."""
        record = self._get(record_id)
        ensure_transition(record, PaymentStatus.CONFIRMED)
        if paid_on is None:
            zone = self.configurations.get_configuration(record.building_id).zone
            paid_on = local_date(self.clock(), zone)

        fields: dict[str, Any] = {
            "status": PaymentStatus.CONFIRMED,
            "payment_date": paid_on,
            "payment_method": method,
        }
        if proof_reference is not None:
            fields["proof_reference"] = proof_reference
        if note is not None:
            fields["note"] = note
        confirmed = self._apply(record, fields)
        logger.info("Confirmed payment %s (%s)", record_id, method.value)
        return confirmed

    def mark_overdue(self, record_id: str, at: datetime | None = None) -> PaymentRecord:
        """Mark one pending charge overdue once its due date has passed."""
        record = self._get(record_id)
        ensure_transition(record, PaymentStatus.OVERDUE)
        zone = self.configurations.get_configuration(record.building_id).zone
        today = local_date(at or self.clock(), zone)
        if record.due_date >= today:
            raise InvalidTransitionError(
                f"Payment {record_id} is due {record.due_date.isoformat()}, not overdue on {today.isoformat()}"
            )
        return self._apply(record, {"status": PaymentStatus.OVERDUE})

    def attach_proof(self, record_id: str, proof_reference: str) -> PaymentRecord:
        """Attach a proof-of-payment pointer to a record."""
        if not proof_reference:
            raise ValueError("Proof reference must not be empty")
        record = self._get(record_id)
        return self._apply(record, {"proof_reference": proof_reference})

    def history(self, resident_id: str) -> list[PaymentRecord]:
        """All records of a resident, latest payment first."""
        return self.payments.list_by_resident(resident_id)

    def get_configuration(self, building_id: str) -> BillingConfiguration:
        return self.configurations.get_configuration(building_id)

    def save_configuration(self, building_id: str, config: BillingConfiguration) -> None:
        """Validate and replace a building's configuration."""
        config.validate()
        self.configurations.save_configuration(
            building_id, replace(config, default_amount=to_amount(config.default_amount))
        )
        logger.info(
            "Saved billing configuration for building %s (amount=%s, due day=%d)",
            building_id,
            config.default_amount,
            config.due_day,
        )
