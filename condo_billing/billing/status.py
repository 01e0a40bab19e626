"""Resident payment standing (em dia / atrasado)."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable
from zoneinfo import ZoneInfo

from condo_billing.exceptions import ConfigurationMissingError, EntityNotFoundError
from condo_billing.models.billing import (
    PaymentRecord,
    PaymentStatus,
    Resident,
    ResidentStanding,
    ResidentStatus,
)
from condo_billing.periods import DEFAULT_TIMEZONE, get_zone, local_date, one_month_before, utcnow
from condo_billing.store.base import BillingConfigStore, PaymentStore, ResidentDirectory

logger = logging.getLogger(__name__)


def classify_standing(
    record: PaymentRecord | None,
    at: datetime | date,
    tz: str | ZoneInfo = DEFAULT_TIMEZONE,
) -> ResidentStanding:
    """Derive a resident's standing from their most recent payment.

    A resident is current when the latest payment date falls after the
    same day one calendar month before ``at`` (local date in ``tz``).
    No record, or a record that has not been paid, means overdue.

    The payment date is not tied to the record's billing period, so paying
    an old charge recently also counts as current.
    """
    if record is None or record.status != PaymentStatus.CONFIRMED or record.payment_date is None:
        return ResidentStanding.OVERDUE

    boundary = one_month_before(local_date(at, tz))
    if record.payment_date > boundary:
        return ResidentStanding.CURRENT
    return ResidentStanding.OVERDUE


class PaymentStatusClassifier:
    """Standing lookups backed by the payment store."""

    def __init__(
        self,
        payments: PaymentStore,
        residents: ResidentDirectory,
        configurations: BillingConfigStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.payments = payments
        self.residents = residents
        self.configurations = configurations
        self.clock = clock

    def _zone(self, building_id: str) -> ZoneInfo:
        try:
            return self.configurations.get_configuration(building_id).zone
        except ConfigurationMissingError:
            logger.debug("No configuration for building %s, using %s", building_id, DEFAULT_TIMEZONE)
            return get_zone(DEFAULT_TIMEZONE)

    def _status(self, resident: Resident, at: datetime, zone: ZoneInfo) -> ResidentStatus:
        latest = self.payments.find_latest_by_resident(resident.resident_id)
        return ResidentStatus(
            resident=resident,
            standing=classify_standing(latest, at, zone),
            latest_payment=latest,
        )

    def standing_for(self, resident_id: str, at: datetime | None = None) -> ResidentStatus:
        """Classify one resident."""
        resident = self.residents.get_resident(resident_id)
        if resident is None:
            raise EntityNotFoundError(f"Resident {resident_id} not found")
        return self._status(resident, at or self.clock(), self._zone(resident.building_id))

    def list_standings(self, building_id: str, at: datetime | None = None) -> list[ResidentStatus]:
        """Classify every resident of a building."""
        at = at or self.clock()
        zone = self._zone(building_id)
        return [
            self._status(resident, at, zone)
            for resident in self.residents.list_residents(building_id)
        ]
