"""Monthly charge generation."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from condo_billing.billing.results import BatchResult
from condo_billing.exceptions import DuplicateRecordError, RecordWriteFailedError
from condo_billing.models.billing import PaymentRecord, PaymentStatus, to_amount
from condo_billing.periods import due_date_for, local_date, utcnow, validate_period
from condo_billing.store.base import BillingConfigStore, PaymentStore, ResidentDirectory

logger = logging.getLogger(__name__)


class BillingCycleGenerator:
    """Ensure every resident of a building has one charge for a billing period.

    Running it again for the same period is a no-op: residents that
    already have a record are skipped and their records left untouched.
    The store's unique-key guard catches concurrent runs that race past
    the existence check.

    Parameters
    ----------
    payments : PaymentStore
        Payment record store.
    configurations : BillingConfigStore
        Source of the building's amount, due day and time zone.
    residents : ResidentDirectory
        Source of the residents to bill.
    clock : Callable[[], datetime]
        Current instant; defaults to UTC now.
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

    def generate(
        self,
        building_id: str,
        month: int | None = None,
        year: int | None = None,
    ) -> BatchResult:
        """Create the missing pending charges for a billing period.

        Parameters
        ----------
        building_id : str
            Building to bill.
        month, year : int | None
            Billing period. Both default to the current month in the
            building's time zone; give both or neither.

        Returns
        -------
        BatchResult
            Resident ids billed (``succeeded``), already billed
            (``skipped``) and failed.

        Raises
        ------
        ConfigurationMissingError
            If the building has no configuration and no default applies.
            Nothing is written.
        ConfigurationError
            If the configuration is invalid. Nothing is written.
        """
        if (month is None) != (year is None):
            raise ValueError("Give both month and year, or neither")

        config = self.configurations.get_configuration(building_id)
        config.validate()

        if month is None or year is None:
            today = local_date(self.clock(), config.zone)
            month, year = today.month, today.year
        validate_period(month, year)

        amount = to_amount(config.default_amount)
        due_date = due_date_for(year, month, config.due_day)
        result = BatchResult(operation="billing_cycle", building_id=building_id)

        logger.info(
            "Generating charges for building %s, period %02d/%d (amount=%s, due=%s)",
            building_id,
            month,
            year,
            amount,
            due_date.isoformat(),
        )

        for resident in self.residents.list_residents(building_id):
            resident_id = resident.resident_id
            try:
                if self.payments.find_by_resident_and_period(resident_id, month, year):
                    result.skipped.append(resident_id)
                    continue

                record = self.payments.create(
                    PaymentRecord(
                        resident_id=resident_id,
                        building_id=building_id,
                        amount=amount,
                        month=month,
                        year=year,
                        status=PaymentStatus.PENDING,
                        due_date=due_date,
                    )
                )
            except DuplicateRecordError:
                logger.debug("Resident %s was billed concurrently, skipping", resident_id)
                result.skipped.append(resident_id)
            except Exception as exc:
                logger.warning("Failed to bill resident %s: %s", resident_id, exc)
                result.failures.append(RecordWriteFailedError(resident_id, exc))
            else:
                result.succeeded.append(resident_id)
                result.records.append(record)

        logger.info(
            "Billing cycle for building %s: %d created, %d skipped, %d failed",
            building_id,
            len(result.succeeded),
            len(result.skipped),
            len(result.failures),
            extra={"batch": result.summary()},
        )
        return result
