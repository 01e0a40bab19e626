"""Overdue detection."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable

from condo_billing.billing.results import BatchResult
from condo_billing.billing.transitions import ensure_transition
from condo_billing.exceptions import (
    ConfigurationMissingError,
    RecordWriteFailedError,
    StaleRecordError,
)
from condo_billing.models.billing import PaymentStatus
from condo_billing.periods import DEFAULT_TIMEZONE, local_date, utcnow
from condo_billing.store.base import BillingConfigStore, PaymentStore

logger = logging.getLogger(__name__)


class OverdueSweeper:
    """Move pending charges past their due date to overdue.

    A charge is overdue once the building's local date is after its due
    date; a charge due today is still pending. Updates are guarded by the
    expected PENDING status, so a charge confirmed mid-sweep is skipped
    rather than overwritten. Safe to re-run.
    """

    def __init__(
        self,
        payments: PaymentStore,
        configurations: BillingConfigStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.payments = payments
        self.configurations = configurations
        self.clock = clock

    def sweep(self, building_id: str, at: datetime | None = None) -> BatchResult:
        """Mark the building's stale pending charges as overdue.

        Parameters
        ----------
        building_id : str
            Building to sweep.
        at : datetime | None
            Evaluation instant; defaults to now.

        Returns
        -------
        BatchResult
            Record ids transitioned, skipped (changed concurrently) and failed.
        """
        try:
            tz = self.configurations.get_configuration(building_id).timezone
        except ConfigurationMissingError:
            tz = DEFAULT_TIMEZONE
        cutoff = local_date(at or self.clock(), tz)

        result = BatchResult(operation="overdue_sweep", building_id=building_id)
        pending = self.payments.find_pending_before(building_id, cutoff)
        logger.info(
            "Sweeping building %s: %d pending charges due before %s",
            building_id,
            len(pending),
            cutoff.isoformat(),
        )

        for record in pending:
            try:
                ensure_transition(record, PaymentStatus.OVERDUE)
                self.payments.update(
                    record.record_id,
                    {"status": PaymentStatus.OVERDUE},
                    expected_status=PaymentStatus.PENDING,
                )
            except StaleRecordError:
                result.skipped.append(record.record_id)
            except Exception as exc:
                logger.warning("Failed to mark payment %s overdue: %s", record.record_id, exc)
                result.failures.append(RecordWriteFailedError(record.record_id, exc))
            else:
                result.succeeded.append(record.record_id)
                result.records.append(replace(record, status=PaymentStatus.OVERDUE))

        logger.info(
            "Overdue sweep for building %s: %d marked, %d skipped, %d failed",
            building_id,
            len(result.succeeded),
            len(result.skipped),
            len(result.failures),
            extra={"batch": result.summary()},
        )
        return result
