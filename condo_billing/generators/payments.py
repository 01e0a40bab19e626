"""Payment history generator with realistic payer behavior."""

from __future__ import annotations

import random
from datetime import date, timedelta

from condo_billing.generators.base import BaseGenerator
from condo_billing.models.billing import (
    BillingConfiguration,
    PaymentMethod,
    PaymentRecord,
    PaymentStatus,
    Resident,
    to_amount,
)
from condo_billing.periods import due_date_for


def previous_periods(reference: date, months: int) -> list[tuple[int, int]]:
    """The ``months`` periods before ``reference``'s month, oldest first."""
    periods = []
    year, month = reference.year, reference.month
    for _ in range(months):
        month -= 1
        if month == 0:
            year, month = year - 1, 12
        periods.append((year, month))
    return list(reversed(periods))


class PaymentHistoryGenerator(BaseGenerator):
    """Simulate a resident's past monthly charges.

    Each resident gets one behavior profile for the whole history:

    - ``good``: pays within three days of the due date
    - ``occasional_late``: mostly on time, sometimes weeks late
    - ``chronic_late``: always pays, usually late
    - ``defaulter``: pays the first few months, then stops
    """

    BEHAVIORS = ["good", "occasional_late", "chronic_late", "defaulter"]

    PAYMENT_METHODS = list(PaymentMethod)
    PAYMENT_METHOD_WEIGHTS = [0.60, 0.25, 0.12, 0.03]

    def __init__(
        self,
        seed: int | None = None,
        on_time_rate: float = 0.75,
        late_rate: float = 0.15,
        default_rate: float = 0.10,
    ) -> None:
        super().__init__(seed)
        self.weights = [on_time_rate, late_rate * 0.7, late_rate * 0.3, default_rate]

    def pick_behavior(self) -> str:
        return random.choices(self.BEHAVIORS, weights=self.weights, k=1)[0]

    def generate_history(
        self,
        resident: Resident,
        configuration: BillingConfiguration,
        periods: list[tuple[int, int]],
        reference_date: date,
        behavior: str | None = None,
    ) -> list[PaymentRecord]:
        """Generate charges for the given periods.

        Parameters
        ----------
        resident : Resident
            Resident being billed.
        configuration : BillingConfiguration
            Source of the amount and due day.
        periods : list[tuple[int, int]]
            ``(year, month)`` periods, oldest first.
        reference_date : date
            "Today"; payments never land after it.
        behavior : str | None
            Force a behavior profile instead of drawing one.

        Returns
        -------
        list[PaymentRecord]
            Unsaved records: confirmed ones carry a payment date, unpaid
            ones are left pending for the sweeper.
        """
        behavior = behavior or self.pick_behavior()
        if behavior not in self.BEHAVIORS:
            raise ValueError(f"Unknown payer behavior: {behavior}")

        amount = to_amount(configuration.default_amount)
        stop_after = random.randint(1, 3)
        records = []
        for index, (year, month) in enumerate(periods):
            due = due_date_for(year, month, configuration.due_day)
            paid_on = self._payment_date(behavior, due, index, stop_after)
            if paid_on is not None and paid_on > reference_date:
                paid_on = None

            record = PaymentRecord(
                resident_id=resident.resident_id,
                building_id=resident.building_id,
                amount=amount,
                month=month,
                year=year,
                status=PaymentStatus.PENDING,
                due_date=due,
            )
            if paid_on is not None:
                record.status = PaymentStatus.CONFIRMED
                record.payment_date = paid_on
                record.payment_method = random.choices(
                    self.PAYMENT_METHODS, weights=self.PAYMENT_METHOD_WEIGHTS, k=1
                )[0]
            records.append(record)

        return records

    def _payment_date(self, behavior: str, due: date, index: int, stop_after: int) -> date | None:
        if behavior == "good":
            return due + timedelta(days=random.randint(-5, 3))
        if behavior == "occasional_late":
            if random.random() < 0.8:
                return due + timedelta(days=random.randint(-3, 5))
            return due + timedelta(days=random.randint(10, 30))
        if behavior == "chronic_late":
            return due + timedelta(days=random.randint(5, 45))
        # defaulter
        if index < stop_after:
            return due + timedelta(days=random.randint(0, 15))
        return None
