"""Building scenario: a demo condominium run through a billing month."""

from __future__ import annotations

import logging
import random
from datetime import datetime
from decimal import Decimal
from typing import Any

from condo_billing.billing import (
    BatchResult,
    BillingCycleGenerator,
    BillingReports,
    OverdueSweeper,
    PaymentStatusClassifier,
)
from condo_billing.billing.events import events_from_batch
from condo_billing.generators import (
    PaymentHistoryGenerator,
    ResidentGenerator,
    previous_periods,
)
from condo_billing.models.billing import BillingConfiguration
from condo_billing.periods import local_date, utcnow
from condo_billing.store import InMemoryBillingStore

logger = logging.getLogger(__name__)


class BuildingScenario:
    """Generate a building with payment history, then bill and sweep it.

    This scenario creates:
    - A saved billing configuration
    - One resident per unit, floor by floor
    - Past charges per resident following a payer behavior profile
    - The current month's charges (billing cycle)
    - Overdue marks for unpaid past charges (sweep)
    """

    def __init__(
        self,
        building_id: str = "building-demo",
        floors: int = 4,
        units_per_floor: int = 4,
        history_months: int = 6,
        default_amount: Decimal | str = "450.00",
        due_day: int = 10,
        at: datetime | None = None,
        seed: int | None = None,
        source: str = "condo-billing",
    ) -> None:
        """Initialize building scenario.

        Parameters
        ----------
        building_id : str
            Identifier of the generated building.
        floors, units_per_floor : int
            Building layout; one resident per unit.
        history_months : int
            Number of past months of charges per resident.
        default_amount : Decimal | str
            Monthly fee.
        due_day : int
            Day of month charges are due.
        at : datetime | None
            Instant the scenario runs at; defaults to now.
        seed : int | None
            Random seed for reproducibility.
        source : str
            Event source name.
        """
        self.building_id = building_id
        self.floors = floors
        self.units_per_floor = units_per_floor
        self.history_months = history_months
        self.at = at or utcnow()
        self.seed = seed
        self.source = source
        self.configuration = BillingConfiguration(
            default_amount=Decimal(str(default_amount)),
            due_day=due_day,
        )
        self.configuration.validate()

        if seed is not None:
            random.seed(seed)

        self.store = InMemoryBillingStore()
        self._resident_gen = ResidentGenerator(seed=seed)
        self._history_gen = PaymentHistoryGenerator(seed=seed)

        self.cycle_result: BatchResult | None = None
        self.sweep_result: BatchResult | None = None

    def _clock(self) -> datetime:
        return self.at

    def generate(self) -> InMemoryBillingStore:
        """Generate all data for the building scenario.

        Returns
        -------
        InMemoryBillingStore
            Store containing residents, configuration and charges.
        """
        logger.info(
            "Starting building scenario: %d units, %d months of history",
            self.floors * self.units_per_floor,
            self.history_months,
        )
        self.store.save_configuration(self.building_id, self.configuration)

        for resident in self._resident_gen.generate_building(
            self.building_id, self.floors, self.units_per_floor
        ):
            self.store.add_resident(resident)

        today = local_date(self.at, self.configuration.zone)
        periods = previous_periods(today, self.history_months)
        for resident in self.store.list_residents(self.building_id):
            for record in self._history_gen.generate_history(
                resident, self.configuration, periods, reference_date=today
            ):
                self.store.create(record)

        logger.info(
            "Generated %d residents with %d past charges",
            len(self.store.residents),
            len(self.store.payments),
        )

        cycle = BillingCycleGenerator(self.store, self.store, self.store, clock=self._clock)
        self.cycle_result = cycle.generate(self.building_id)

        sweeper = OverdueSweeper(self.store, self.store, clock=self._clock)
        self.sweep_result = sweeper.sweep(self.building_id)

        return self.store

    @property
    def reports(self) -> BillingReports:
        classifier = PaymentStatusClassifier(self.store, self.store, self.store, clock=self._clock)
        return BillingReports(self.store, classifier)

    def events(self) -> list[Any]:
        """Events for the charges created and marked overdue by this run."""
        events = []
        for result in (self.cycle_result, self.sweep_result):
            if result is not None:
                events.extend(events_from_batch(result, source=self.source))
        return events

    def export(self, sinks: list[Any]) -> None:
        """Export generated data to sinks.

        Parameters
        ----------
        sinks : list[Any]
            List of sink instances (ConsoleSink, JsonFileSink, KafkaSink).
        """
        reports = self.reports
        standings = reports.classifier.list_standings(self.building_id)
        records = self.store.list_by_building(self.building_id)
        residents = self.store.list_residents(self.building_id)
        events = self.events()
        for sink in sinks:
            sink.write_batch("residents", residents)
            sink.write_batch("payment_records", records)
            sink.write_batch("resident_statuses", standings)
            sink.write_batch("payment_events", events)

        logger.info("Exported building %s to %d sinks", self.building_id, len(sinks))

    def get_summary(self) -> dict[str, Any]:
        """Get summary statistics for the building.

        Returns
        -------
        dict[str, Any]
            Store counts (residents, payments by status), standing
            statistics and run results.
        """
        return {
            "building_id": self.building_id,
            "store": self.store.summary(),
            "statistics": self.reports.statistics(self.building_id).to_dict(),
            "billing_cycle": self.cycle_result.summary() if self.cycle_result else None,
            "overdue_sweep": self.sweep_result.summary() if self.sweep_result else None,
        }
