"""Dashboard statistics and per-month payment summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from condo_billing.billing.status import PaymentStatusClassifier
from condo_billing.models.billing import PaymentRecord, PaymentStatus, ResidentStatus
from condo_billing.store.base import PaymentStore


@dataclass
class BuildingStatistics:
    """Resident standing counts for a building."""

    total_residents: int
    current: int
    overdue: int

    @property
    def current_percentage(self) -> float:
        """Share of residents in good standing, 0-100."""
        if self.total_residents == 0:
            return 0.0
        return self.current / self.total_residents * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_residents": self.total_residents,
            "current": self.current,
            "overdue": self.overdue,
            "current_percentage": round(self.current_percentage, 2),
        }


@dataclass
class MonthlySummary:
    """Confirmed and overdue charges per month of a year (index 0 is January)."""

    year: int
    confirmed: list[int] = field(default_factory=lambda: [0] * 12)
    overdue: list[int] = field(default_factory=lambda: [0] * 12)
    collected: list[Decimal] = field(default_factory=lambda: [Decimal("0.00")] * 12)

    @property
    def total_collected(self) -> Decimal:
        return sum(self.collected, Decimal("0.00"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "confirmed": self.confirmed,
            "overdue": self.overdue,
            "collected": [str(amount) for amount in self.collected],
            "total_collected": str(self.total_collected),
        }


def summarize_standings(standings: list[ResidentStatus]) -> BuildingStatistics:
    current = sum(1 for status in standings if status.is_current)
    return BuildingStatistics(
        total_residents=len(standings),
        current=current,
        overdue=len(standings) - current,
    )


def summarize_month_by_month(records: list[PaymentRecord], year: int) -> MonthlySummary:
    """Bucket a year's records by billing month; pending charges are not counted."""
    summary = MonthlySummary(year=year)
    for record in records:
        if record.year != year:
            continue
        index = record.month - 1
        if record.status == PaymentStatus.CONFIRMED:
            summary.confirmed[index] += 1
            summary.collected[index] += record.amount
        elif record.status == PaymentStatus.OVERDUE:
            summary.overdue[index] += 1
    return summary


class BillingReports:
    """Read-only reports over a building's payments."""

    def __init__(self, payments: PaymentStore, classifier: PaymentStatusClassifier) -> None:
        self.payments = payments
        self.classifier = classifier

    def statistics(self, building_id: str, at: datetime | None = None) -> BuildingStatistics:
        return summarize_standings(self.classifier.list_standings(building_id, at))

    def monthly_summary(self, building_id: str, year: int) -> MonthlySummary:
        return summarize_month_by_month(self.payments.list_by_building(building_id, year), year)
