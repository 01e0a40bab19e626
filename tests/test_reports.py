"""Tests for dashboard statistics and monthly summaries."""

from datetime import date, datetime, timezone
from decimal import Decimal

from condo_billing.billing import (
    BillingReports,
    BuildingStatistics,
    MonthlySummary,
    PaymentStatusClassifier,
)
from condo_billing.billing.reports import summarize_month_by_month
from condo_billing.models.billing import PaymentStatus, Resident
from condo_billing.store import InMemoryBillingStore


class TestBuildingStatistics:
    """Tests for BuildingStatistics."""

    def test_percentage(self) -> None:
        stats = BuildingStatistics(total_residents=4, current=3, overdue=1)

        assert stats.current_percentage == 75.0
        assert stats.to_dict()["current_percentage"] == 75.0

    def test_empty_building(self) -> None:
        stats = BuildingStatistics(total_residents=0, current=0, overdue=0)

        assert stats.current_percentage == 0.0


class TestMonthlySummary:
    """Tests for month-by-month bucketing."""

    def test_buckets_by_month(self, make_record) -> None:
        records = [
            make_record(month=1, status=PaymentStatus.CONFIRMED, payment_date=date(2024, 1, 9)),
            make_record(resident_id="res-002", month=1, status=PaymentStatus.OVERDUE),
            make_record(month=3, status=PaymentStatus.CONFIRMED, payment_date=date(2024, 3, 9), amount=Decimal("510.00")),
            make_record(month=4),
            make_record(month=5, year=2023, status=PaymentStatus.CONFIRMED, payment_date=date(2023, 5, 9)),
        ]

        summary = summarize_month_by_month(records, 2024)

        assert summary.confirmed == [1, 0, 1] + [0] * 9
        assert summary.overdue == [1] + [0] * 11
        assert summary.collected[0] == Decimal("500.00")
        assert summary.collected[2] == Decimal("510.00")
        assert summary.total_collected == Decimal("1010.00")

    def test_to_dict(self) -> None:
        data = MonthlySummary(year=2024).to_dict()

        assert data["year"] == 2024
        assert len(data["confirmed"]) == 12
        assert data["total_collected"] == "0.00"


class TestBillingReports:
    """Tests for store-backed reports."""

    def test_statistics(self, store: InMemoryBillingStore, building_id: str, make_record) -> None:
        store.add_resident(Resident("res-002", building_id, "102", "João"))
        store.create(make_record(month=1, status=PaymentStatus.CONFIRMED, payment_date=date(2024, 1, 15)))
        reports = BillingReports(store, PaymentStatusClassifier(store, store, store))

        stats = reports.statistics(building_id, at=datetime(2024, 2, 1, 12, tzinfo=timezone.utc))

        assert stats.total_residents == 2
        assert stats.current == 1
        assert stats.overdue == 1
        assert stats.current_percentage == 50.0

    def test_statistics_empty_building(self) -> None:
        store = InMemoryBillingStore()
        reports = BillingReports(store, PaymentStatusClassifier(store, store, store))

        stats = reports.statistics("bldg-empty")

        assert stats.total_residents == 0
        assert stats.current_percentage == 0.0

    def test_monthly_summary(self, store: InMemoryBillingStore, building_id: str, make_record) -> None:
        store.create(make_record(month=2, status=PaymentStatus.CONFIRMED, payment_date=date(2024, 2, 9)))
        reports = BillingReports(store, PaymentStatusClassifier(store, store, store))

        summary = reports.monthly_summary(building_id, 2024)

        assert summary.confirmed[1] == 1
        assert summary.total_collected == Decimal("500.00")
