"""Tests for the in-memory billing store."""

import threading
from datetime import date
from decimal import Decimal

import pytest

from condo_billing.exceptions import (
    ConfigurationMissingError,
    DuplicateRecordError,
    RecordNotFoundError,
    ReferentialIntegrityError,
    StaleRecordError,
)
from condo_billing.models.billing import (
    BillingConfiguration,
    PaymentMethod,
    PaymentStatus,
    Resident,
)
from condo_billing.store import (
    BillingConfigStore,
    InMemoryBillingStore,
    PaymentStore,
    ResidentDirectory,
)


class TestProtocols:
    """The memory store satisfies every repository interface."""

    def test_implements_interfaces(self) -> None:
        store = InMemoryBillingStore()

        assert isinstance(store, PaymentStore)
        assert isinstance(store, BillingConfigStore)
        assert isinstance(store, ResidentDirectory)


class TestResidents:
    """Tests for the resident directory."""

    def test_add_and_list(self, store: InMemoryBillingStore, building_id: str) -> None:
        store.add_resident(Resident("res-002", building_id, "102", "João"))
        store.add_resident(Resident("res-other", "bldg-other", "101", "Ana"))

        ids = [r.resident_id for r in store.list_residents(building_id)]

        assert ids == ["res-test-001", "res-002"]
        assert store.list_residents("bldg-missing") == []

    def test_add_is_idempotent(self, store: InMemoryBillingStore, resident: Resident, building_id: str) -> None:
        store.add_resident(resident)

        assert len(store.list_residents(building_id)) == 1

    def test_get_resident(self, store: InMemoryBillingStore) -> None:
        assert store.get_resident("res-test-001").unit == "101"
        assert store.get_resident("missing") is None


class TestConfiguration:
    """Tests for billing configuration storage."""

    def test_saved_configuration(self, store: InMemoryBillingStore, building_id: str) -> None:
        config = store.get_configuration(building_id)

        assert config.default_amount == Decimal("500.00")
        assert config.updated_at is not None

    def test_default_for_unconfigured_building(self) -> None:
        config = InMemoryBillingStore().get_configuration("bldg-new")

        assert config == BillingConfiguration.default()

    def test_missing_without_default(self) -> None:
        store = InMemoryBillingStore(default_configuration=None)

        with pytest.raises(ConfigurationMissingError):
            store.get_configuration("bldg-new")

    def test_save_replaces_wholesale(self, store: InMemoryBillingStore, building_id: str) -> None:
        store.save_configuration(building_id, BillingConfiguration(due_day=5))

        config = store.get_configuration(building_id)
        assert config.due_day == 5
        assert config.default_amount == Decimal("0.00")

    def test_returned_configuration_is_a_copy(self, store: InMemoryBillingStore, building_id: str) -> None:
        store.get_configuration(building_id).due_day = 1

        assert store.get_configuration(building_id).due_day == 10


class TestCreate:
    """Tests for record creation."""

    def test_assigns_id_and_timestamp(self, store: InMemoryBillingStore, make_record) -> None:
        created = store.create(make_record())

        assert created.record_id
        assert created.created_at is not None
        assert store.get_record(created.record_id) == created

    def test_unknown_resident(self, store: InMemoryBillingStore, make_record) -> None:
        with pytest.raises(ReferentialIntegrityError):
            store.create(make_record(resident_id="res-ghost"))

    def test_duplicate_period(self, store: InMemoryBillingStore, make_record) -> None:
        store.create(make_record(month=3))

        with pytest.raises(DuplicateRecordError):
            store.create(make_record(month=3))
        assert len(store.payments) == 1

    def test_concurrent_creates_keep_one_record(self, store: InMemoryBillingStore, make_record) -> None:
        outcomes: list[str] = []

        def worker() -> None:
            try:
                store.create(make_record(month=4))
                outcomes.append("created")
            except DuplicateRecordError:
                outcomes.append("duplicate")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("created") == 1
        assert outcomes.count("duplicate") == 7


class TestUpdate:
    """Tests for partial updates."""

    def test_update_fields(self, store: InMemoryBillingStore, make_record) -> None:
        created = store.create(make_record())

        store.update(
            created.record_id,
            {
                "status": PaymentStatus.CONFIRMED,
                "payment_date": date(2024, 1, 8),
                "payment_method": PaymentMethod.BOLETO,
            },
        )

        updated = store.get_record(created.record_id)
        assert updated.status == PaymentStatus.CONFIRMED
        assert updated.payment_method == PaymentMethod.BOLETO
        assert updated.updated_at is not None
        assert updated.due_date == created.due_date

    def test_unknown_record(self, store: InMemoryBillingStore) -> None:
        with pytest.raises(RecordNotFoundError):
            store.update("missing", {"note": "x"})

    def test_unknown_field(self, store: InMemoryBillingStore, make_record) -> None:
        created = store.create(make_record())

        with pytest.raises(ValueError):
            store.update(created.record_id, {"due_date": date(2024, 2, 1)})

    def test_expected_status_guard(self, store: InMemoryBillingStore, make_record) -> None:
        created = store.create(make_record())
        store.update(created.record_id, {"status": PaymentStatus.OVERDUE})

        with pytest.raises(StaleRecordError):
            store.update(
                created.record_id,
                {"status": PaymentStatus.OVERDUE},
                expected_status=PaymentStatus.PENDING,
            )


class TestQueries:
    """Tests for finders and listings."""

    def test_find_by_resident_and_period(self, store: InMemoryBillingStore, make_record) -> None:
        created = store.create(make_record(month=2))

        assert store.find_by_resident_and_period("res-test-001", 2, 2024) == created
        assert store.find_by_resident_and_period("res-test-001", 3, 2024) is None

    def test_find_pending_before(self, store: InMemoryBillingStore, make_record, building_id: str) -> None:
        early = store.create(make_record(month=1, due_date=date(2024, 1, 10)))
        store.create(make_record(month=2, due_date=date(2024, 2, 10)))
        store.create(
            make_record(
                month=3,
                due_date=date(2024, 1, 5),
                status=PaymentStatus.CONFIRMED,
                payment_date=date(2024, 1, 4),
            )
        )

        pending = store.find_pending_before(building_id, date(2024, 2, 10))

        assert [r.record_id for r in pending] == [early.record_id]
        assert store.find_pending_before("bldg-other", date(2030, 1, 1)) == []

    def test_latest_prefers_payment_date(self, store: InMemoryBillingStore, make_record) -> None:
        store.create(make_record(month=1, status=PaymentStatus.CONFIRMED, payment_date=date(2024, 1, 15)))
        store.create(make_record(month=2))
        store.create(make_record(month=12, year=2023, status=PaymentStatus.CONFIRMED, payment_date=date(2023, 12, 9)))

        latest = store.find_latest_by_resident("res-test-001")
        history = store.list_by_resident("res-test-001")

        assert latest.payment_date == date(2024, 1, 15)
        assert [r.period for r in history] == [(2024, 1), (2023, 12), (2024, 2)]

    def test_latest_without_records(self, store: InMemoryBillingStore) -> None:
        assert store.find_latest_by_resident("res-test-001") is None

    def test_list_by_building_year(self, store: InMemoryBillingStore, make_record, building_id: str) -> None:
        store.create(make_record(month=12, year=2023))
        store.create(make_record(month=1, year=2024))

        assert len(store.list_by_building(building_id)) == 2
        assert [r.year for r in store.list_by_building(building_id, 2024)] == [2024]

    def test_returned_records_are_copies(self, store: InMemoryBillingStore, make_record) -> None:
        created = store.create(make_record())
        created.status = PaymentStatus.OVERDUE

        assert store.get_record(created.record_id).status == PaymentStatus.PENDING

    def test_summary(self, store: InMemoryBillingStore, make_record) -> None:
        store.create(make_record(month=1))
        store.create(make_record(month=2, status=PaymentStatus.CONFIRMED, payment_date=date(2024, 2, 1)))

        summary = store.summary()

        assert summary["residents"] == 1
        assert summary["buildings"] == 1
        assert summary["payments"] == 2
        assert summary["pending"] == 1
        assert summary["confirmed"] == 1
        assert summary["overdue"] == 0
