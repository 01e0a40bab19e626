"""PostgreSQL billing store.

Implements the payment, configuration and resident interfaces on top of
three tables. ``UNIQUE (resident_id, month, year)`` backs the
one-record-per-period invariant, so concurrent billing runs cannot
double-charge a resident.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

import psycopg
from psycopg import errors as pg_errors
from psycopg import sql
from psycopg.rows import dict_row

from condo_billing.config import PostgresConfig
from condo_billing.exceptions import (
    ConfigurationMissingError,
    DuplicateRecordError,
    RecordNotFoundError,
    ReferentialIntegrityError,
    StaleRecordError,
    StoreUnavailableError,
)
from condo_billing.models.billing import (
    BillingConfiguration,
    PaymentMethod,
    PaymentRecord,
    PaymentStatus,
    PixKeyType,
    Resident,
)
from condo_billing.models.billing.payment import UPDATABLE_FIELDS
from condo_billing.periods import utcnow

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS residents (
    resident_id TEXT PRIMARY KEY,
    building_id TEXT NOT NULL,
    unit TEXT NOT NULL,
    name TEXT NOT NULL,
    email TEXT NOT NULL DEFAULT '',
    phone TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_residents_building ON residents (building_id);

CREATE TABLE IF NOT EXISTS billing_configurations (
    building_id TEXT PRIMARY KEY,
    default_amount NUMERIC(12, 2) NOT NULL CHECK (default_amount >= 0),
    due_day SMALLINT NOT NULL CHECK (due_day BETWEEN 1 AND 31),
    pix_key TEXT,
    pix_key_type TEXT,
    webhook_url TEXT,
    timezone TEXT NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS payment_records (
    record_id TEXT PRIMARY KEY,
    resident_id TEXT NOT NULL REFERENCES residents (resident_id),
    building_id TEXT NOT NULL,
    amount NUMERIC(12, 2) NOT NULL CHECK (amount >= 0),
    month SMALLINT NOT NULL CHECK (month BETWEEN 1 AND 12),
    year INTEGER NOT NULL,
    status TEXT NOT NULL CHECK (status IN ('PENDING', 'CONFIRMED', 'OVERDUE')),
    payment_method TEXT,
    due_date DATE NOT NULL,
    payment_date DATE,
    proof_reference TEXT,
    note TEXT,
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ,
    UNIQUE (resident_id, month, year),
    CHECK ((status = 'CONFIRMED') = (payment_date IS NOT NULL))
);

CREATE INDEX IF NOT EXISTS idx_payment_records_pending
    ON payment_records (building_id, due_date) WHERE status = 'PENDING';
CREATE INDEX IF NOT EXISTS idx_payment_records_building_year
    ON payment_records (building_id, year);
"""

PAYMENT_COLUMNS = [
    "record_id",
    "resident_id",
    "building_id",
    "amount",
    "month",
    "year",
    "status",
    "payment_method",
    "due_date",
    "payment_date",
    "proof_reference",
    "note",
    "created_at",
    "updated_at",
]

# Latest payment date first, undated (pending/overdue) charges after
LATEST_FIRST = "ORDER BY payment_date DESC NULLS LAST, year DESC, month DESC"


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _row_to_record(row: dict[str, Any]) -> PaymentRecord:
    return PaymentRecord(
        record_id=row["record_id"],
        resident_id=row["resident_id"],
        building_id=row["building_id"],
        amount=Decimal(row["amount"]),
        month=row["month"],
        year=row["year"],
        status=PaymentStatus(row["status"]),
        payment_method=PaymentMethod(row["payment_method"]) if row["payment_method"] else None,
        due_date=row["due_date"],
        payment_date=row["payment_date"],
        proof_reference=row["proof_reference"],
        note=row["note"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresBillingStore:
    """Billing store backed by PostgreSQL (psycopg 3).

    Parameters
    ----------
    config : PostgresConfig | str
        Connection settings or a connection string. ``PostgresConfig``
        also sets the connect and per-statement timeouts.
    default_configuration : BillingConfiguration | None
        Returned for buildings without a saved configuration. ``None``
        makes such lookups raise ``ConfigurationMissingError``.
    """

    def __init__(
        self,
        config: PostgresConfig | str,
        default_configuration: BillingConfiguration | None = None,
    ) -> None:
        try:
            if isinstance(config, str):
                self.conn = psycopg.connect(config)
            else:
                self.conn = psycopg.connect(
                    config.connection_string,
                    connect_timeout=config.connect_timeout,
                    options=f"-c statement_timeout={config.statement_timeout_ms}",
                )
        except psycopg.OperationalError as exc:
            raise StoreUnavailableError(f"Cannot connect to PostgreSQL: {exc}") from exc
        self.default_configuration = default_configuration

    def create_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        try:
            with self.conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
        except psycopg.Error:
            self.conn.rollback()
            raise
        self.conn.commit()
        logger.info("Billing schema ready")

    def close(self) -> None:
        self.conn.close()

    def _select(self, query: str, params: tuple, one: bool = False) -> Any:
        """Run a read query and return its rows (or first row when ``one``).

        A failed statement aborts the connection's transaction, so it is
        rolled back before the error propagates and the next call starts
        clean.
        """
        try:
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                return cur.fetchone() if one else cur.fetchall()
        except psycopg.Error:
            self.conn.rollback()
            raise

    def _write(self, query: str, params: tuple) -> None:
        try:
            with self.conn.cursor() as cur:
                cur.execute(query, params)
        except psycopg.Error:
            self.conn.rollback()
            raise
        self.conn.commit()

    def _fetch_records(self, query: str, params: tuple) -> list[PaymentRecord]:
        rows = self._select(query, params)
        return [_row_to_record(row) for row in rows]

    def _fetch_record(self, query: str, params: tuple) -> PaymentRecord | None:
        records = self._fetch_records(query, params)
        return records[0] if records else None

    # Resident directory
    def add_resident(self, resident: Resident) -> None:
        """Insert or refresh a resident row."""
        self._write(
            "INSERT INTO residents (resident_id, building_id, unit, name, email, phone) "
            "VALUES (%s, %s, %s, %s, %s, %s) "
            "ON CONFLICT (resident_id) DO UPDATE SET building_id = EXCLUDED.building_id, "
            "unit = EXCLUDED.unit, name = EXCLUDED.name, email = EXCLUDED.email, "
            "phone = EXCLUDED.phone",
            (
                resident.resident_id,
                resident.building_id,
                resident.unit,
                resident.name,
                resident.email,
                resident.phone,
            ),
        )

    def list_residents(self, building_id: str) -> list[Resident]:
        """Get all residents of a building, ordered by unit."""
        rows = self._select(
            "SELECT resident_id, building_id, unit, name, email, phone "
            "FROM residents WHERE building_id = %s ORDER BY unit",
            (building_id,),
        )
        return [Resident(**row) for row in rows]

    def get_resident(self, resident_id: str) -> Resident | None:
        row = self._select(
            "SELECT resident_id, building_id, unit, name, email, phone "
            "FROM residents WHERE resident_id = %s",
            (resident_id,),
            one=True,
        )
        return Resident(**row) if row else None

    # Billing configuration
    def get_configuration(self, building_id: str) -> BillingConfiguration:
        """Get the building's configuration or the default policy."""
        row = self._select(
            "SELECT default_amount, due_day, pix_key, pix_key_type, webhook_url, timezone, "
            "updated_at FROM billing_configurations WHERE building_id = %s",
            (building_id,),
            one=True,
        )

        if row is None:
            if self.default_configuration is None:
                raise ConfigurationMissingError(
                    f"No billing configuration for building {building_id}"
                )
            return BillingConfiguration(
                default_amount=self.default_configuration.default_amount,
                due_day=self.default_configuration.due_day,
                timezone=self.default_configuration.timezone,
            )

        return BillingConfiguration(
            default_amount=Decimal(row["default_amount"]),
            due_day=row["due_day"],
            pix_key=row["pix_key"],
            pix_key_type=PixKeyType(row["pix_key_type"]) if row["pix_key_type"] else None,
            webhook_url=row["webhook_url"],
            timezone=row["timezone"],
            updated_at=row["updated_at"],
        )

    def save_configuration(self, building_id: str, config: BillingConfiguration) -> None:
        """Replace the building's configuration."""
        self._write(
            "INSERT INTO billing_configurations (building_id, default_amount, due_day, "
            "pix_key, pix_key_type, webhook_url, timezone, updated_at) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s) "
            "ON CONFLICT (building_id) DO UPDATE SET "
            "default_amount = EXCLUDED.default_amount, due_day = EXCLUDED.due_day, "
            "pix_key = EXCLUDED.pix_key, pix_key_type = EXCLUDED.pix_key_type, "
            "webhook_url = EXCLUDED.webhook_url, timezone = EXCLUDED.timezone, "
            "updated_at = EXCLUDED.updated_at",
            (
                building_id,
                config.default_amount,
                config.due_day,
                config.pix_key,
                _enum_value(config.pix_key_type),
                config.webhook_url,
                config.timezone,
                utcnow(),
            ),
        )

    # Payment records
    def create(self, record: PaymentRecord) -> PaymentRecord:
        """Insert a payment record, assigning its id."""
        stored = replace(record, record_id=uuid.uuid4().hex, created_at=utcnow())
        columns = sql.SQL(", ").join(sql.Identifier(name) for name in PAYMENT_COLUMNS)
        placeholders = sql.SQL(", ").join(sql.Placeholder() for _ in PAYMENT_COLUMNS)
        query = sql.SQL(
            "INSERT INTO payment_records ({}) VALUES ({}) "
            "ON CONFLICT (resident_id, month, year) DO NOTHING RETURNING record_id"
        ).format(columns, placeholders)

        try:
            with self.conn.cursor() as cur:
                cur.execute(
                    query, tuple(_enum_value(getattr(stored, name)) for name in PAYMENT_COLUMNS)
                )
                inserted = cur.fetchone()
        except pg_errors.ForeignKeyViolation as exc:
            self.conn.rollback()
            raise ReferentialIntegrityError(f"Resident {record.resident_id} not found") from exc
        except psycopg.Error:
            self.conn.rollback()
            raise

        self.conn.commit()
        if inserted is None:
            raise DuplicateRecordError(
                f"Resident {record.resident_id} already has a record for "
                f"{record.month:02d}/{record.year}"
            )
        return stored

    def update(
        self,
        record_id: str,
        fields: dict[str, Any],
        *,
        expected_status: PaymentStatus | None = None,
    ) -> None:
        """Apply a partial update, optionally guarded by the current status."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown payment fields: {sorted(unknown)}")

        values = {**fields, "updated_at": utcnow()}
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder()) for name in values
        )
        params: list[Any] = [_enum_value(value) for value in values.values()]
        condition = sql.SQL("record_id = %s")
        params.append(record_id)
        if expected_status is not None:
            condition = sql.SQL("record_id = %s AND status = %s")
            params.append(expected_status.value)

        query = sql.SQL("UPDATE payment_records SET {} WHERE {}").format(assignments, condition)
        existing = None
        try:
            with self.conn.cursor() as cur:
                cur.execute(query, tuple(params))
                updated = cur.rowcount
                if updated == 0:
                    cur.execute(
                        "SELECT status FROM payment_records WHERE record_id = %s", (record_id,)
                    )
                    existing = cur.fetchone()
        except psycopg.Error:
            self.conn.rollback()
            raise
        self.conn.commit()

        if updated == 0:
            if existing is None or expected_status is None:
                raise RecordNotFoundError(f"Payment {record_id} not found")
            raise StaleRecordError(
                f"Payment {record_id} is {existing[0]}, expected {expected_status.value}"
            )

    def get_record(self, record_id: str) -> PaymentRecord | None:
        return self._fetch_record(
            f"SELECT {', '.join(PAYMENT_COLUMNS)} FROM payment_records WHERE record_id = %s",
            (record_id,),
        )

    def find_by_resident_and_period(
        self, resident_id: str, month: int, year: int
    ) -> PaymentRecord | None:
        return self._fetch_record(
            f"SELECT {', '.join(PAYMENT_COLUMNS)} FROM payment_records "
            "WHERE resident_id = %s AND month = %s AND year = %s",
            (resident_id, month, year),
        )

    def find_pending_before(self, building_id: str, cutoff: date) -> list[PaymentRecord]:
        return self._fetch_records(
            f"SELECT {', '.join(PAYMENT_COLUMNS)} FROM payment_records "
            "WHERE building_id = %s AND status = 'PENDING' AND due_date < %s ORDER BY due_date",
            (building_id, cutoff),
        )

    def find_latest_by_resident(self, resident_id: str) -> PaymentRecord | None:
        return self._fetch_record(
            f"SELECT {', '.join(PAYMENT_COLUMNS)} FROM payment_records "
            f"WHERE resident_id = %s {LATEST_FIRST} LIMIT 1",
            (resident_id,),
        )

    def list_by_resident(self, resident_id: str) -> list[PaymentRecord]:
        return self._fetch_records(
            f"SELECT {', '.join(PAYMENT_COLUMNS)} FROM payment_records "
            f"WHERE resident_id = %s {LATEST_FIRST}",
            (resident_id,),
        )

    def list_by_building(self, building_id: str, year: int | None = None) -> list[PaymentRecord]:
        if year is None:
            return self._fetch_records(
                f"SELECT {', '.join(PAYMENT_COLUMNS)} FROM payment_records "
                "WHERE building_id = %s ORDER BY year, month",
                (building_id,),
            )
        return self._fetch_records(
            f"SELECT {', '.join(PAYMENT_COLUMNS)} FROM payment_records "
            "WHERE building_id = %s AND year = %s ORDER BY month",
            (building_id, year),
        )
