"""Command line job runner.

Usage:
    condo-billing init-db
    condo-billing generate --building B1 --month 3 --year 2024 --publish
    condo-billing sweep --building B1
    condo-billing status --building B1 [--resident R1]
    condo-billing report --building B1 --year 2024
    condo-billing demo --seed 42 --output-dir output

Connection settings come from the environment (see ``CondoBillingConfig``).
Exit codes: 0 success, 1 batch run with failed records, failed Kafka
deliveries, database or other billing error, 2 configuration error.
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from typing import Any

import psycopg

from condo_billing.billing import (
    BatchResult,
    BillingCycleGenerator,
    BillingReports,
    OverdueSweeper,
    PaymentStatusClassifier,
)
from condo_billing.billing.events import events_from_batch
from condo_billing.config import CondoBillingConfig
from condo_billing.exceptions import CondoBillingError, ConfigurationError, SinkError
from condo_billing.logging import setup_logging
from condo_billing.scenarios import BuildingScenario
from condo_billing.sinks import ConsoleSink, JsonFileSink, KafkaSink
from condo_billing.store.postgres import PostgresBillingStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG = 2


def _open_store(config: CondoBillingConfig) -> PostgresBillingStore:
    """Connect to the PostgreSQL billing store."""
    default = config.billing.to_configuration() if config.billing.allow_default else None
    return PostgresBillingStore(config.postgres, default_configuration=default)


def _parse_instant(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid ISO datetime: {value!r}") from exc


def _check_delivery(sink: KafkaSink) -> None:
    """Raise if any message was not acknowledged by the brokers."""
    if sink.stats.failed:
        raise SinkError(
            f"{sink.stats.failed} of {sink.stats.sent} Kafka deliveries failed"
        )


def _publish(config: CondoBillingConfig, result: BatchResult) -> None:
    """Publish a batch run's records and events to Kafka."""
    if not result.records:
        logger.info("Nothing to publish for %s", result.operation)
        return
    sink = KafkaSink(config.kafka)
    try:
        sink.write_batch("payment_records", result.records)
        sink.write_batch("payment_events", events_from_batch(result, source=config.source))
    finally:
        sink.close()
    _check_delivery(sink)


def _report_batch(config: CondoBillingConfig, args: argparse.Namespace, result: BatchResult) -> int:
    ConsoleSink().write_record("batch_result", result.summary())
    if args.publish:
        _publish(config, result)
    return EXIT_OK if result.ok else EXIT_FAILURES


def cmd_init_db(config: CondoBillingConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    try:
        store.create_schema()
    finally:
        store.close()
    return EXIT_OK


def cmd_generate(config: CondoBillingConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    try:
        result = BillingCycleGenerator(store, store, store).generate(
            args.building, month=args.month, year=args.year
        )
    finally:
        store.close()
    return _report_batch(config, args, result)


def cmd_sweep(config: CondoBillingConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    try:
        result = OverdueSweeper(store, store).sweep(args.building, at=args.at)
    finally:
        store.close()
    return _report_batch(config, args, result)


def cmd_status(config: CondoBillingConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    try:
        classifier = PaymentStatusClassifier(store, store, store)
        if args.resident:
            ConsoleSink().write_record(
                "resident_status", classifier.standing_for(args.resident, at=args.at)
            )
        else:
            ConsoleSink().write_batch(
                "resident_statuses", classifier.list_standings(args.building, at=args.at)
            )
    finally:
        store.close()
    return EXIT_OK


def cmd_report(config: CondoBillingConfig, args: argparse.Namespace) -> int:
    store = _open_store(config)
    try:
        reports = BillingReports(store, PaymentStatusClassifier(store, store, store))
        sink = ConsoleSink()
        sink.write_record("building_statistics", reports.statistics(args.building).to_dict())
        if args.year is not None:
            sink.write_record(
                "monthly_summary", reports.monthly_summary(args.building, args.year).to_dict()
            )
    finally:
        store.close()
    return EXIT_OK


def cmd_demo(config: CondoBillingConfig, args: argparse.Namespace) -> int:
    scenario = BuildingScenario(
        building_id=args.building,
        floors=args.floors,
        units_per_floor=args.units_per_floor,
        history_months=args.months,
        default_amount=args.amount,
        due_day=args.due_day,
        at=args.at,
        seed=args.seed,
        source=config.source,
    )
    scenario.generate()

    sinks: list[Any] = [JsonFileSink(args.output_dir or config.output.json_output_dir, pretty=True)]
    kafka = KafkaSink(config.kafka) if args.publish else None
    if kafka is not None:
        sinks.append(kafka)
    try:
        scenario.export(sinks)
    finally:
        for sink in sinks:
            sink.close()

    ConsoleSink().write_record("building_summary", scenario.get_summary())
    if kafka is not None:
        _check_delivery(kafka)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="condo-billing",
        description="Monthly condominium billing jobs",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["standard", "json"],
        default=None,
        help="Log format (default: LOG_FORMAT or standard)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create the billing tables")
    init_db.set_defaults(func=cmd_init_db)

    generate = subparsers.add_parser("generate", help="Create the month's pending charges")
    generate.add_argument("--building", required=True, help="Building id")
    generate.add_argument("--month", type=int, default=None, help="Billing month (1-12)")
    generate.add_argument("--year", type=int, default=None, help="Billing year")
    generate.add_argument("--publish", action="store_true", help="Publish created charges to Kafka")
    generate.set_defaults(func=cmd_generate)

    sweep = subparsers.add_parser("sweep", help="Mark past-due pending charges overdue")
    sweep.add_argument("--building", required=True, help="Building id")
    sweep.add_argument("--at", type=_parse_instant, default=None, help="Evaluation instant (ISO 8601)")
    sweep.add_argument("--publish", action="store_true", help="Publish overdue charges to Kafka")
    sweep.set_defaults(func=cmd_sweep)

    status = subparsers.add_parser("status", help="Show resident payment standings")
    status.add_argument("--building", required=True, help="Building id")
    status.add_argument("--resident", default=None, help="Single resident id")
    status.add_argument("--at", type=_parse_instant, default=None, help="Evaluation instant (ISO 8601)")
    status.set_defaults(func=cmd_status)

    report = subparsers.add_parser("report", help="Show building statistics")
    report.add_argument("--building", required=True, help="Building id")
    report.add_argument("--year", type=int, default=None, help="Add a month-by-month summary")
    report.set_defaults(func=cmd_report)

    demo = subparsers.add_parser("demo", help="Generate and bill a synthetic building")
    demo.add_argument("--building", default="building-demo", help="Building id")
    demo.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    demo.add_argument("--floors", type=int, default=4, help="Number of floors (default: 4)")
    demo.add_argument("--units-per-floor", type=int, default=4, help="Units per floor (default: 4)")
    demo.add_argument("--months", type=int, default=6, help="Months of history (default: 6)")
    demo.add_argument("--amount", default="450.00", help="Monthly fee (default: 450.00)")
    demo.add_argument("--due-day", type=int, default=10, help="Due day (default: 10)")
    demo.add_argument("--at", type=_parse_instant, default=None, help="Run instant (ISO 8601)")
    demo.add_argument("--output-dir", default=None, help="JSON output directory")
    demo.add_argument("--publish", action="store_true", help="Also publish to Kafka")
    demo.set_defaults(func=cmd_demo)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = CondoBillingConfig.from_env()
    setup_logging(
        level=args.log_level or config.log_level,
        format_type=args.log_format or config.log_format,
    )

    try:
        return args.func(config, args)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIG
    except CondoBillingError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return EXIT_FAILURES
    except psycopg.Error as exc:
        logger.error("%s failed: database error: %s", args.command, exc)
        return EXIT_FAILURES


if __name__ == "__main__":
    raise SystemExit(main())
