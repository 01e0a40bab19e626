"""Kafka sink for publishing payment records and billing events."""

import json
import logging
from dataclasses import dataclass, is_dataclass
from typing import Any

from confluent_kafka import KafkaException, Producer

from condo_billing.config import KafkaConfig
from condo_billing.exceptions import SinkError
from condo_billing.sinks.serialization import to_dict

logger = logging.getLogger(__name__)


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0


class KafkaSink:
    """Output billing data to Kafka topics.

    Entity types map to ``<topic_prefix>.<entity-type>`` topics, so
    ``write_batch("payment_events", events)`` publishes to
    ``condo.billing.payment-events`` with the default prefix.
    """

    # Entity type to key field mapping; keys keep one resident's or one
    # record's messages on the same partition
    KEY_FIELDS = {
        "payment_records": "resident_id",
        "payment_events": "subject",
        "resident_statuses": "resident",
    }

    def __init__(self, config: KafkaConfig | str) -> None:
        """Initialize Kafka sink.

        Parameters
        ----------
        config : KafkaConfig | str
            Producer configuration or bootstrap servers string.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.producer = Producer(config.to_dict())
        self.stats = ProducerStats()

    def topic_for(self, entity_type: str) -> str:
        """Topic name for an entity type."""
        return f"{self.config.topic_prefix}.{entity_type.replace('_', '-')}"

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err:
            self.stats.failed += 1
            logger.error("Delivery failed: %s", err)
        else:
            self.stats.delivered += 1
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def _get_key(self, entity_type: str, record: Any) -> str | None:
        """Extract message key from record based on entity type."""
        key_field = self.KEY_FIELDS.get(entity_type)
        if not key_field:
            return None

        if is_dataclass(record):
            value = getattr(record, key_field, None)
        elif isinstance(record, dict):
            value = record.get(key_field)
        else:
            return None
        # ResidentStatus is keyed by its nested resident
        if is_dataclass(value):
            value = getattr(value, "resident_id", None)
        return str(value) if value else None

    def send(self, entity_type: str, record: Any, key: str | None = None) -> None:
        """Send a single record."""
        value = json.dumps(to_dict(record), ensure_ascii=False).encode("utf-8")
        if key is None:
            key = self._get_key(entity_type, record)

        try:
            self.producer.produce(
                topic=self.topic_for(entity_type),
                key=key.encode("utf-8") if key else None,
                value=value,
                callback=self._delivery_callback,
            )
        except (BufferError, KafkaException) as exc:
            raise SinkError(f"Cannot publish to {self.topic_for(entity_type)}: {exc}") from exc
        self.stats.sent += 1
        self.producer.poll(0)

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Publish a batch of records and wait for delivery."""
        logger.info("Writing batch to %s: %d records", self.topic_for(entity_type), len(records))

        for record in records:
            self.send(entity_type, record)

        self.flush()
        logger.info(
            "Batch complete: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )

    def write_record(self, entity_type: str, record: Any) -> None:
        """Publish a single object and wait for delivery."""
        self.send(entity_type, record)
        self.flush()

    def flush(self, timeout: float = 30.0) -> None:
        """Flush pending messages."""
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning("%d messages still queued after %.1fs flush", remaining, timeout)

    def close(self) -> None:
        """Flush and close the producer."""
        self.flush()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
