"""Configuration management for condo-billing."""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

from condo_billing.models.billing import BillingConfiguration
from condo_billing.periods import DEFAULT_TIMEZONE


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "condo.billing"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "condo"
    user: str = "postgres"
    password: str = "postgres"
    connect_timeout: int = 10  # seconds
    statement_timeout_ms: int = 5000

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class BillingDefaults:
    """Default billing policy for buildings that never saved a configuration."""

    default_amount: Decimal = Decimal("0.00")
    due_day: int = 10
    timezone: str = DEFAULT_TIMEZONE
    # When False, a missing configuration is an error instead of a default
    allow_default: bool = True

    def to_configuration(self) -> BillingConfiguration:
        """Build the configuration used for unconfigured buildings."""
        return BillingConfiguration(
            default_amount=self.default_amount,
            due_day=self.due_day,
            timezone=self.timezone,
        )


@dataclass
class CondoBillingConfig:
    """Main configuration for condo-billing."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    billing: BillingDefaults = field(default_factory=BillingDefaults)
    source: str = "condo-billing"
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls) -> "CondoBillingConfig":
        """Create config from environment variables."""
        import os

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("TOPIC_PREFIX", "condo.billing"),
        )

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "condo"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            connect_timeout=int(os.getenv("POSTGRES_CONNECT_TIMEOUT", "10")),
            statement_timeout_ms=int(os.getenv("POSTGRES_STATEMENT_TIMEOUT_MS", "5000")),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        billing = BillingDefaults(
            default_amount=Decimal(os.getenv("BILLING_DEFAULT_AMOUNT", "0.00")),
            due_day=int(os.getenv("BILLING_DUE_DAY", "10")),
            timezone=os.getenv("BILLING_TIMEZONE", DEFAULT_TIMEZONE),
            allow_default=os.getenv("BILLING_ALLOW_DEFAULT", "true").lower() == "true",
        )

        return cls(
            kafka=kafka,
            postgres=postgres,
            output=output,
            billing=billing,
            source=os.getenv("EVENT_SOURCE", "condo-billing"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
