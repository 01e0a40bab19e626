"""Output sinks for exporting billing data."""

from condo_billing.sinks.console import ConsoleSink
from condo_billing.sinks.json_file import JsonFileSink
from condo_billing.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "JsonFileSink", "KafkaSink"]
