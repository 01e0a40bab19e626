"""Console sink for job output and debugging."""

import json
import sys
from typing import Any, TextIO

from condo_billing.sinks.serialization import to_dict


class ConsoleSink:
    """Output records as JSON to a text stream (stdout by default)."""

    def __init__(
        self,
        pretty: bool = True,
        max_records: int | None = None,
        stream: TextIO | None = None,
    ) -> None:
        """Initialize console sink.

        Parameters
        ----------
        pretty : bool
            Pretty-print JSON output.
        max_records : int | None
            Maximum records to print per batch (None for all).
        stream : TextIO | None
            Destination; defaults to ``sys.stdout`` at write time.
        """
        self.pretty = pretty
        self.max_records = max_records
        self.stream = stream
        self._counts: dict[str, int] = {}

    def _print(self, text: str) -> None:
        print(text, file=self.stream or sys.stdout)

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records as one JSON document."""
        display_records = records[: self.max_records] if self.max_records else records
        payload = {
            "entity": entity_type,
            "count": len(records),
            "records": [to_dict(record) for record in display_records],
        }
        self._print(json.dumps(payload, indent=2 if self.pretty else None, ensure_ascii=False))
        self._counts[entity_type] = self._counts.get(entity_type, 0) + len(records)

    def write_record(self, entity_type: str, record: Any) -> None:
        """Write a single object (a summary, a statistics block)."""
        payload = {"entity": entity_type, "record": to_dict(record)}
        self._print(json.dumps(payload, indent=2 if self.pretty else None, ensure_ascii=False))
        self._counts[entity_type] = self._counts.get(entity_type, 0) + 1

    def close(self) -> None:
        """Nothing to release; counts stay available for inspection."""
