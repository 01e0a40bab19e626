"""JSON file sink for exporting billing data to files."""

import json
import logging
from pathlib import Path
from typing import Any

from condo_billing.exceptions import SinkError
from condo_billing.sinks.serialization import to_dict

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Output data to JSON files, one file per entity type."""

    def __init__(self, output_dir: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON files.
        pretty : bool
            Pretty-print JSON output.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.pretty = pretty
        self._counts: dict[str, int] = {}

    def _write(self, entity_type: str, data: Any) -> Path:
        file_path = self.output_dir / f"{entity_type}.json"
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                else:
                    json.dump(data, f, ensure_ascii=False)
        except OSError as exc:
            raise SinkError(f"Cannot write {file_path}: {exc}") from exc
        return file_path

    def write_batch(self, entity_type: str, records: list[Any]) -> None:
        """Write a batch of records to ``<entity_type>.json``."""
        self._write(entity_type, [to_dict(record) for record in records])
        self._counts[entity_type] = len(records)

    def write_record(self, entity_type: str, record: Any) -> None:
        """Write a single object to ``<entity_type>.json``."""
        self._write(entity_type, to_dict(record))
        self._counts[entity_type] = 1

    def close(self) -> None:
        """Log a summary of the files written."""
        logger.info("JSON files written to: %s", self.output_dir)
        for entity_type, count in self._counts.items():
            logger.info("  %s: %d records", entity_type, count)
