"""Batch operation reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from condo_billing.exceptions import RecordWriteFailedError
from condo_billing.models.billing import PaymentRecord


@dataclass
class BatchResult:
    """Outcome of a billing-cycle or sweep run.

    Keys are resident ids for billing cycles and record ids for sweeps.
    ``records`` holds the records the run created or transitioned, in
    their post-write state.
    """

    operation: str
    building_id: str
    succeeded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: list[RecordWriteFailedError] = field(default_factory=list)
    records: list[PaymentRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_keys(self) -> list[str]:
        """Keys to retry."""
        return [failure.key for failure in self.failures]

    def summary(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "building_id": self.building_id,
            "succeeded": len(self.succeeded),
            "skipped": len(self.skipped),
            "failed": len(self.failures),
            "failed_keys": self.failed_keys,
        }
