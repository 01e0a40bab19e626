"""Resident models."""

from __future__ import annotations

from dataclasses import dataclass

from condo_billing.models.billing.enums import ResidentStanding
from condo_billing.models.billing.payment import PaymentRecord


@dataclass
class Resident:
    """Unit occupant, owned by building administration."""

    resident_id: str
    building_id: str
    unit: str  # e.g. "101", "Bloco B 12"
    name: str
    email: str = ""
    phone: str = ""


@dataclass
class ResidentStatus:
    """Resident with derived payment standing and latest payment record."""

    resident: Resident
    standing: ResidentStanding
    latest_payment: PaymentRecord | None = None

    @property
    def is_current(self) -> bool:
        return self.standing == ResidentStanding.CURRENT
