"""Billing domain models."""

from condo_billing.models.billing.configuration import BillingConfiguration
from condo_billing.models.billing.enums import (
    PaymentMethod,
    PaymentStatus,
    PixKeyType,
    ResidentStanding,
)
from condo_billing.models.billing.payment import PaymentRecord, to_amount
from condo_billing.models.billing.resident import Resident, ResidentStatus

__all__ = [
    "BillingConfiguration",
    "PaymentMethod",
    "PaymentRecord",
    "PaymentStatus",
    "PixKeyType",
    "Resident",
    "ResidentStanding",
    "ResidentStatus",
    "to_amount",
]
