"""Demo data generators."""

from condo_billing.generators.base import BaseGenerator
from condo_billing.generators.payments import PaymentHistoryGenerator, previous_periods
from condo_billing.generators.residents import ResidentGenerator

__all__ = [
    "BaseGenerator",
    "PaymentHistoryGenerator",
    "ResidentGenerator",
    "previous_periods",
]
