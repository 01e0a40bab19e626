"""Billing engine: charge generation, standing classification and overdue detection."""

from condo_billing.billing.cycle import BillingCycleGenerator
from condo_billing.billing.payments import PaymentService
from condo_billing.billing.reports import BillingReports, BuildingStatistics, MonthlySummary
from condo_billing.billing.results import BatchResult
from condo_billing.billing.status import PaymentStatusClassifier, classify_standing
from condo_billing.billing.sweeper import OverdueSweeper

__all__ = [
    "BatchResult",
    "BillingCycleGenerator",
    "BillingReports",
    "BuildingStatistics",
    "MonthlySummary",
    "OverdueSweeper",
    "PaymentService",
    "PaymentStatusClassifier",
    "classify_standing",
]
