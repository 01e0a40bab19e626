"""Billing stores and the repository interfaces they implement."""

from condo_billing.store.base import BillingConfigStore, PaymentStore, ResidentDirectory
from condo_billing.store.memory import InMemoryBillingStore

__all__ = ["BillingConfigStore", "InMemoryBillingStore", "PaymentStore", "ResidentDirectory"]
