"""Domain models for condominium billing."""

from condo_billing.models.base import Event

__all__ = ["Event"]
