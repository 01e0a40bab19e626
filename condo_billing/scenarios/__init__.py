"""Scenarios for generating demo condominium data sets."""

from condo_billing.scenarios.building import BuildingScenario

__all__ = ["BuildingScenario"]
