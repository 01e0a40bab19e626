"""Resident generator for demo buildings."""

from __future__ import annotations

from typing import Iterator

from condo_billing.generators.base import BaseGenerator
from condo_billing.models.billing import Resident


class ResidentGenerator(BaseGenerator):
    """Generate synthetic residents laid out floor by floor."""

    def generate(self, building_id: str, unit: str) -> Resident:
        """Generate a single resident for a unit.

        Parameters
        ----------
        building_id : str
            Building the resident belongs to.
        unit : str
            Unit label, e.g. ``"101"``.

        Returns
        -------
        Resident
            Generated resident.
        """
        return Resident(
            resident_id=self.fake.uuid4(),
            building_id=building_id,
            unit=unit,
            name=self.fake.name(),
            email=self.fake.email(),
            phone=self.fake.cellphone_number(),
        )

    def generate_building(
        self,
        building_id: str,
        floors: int = 4,
        units_per_floor: int = 4,
    ) -> Iterator[Resident]:
        """Generate one resident per unit.

        Units are numbered ``<floor><nn>``: floor 1 holds 101, 102, ...

        Yields
        ------
        Resident
            Generated residents, lowest floor first.
        """
        if floors < 1 or units_per_floor < 1:
            raise ValueError("A building needs at least one floor and one unit per floor")
        for floor in range(1, floors + 1):
            for number in range(1, units_per_floor + 1):
                yield self.generate(building_id, f"{floor}{number:02d}")
