"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like distances, money
amounts and tax rates, ensuring consistency and type safety.
"""

from enum import Enum
from typing import NewType

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are floats/strings at runtime.
Miles = NewType("Miles", float)               # Travel distance from the yard
Minutes = NewType("Minutes", float)           # Travel duration
Dollars = NewType("Dollars", float)           # Money amount in USD
TaxRateFraction = NewType("TaxRateFraction", float) # 0.08 == 8%


class VehicleType(str, Enum):
    """Delivery vehicle selected for an order.

    STANDARD is the trailer, HEAVY is the tandem truck.
    """
    STANDARD = "standard"
    HEAVY = "heavy"

    @property
    def wire_name(self) -> str:
        """Name used by the remote zone-lookup fee map."""
        return "trailer" if self is VehicleType.STANDARD else "tandem"


class UnitOfMeasure(str, Enum):
    """How a material is sold."""
    TON = "ton"
    POUND = "lb"
    KILOGRAM = "kg"
    YARD = "yard"   # cubic yard
    BAG = "bag"
    EACH = "each"

    @property
    def is_weight(self) -> bool:
        return self in (UnitOfMeasure.TON, UnitOfMeasure.POUND, UnitOfMeasure.KILOGRAM)
