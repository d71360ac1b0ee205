"""Selects the delivery vehicle (and so the pricing tier) from order contents."""

import logging
from typing import Iterable, Optional

from yardcli.domain.models.common import UnitOfMeasure, VehicleType
from yardcli.domain.models.pricing import LineItem, Material

logger = logging.getLogger(__name__)

POUNDS_PER_TON = 2000.0
KILOGRAMS_PER_TON = 907.18474 # short ton

MAX_STANDARD_TONS = 7.0
MAX_STANDARD_MULCH_YARDS = 12.0
MAX_STANDARD_SOIL_YARDS = 10.0

SOIL_KEYWORDS = ("soil", "compost")
MULCH_KEYWORDS = ("mulch",)


def _mentions(material: Material, keywords: Iterable[str]) -> bool:
    text = f"{material.category or ''} {material.name}".lower()
    return any(keyword in text for keyword in keywords)


def item_tons(item: LineItem) -> Optional[float]:
    """Weight of a weight-denominated line item in tons, None for other units.

    A recorded scale weight (pounds) takes precedence over the ordered quantity.
    """
    material = item.material
    if material is None or not material.unit.is_weight:
        return None
    if item.net_weight_lbs:
        return item.net_weight_lbs / POUNDS_PER_TON
    if material.unit is UnitOfMeasure.POUND:
        return item.quantity / POUNDS_PER_TON
    if material.unit is UnitOfMeasure.KILOGRAM:
        return item.quantity / KILOGRAMS_PER_TON
    return item.quantity


class VehicleClassifier:
    """Decides between the standard trailer and the heavy tandem truck."""

    def classify(self, line_items: Iterable[LineItem]) -> VehicleType:
        """Returns HEAVY as soon as one line item crosses a threshold, else STANDARD.

        Args:
            line_items: Order lines. Items without a material are ignored.
        """
        for item in line_items:
            reason = self._heavy_reason(item)
            if reason:
                logger.debug(f"Heavy vehicle required: {reason}")
                return VehicleType.HEAVY
        return VehicleType.STANDARD

    @staticmethod
    def _heavy_reason(item: LineItem) -> Optional[str]:
        material = item.material
        if material is None:
            return None

        tons = item_tons(item)
        if tons is not None:
            if tons > MAX_STANDARD_TONS:
                return f"{material.name}: {tons:.2f} tons > {MAX_STANDARD_TONS}"
            return None

        if material.unit is UnitOfMeasure.YARD:
            # mulch takes the mulch limit even when also labelled soil
            if _mentions(material, MULCH_KEYWORDS):
                if item.quantity > MAX_STANDARD_MULCH_YARDS:
                    return f"{material.name}: {item.quantity} yd of mulch > {MAX_STANDARD_MULCH_YARDS}"
            elif _mentions(material, SOIL_KEYWORDS) and item.quantity > MAX_STANDARD_SOIL_YARDS:
                return f"{material.name}: {item.quantity} yd of soil/compost > {MAX_STANDARD_SOIL_YARDS}"
        return None
