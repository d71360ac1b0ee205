"""Deterministic distance-to-zone rating.

Last-resort local pricing used when no remote pricing service answers.
Distances map onto a fixed table of 12 zones in 5-mile brackets (zone 1
covers everything up to 12 miles); beyond the table, zones and fees keep
extrapolating in 5-mile steps.
"""

import logging
import math
from typing import List, Tuple

from yardcli.domain.models.common import Dollars, VehicleType
from yardcli.domain.models.pricing import Zone, ZoneRating

logger = logging.getLogger(__name__)

# (zone, min miles, max miles, standard fee)
ZONE_TABLE: Tuple[Zone, ...] = (
    Zone(1, 0.00, 12.00, Dollars(95)),
    Zone(2, 12.01, 17.00, Dollars(110)),
    Zone(3, 17.01, 22.00, Dollars(125)),
    Zone(4, 22.01, 27.00, Dollars(140)),
    Zone(5, 27.01, 32.00, Dollars(155)),
    Zone(6, 32.01, 37.00, Dollars(170)),
    Zone(7, 37.01, 42.00, Dollars(185)),
    Zone(8, 42.01, 47.00, Dollars(200)),
    Zone(9, 47.01, 52.00, Dollars(215)),
    Zone(10, 52.01, 57.00, Dollars(230)),
    Zone(11, 57.01, 62.00, Dollars(245)),
    Zone(12, 62.01, 67.00, Dollars(260)),
)

ZONE_WIDTH_MILES = 5.0
EXTRA_ZONE_FEE = 15.0

# Heavy (tandem) pricing: round-trip miles at 45 mph, plus half an hour, at $85/h, plus $30
HEAVY_AVERAGE_SPEED_MPH = 45.0
HEAVY_LOAD_HOURS = 0.5
HEAVY_HOURLY_RATE = 85.0
HEAVY_FLAT_FEE = 30.0
HEAVY_MINIMUM_FEE = 115.0


def _check_distance(distance_miles: float) -> float:
    if not math.isfinite(distance_miles) or distance_miles < 0:
        raise ValueError(f"Distance must be a finite, non-negative number of miles, got {distance_miles!r}")
    return float(distance_miles)


class ZoneRatingEngine:
    """Maps a driving distance to a zone and both vehicle fees."""

    def __init__(self, zones: Tuple[Zone, ...] = ZONE_TABLE):
        if not zones:
            raise ValueError("ZoneRatingEngine needs at least one zone")
        self.zones = zones
        self._last_zone = zones[-1]

    def zone_for(self, distance_miles: float) -> int:
        """Zone number for a distance (first zone whose max covers it)."""
        distance = _check_distance(distance_miles)
        for zone in self.zones:
            if distance <= zone.max_miles:
                return zone.zone_number
        return self._last_zone.zone_number + self._zones_beyond(distance)

    def standard_fee(self, distance_miles: float) -> Dollars:
        distance = _check_distance(distance_miles)
        for zone in self.zones:
            if distance <= zone.max_miles:
                return zone.standard_fee
        return Dollars(self._last_zone.standard_fee + self._zones_beyond(distance) * EXTRA_ZONE_FEE)

    @staticmethod
    def heavy_fee(distance_miles: float) -> Dollars:
        """Tandem fee for a distance, never below the heavy minimum. Not rounded."""
        distance = _check_distance(distance_miles)
        hours = (distance * 2) / HEAVY_AVERAGE_SPEED_MPH + HEAVY_LOAD_HOURS
        return Dollars(max(hours * HEAVY_HOURLY_RATE + HEAVY_FLAT_FEE, HEAVY_MINIMUM_FEE))

    def zone_bounds(self, zone_number: int) -> Tuple[float, float]:
        """(min, max) miles for a zone, including extrapolated ones past the table."""
        if zone_number < 1:
            raise ValueError(f"Zone numbers start at 1, got {zone_number}")
        for zone in self.zones:
            if zone.zone_number == zone_number:
                return zone.min_miles, zone.max_miles
        steps = zone_number - self._last_zone.zone_number
        upper = self._last_zone.max_miles + steps * ZONE_WIDTH_MILES
        lower = self._last_zone.max_miles + (steps - 1) * ZONE_WIDTH_MILES + 0.01
        return round(lower, 2), round(upper, 2)

    def rate(self, distance_miles: float) -> ZoneRating:
        """Full rating for a distance: zone, both fees and the zone's bounds."""
        zone_number = self.zone_for(distance_miles)
        min_miles, max_miles = self.zone_bounds(zone_number)
        rating = ZoneRating(
            zone=zone_number,
            standard_fee=self.standard_fee(distance_miles),
            heavy_fee=self.heavy_fee(distance_miles),
            min_miles=min_miles,
            max_miles=max_miles,
        )
        logger.debug(f"Rated {distance_miles} miles: {rating}")
        return rating

    def delivery_cost(self, distance_miles: float, vehicle_type: VehicleType = VehicleType.STANDARD) -> Dollars:
        return self.rate(distance_miles).fee_for(vehicle_type)

    def format_zone_info(self, distance_miles: float) -> str:
        """e.g. 'Zone 7 (37.01-42.00 miles)'."""
        rating = self.rate(distance_miles)
        return f"Zone {rating.zone} ({rating.min_miles:.2f}-{rating.max_miles:.2f} miles)"

    def all_zones(self) -> List[Zone]:
        return list(self.zones)

    def _zones_beyond(self, distance: float) -> int:
        return math.ceil((distance - self._last_zone.max_miles) / ZONE_WIDTH_MILES)
