import math

import pytest

from yardcli.core.zone_rating import ZONE_TABLE, ZoneRatingEngine
from yardcli.domain.models.common import VehicleType


@pytest.fixture
def engine():
    return ZoneRatingEngine()


@pytest.mark.parametrize("distance, zone, fee", [
    (0.0, 1, 95),
    (10.0, 1, 95),
    (12.0, 1, 95),
    (12.005, 2, 110),  # seam between brackets belongs to the next zone
    (40.0, 7, 185),
    (45.0, 8, 200),
    (67.0, 12, 260),
    (67.01, 13, 275),
    (70.0, 13, 275),
    (72.0, 13, 275),
    (72.01, 14, 290),
    (100.0, 19, 365),
])
def test_standard_fee_by_distance(engine, distance, zone, fee):
    rating = engine.rate(distance)
    assert rating.zone == zone
    assert rating.standard_fee == fee


def test_extrapolation_formula(engine):
    for distance in [67.5, 80.0, 93.3, 150.0]:
        beyond = math.ceil((distance - 67.0) / 5)
        rating = engine.rate(distance)
        assert rating.zone == 12 + beyond
        assert rating.standard_fee == 260 + beyond * 15


def test_heavy_fee(engine):
    assert engine.heavy_fee(45.0) == pytest.approx(242.5)
    assert engine.rate(45.0).heavy_fee == pytest.approx(242.5)


def test_heavy_fee_has_floor(engine):
    """Short trips still cost the heavy minimum."""
    assert engine.heavy_fee(0) == 115
    assert engine.heavy_fee(5) == 115
    assert engine.heavy_fee(20) > 115


def test_standard_fee_never_decreases(engine):
    fees = [engine.standard_fee(d / 10) for d in range(0, 1200)]
    assert fees == sorted(fees)


def test_heavy_fee_never_decreases_or_jumps(engine):
    distances = [d / 10 for d in range(0, 1200)]
    fees = [engine.heavy_fee(d) for d in distances]
    assert fees == sorted(fees)
    # slope is at most 2 * 85 / 45 dollars per mile, so 0.1 mi steps stay small
    assert max(b - a for a, b in zip(fees, fees[1:])) <= 0.1 * 2 * 85 / 45 + 1e-9


def test_table_invariants():
    assert len(ZONE_TABLE) == 12
    for previous, current in zip(ZONE_TABLE, ZONE_TABLE[1:]):
        assert current.min_miles == pytest.approx(previous.max_miles + 0.01)
        assert current.standard_fee > previous.standard_fee


@pytest.mark.parametrize("zone_number, bounds", [
    (1, (0.0, 12.0)),
    (7, (37.01, 42.0)),
    (13, (67.01, 72.0)),
    (15, (77.01, 82.0)),
])
def test_zone_bounds(engine, zone_number, bounds):
    assert engine.zone_bounds(zone_number) == pytest.approx(bounds)


def test_format_zone_info(engine):
    assert engine.format_zone_info(40.0) == "Zone 7 (37.01-42.00 miles)"
    assert engine.format_zone_info(70.0) == "Zone 13 (67.01-72.00 miles)"


def test_delivery_cost_selects_vehicle_fee(engine):
    assert engine.delivery_cost(10.0) == 95
    assert engine.delivery_cost(45.0, VehicleType.HEAVY) == pytest.approx(242.5)


def test_all_zones_returns_copy(engine):
    zones = engine.all_zones()
    zones.clear()
    assert len(engine.all_zones()) == 12


@pytest.mark.parametrize("bad", [-0.01, -10, float("nan"), float("inf")])
def test_invalid_distance_raises(engine, bad):
    with pytest.raises(ValueError):
        engine.rate(bad)
