import pytest

from yardcli.core.vehicle_classifier import VehicleClassifier, item_tons
from yardcli.domain.models.common import UnitOfMeasure, VehicleType
from yardcli.domain.models.pricing import LineItem, Material

MULCH = Material(name="Cedar Mulch", unit=UnitOfMeasure.YARD, category="Mulch")
TOPSOIL = Material(name="Screened Topsoil", unit=UnitOfMeasure.YARD, category="Soil")
COMPOST = Material(name="Leaf Compost", unit=UnitOfMeasure.YARD)
ROCK = Material(name="River Rock", unit=UnitOfMeasure.TON, category="Rock")
PAVERS = Material(name="Pavers", unit=UnitOfMeasure.EACH)


@pytest.fixture
def classifier():
    return VehicleClassifier()


@pytest.mark.parametrize("items, expected", [
    ([LineItem(MULCH, 13)], VehicleType.HEAVY),
    ([LineItem(MULCH, 11)], VehicleType.STANDARD),
    ([LineItem(MULCH, 12)], VehicleType.STANDARD),
    ([LineItem(TOPSOIL, 10.5)], VehicleType.HEAVY),
    ([LineItem(TOPSOIL, 10)], VehicleType.STANDARD),
    ([LineItem(COMPOST, 11)], VehicleType.HEAVY),
    ([LineItem(ROCK, 7)], VehicleType.STANDARD),
    ([LineItem(ROCK, 7.5)], VehicleType.HEAVY),
    ([LineItem(PAVERS, 500)], VehicleType.STANDARD),
    ([], VehicleType.STANDARD),
])
def test_classify_thresholds(classifier, items, expected):
    assert classifier.classify(items) is expected


def test_mulch_in_soil_category_uses_mulch_limit(classifier):
    mixed = Material(name="Cedar Mulch", unit=UnitOfMeasure.YARD, category="Soil & Mulch")
    assert classifier.classify([LineItem(mixed, 11)]) is VehicleType.STANDARD
    assert classifier.classify([LineItem(mixed, 12)]) is VehicleType.STANDARD
    assert classifier.classify([LineItem(mixed, 13)]) is VehicleType.HEAVY


def test_net_weight_takes_precedence_over_quantity(classifier):
    """A scale ticket of 16,000 lb is 8 tons even if 5 were ordered."""
    assert classifier.classify([LineItem(ROCK, 5, net_weight_lbs=16000)]) is VehicleType.HEAVY
    assert classifier.classify([LineItem(ROCK, 9, net_weight_lbs=10000)]) is VehicleType.STANDARD


def test_weight_units_are_converted_to_tons():
    assert item_tons(LineItem(Material("Sand", UnitOfMeasure.POUND), 16000)) == pytest.approx(8.0)
    assert item_tons(LineItem(Material("Sand", UnitOfMeasure.KILOGRAM), 907.18474)) == pytest.approx(1.0)
    assert item_tons(LineItem(MULCH, 20)) is None


def test_items_without_material_are_skipped(classifier):
    items = [LineItem(None, 100), LineItem(MULCH, 2)]
    assert classifier.classify(items) is VehicleType.STANDARD


def test_first_heavy_item_short_circuits(classifier):
    class Exploding:
        @property
        def material(self):
            raise AssertionError("scanned past the first heavy item")

    items = [LineItem(MULCH, 20), Exploding()]
    assert classifier.classify(items) is VehicleType.HEAVY
