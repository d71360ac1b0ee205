import io

import pytest
from rich.console import Console

from yardcli.core.zone_rating import ZoneRatingEngine
from yardcli.domain.models.common import VehicleType
from yardcli.domain.models.pricing import (
    DeliveryFeeResult, FeeBreakdown, OrderQuote, TaxBreakdown, TaxResult
)
from yardcli.infrastructure.cli.display import ConsoleDisplay


@pytest.fixture
def console():
    """A recording console that never touches the terminal."""
    return Console(record=True, width=100, file=io.StringIO())


@pytest.fixture
def console_display(console):
    return ConsoleDisplay(console=console)


def rendered(console: Console) -> str:
    return console.export_text()


DELIVERY = DeliveryFeeResult(
    fee=185.0,
    breakdown=FeeBreakdown(185.0, 0, 0, 185.0),
    zone=7,
    distance_miles=40.0,
    vehicle_type=VehicleType.STANDARD,
    source="zone-lookup",
)
TAX = TaxResult(
    subtotal=100.0, tax_amount=2.9, tax_rate=0.029, total=102.9,
    breakdown=TaxBreakdown(state=0.029), jurisdiction="Colorado", source="zone-lookup",
)


def test_display_delivery_fee(console_display, console):
    console_display.display_delivery_fee(DELIVERY)
    text = rendered(console)
    assert "$185.00" in text
    assert "40.00 mi" in text
    assert "zone-lookup" in text


def test_display_tax(console_display, console):
    console_display.display_tax(TAX)
    text = rendered(console)
    assert "2.9%" in text
    assert "$2.90" in text
    assert "Colorado" in text


def test_display_exempt_tax(console_display, console):
    exempt = TaxResult(50.0, 0.0, 0.0, 50.0, TaxBreakdown(0.0), is_exempt=True,
                       exempt_reason="Tax Exempt (Certificate: EX-1)", source="exemption")
    console_display.display_tax(exempt)
    assert "Tax Exempt (Certificate: EX-1)" in rendered(console)


def test_display_order_quote(console_display, console):
    console_display.display_order_quote(OrderQuote(100.0, DELIVERY, TAX, 287.9))
    assert "Grand total: $287.90" in rendered(console)


def test_display_zones(console_display, console):
    console_display.display_zones(ZoneRatingEngine().all_zones())
    text = rendered(console)
    assert "62.01" in text
    assert "$260.00" in text


def test_display_zone_rating(console_display, console):
    console_display.display_zone_rating(45.0, ZoneRatingEngine().rate(45.0))
    text = rendered(console)
    assert "42.01-47.00" in text
    assert "$242.50" in text


def test_display_health(console_display, console):
    console_display.display_health({"pricing": True, "tax": False})
    text = rendered(console)
    assert "pricing" in text and "up" in text
    assert "down" in text


def test_display_error(console_display, console):
    console_display.display_error("Something went wrong")
    text = rendered(console)
    assert "Error" in text
    assert "Something went wrong" in text


def test_display_output_plain(console_display, console):
    console_display.display_output("hello")
    assert rendered(console).strip() == "hello"
