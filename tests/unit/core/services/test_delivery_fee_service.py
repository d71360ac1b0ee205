import pytest
from unittest.mock import MagicMock

from yardcli.core.services.delivery_fee_service import DeliveryFeeService
from yardcli.domain.interfaces.pricing_api import (
    DeliveryService, DistanceAnswer, QuoteAnswer, QuoteService, ZoneAnswer
)
from yardcli.domain.models.common import VehicleType
from yardcli.domain.models.pricing import Address
from yardcli.infrastructure.clients.pricing_clients import PricingApiError
from yardcli.domain.models.api import ApiError, ApiErrorKind

STORE = Address(street="123 Main St", city="Springfield", state="IL", postal_code="62701")
SERVER_DOWN = PricingApiError(ApiError(ApiErrorKind.SERVER_ERROR, "unavailable", status=503))


@pytest.fixture
def quote_service():
    service = MagicMock(spec=QuoteService)
    service.calculate_quote.return_value = QuoteAnswer(price=135.0, zone=4, distance_miles=24.0)
    return service


@pytest.fixture
def delivery_service():
    service = MagicMock(spec=DeliveryService)
    service.lookup_zone.return_value = ZoneAnswer(zone=7, distance_miles=40.0, standard_fee=185, heavy_fee=211.1)
    service.calculate_distance.return_value = DistanceAnswer(distance_miles=45.0, duration_minutes=55)
    return service


@pytest.fixture
def make_service(quote_service, delivery_service):
    def _make(**overrides):
        kwargs = dict(store_address=STORE, quote_service=quote_service, delivery_service=delivery_service)
        kwargs.update(overrides)
        return DeliveryFeeService(**kwargs)
    return _make


@pytest.mark.asyncio
async def test_quote_tier_wins(make_service, quote_service, delivery_service, address):
    result = await make_service().calculate_delivery_fee(address)

    assert result.source == "quote-calculation"
    assert result.fee == 135.0
    assert result.zone == 4
    assert result.breakdown.base_fee == 10
    assert result.breakdown.distance_fee == 125.0
    assert result.breakdown.total == 135.0
    assert result.vehicle_type is None
    quote_service.calculate_quote.assert_awaited_once_with(STORE, address, weight=0)
    delivery_service.lookup_zone.assert_not_called()


@pytest.mark.asyncio
async def test_zone_lookup_when_quote_fails(make_service, quote_service, address):
    quote_service.calculate_quote.side_effect = SERVER_DOWN

    result = await make_service().calculate_delivery_fee(address)

    assert result.source == "zone-lookup"
    assert result.fee == 185
    assert result.zone == 7
    assert result.vehicle_type is VehicleType.STANDARD
    assert result.breakdown.base_fee == 185


@pytest.mark.asyncio
async def test_zone_lookup_uses_heavy_fee_for_heavy_orders(make_service, quote_service, address, mulch_items):
    quote_service.calculate_quote.side_effect = SERVER_DOWN

    result = await make_service().calculate_delivery_fee(address, mulch_items)

    assert result.vehicle_type is VehicleType.HEAVY
    assert result.fee == 211.1


@pytest.mark.asyncio
async def test_local_zones_when_lookup_has_no_fees(make_service, quote_service, delivery_service, address):
    quote_service.calculate_quote.side_effect = SERVER_DOWN
    delivery_service.lookup_zone.return_value = None

    result = await make_service().calculate_delivery_fee(address, vehicle_type=VehicleType.HEAVY)

    assert result.source == "local-zones"
    assert result.zone == 8
    assert result.fee == pytest.approx(242.5)
    assert result.distance_miles == 45.0
    assert result.duration_minutes == 55
    delivery_service.calculate_distance.assert_awaited_once_with(STORE, address)


@pytest.mark.asyncio
async def test_base_fee_when_everything_fails(make_service, quote_service, delivery_service, address):
    quote_service.calculate_quote.side_effect = SERVER_DOWN
    delivery_service.lookup_zone.side_effect = SERVER_DOWN
    delivery_service.calculate_distance.return_value = None

    result = await make_service().calculate_delivery_fee(address)

    assert result.source == "default"
    assert result.fee == 10
    assert result.breakdown.total == 10
    assert result.zone is None


@pytest.mark.asyncio
async def test_no_remote_services_configured(address):
    service = DeliveryFeeService(store_address=STORE, base_fee=12.5)

    result = await service.calculate_delivery_fee(address)

    assert result.fee == 12.5
    assert result.source == "default"
