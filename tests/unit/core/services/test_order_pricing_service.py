import pytest
from unittest.mock import AsyncMock, MagicMock

from yardcli.core.services.delivery_fee_service import DeliveryFeeService
from yardcli.core.services.order_pricing_service import OrderPricingService
from yardcli.core.services.tax_service import TaxService
from yardcli.domain.models.pricing import Address, DeliveryFeeResult, FeeBreakdown, TaxBreakdown, TaxResult

STORE = Address(street="123 Main St", city="Springfield", state="IL", postal_code="62701")


def fee_result(fee: float) -> DeliveryFeeResult:
    return DeliveryFeeResult(fee=fee, breakdown=FeeBreakdown(fee, 0, 0, fee), source="zone-lookup")


def tax_result(subtotal: float, rate: float) -> TaxResult:
    tax = round(subtotal * rate, 2)
    return TaxResult(subtotal, tax, rate, subtotal + tax, TaxBreakdown(rate))


@pytest.fixture
def delivery_fee_service():
    service = MagicMock(spec=DeliveryFeeService)
    service.calculate_delivery_fee = AsyncMock(return_value=fee_result(110.0))
    return service


@pytest.fixture
def tax_service():
    service = MagicMock(spec=TaxService)
    service.calculate_tax = AsyncMock(side_effect=lambda address, amount, exemption: tax_result(amount, 0.029))
    return service


@pytest.mark.asyncio
async def test_price_order_sums_fee_and_tax(delivery_fee_service, tax_service, address, mulch_items):
    quote = await OrderPricingService(delivery_fee_service, tax_service).price_order(address, 500.0, mulch_items)

    assert quote.delivery.fee == 110.0
    assert quote.tax.tax_amount == 14.5
    assert quote.grand_total == 624.5
    assert quote.line_items == mulch_items
    tax_service.calculate_tax.assert_awaited_once_with(address, 500.0, None)


@pytest.mark.asyncio
async def test_tax_delivery_taxes_the_fee(delivery_fee_service, tax_service, address):
    quote = await OrderPricingService(delivery_fee_service, tax_service).price_order(
        address, 500.0, tax_delivery=True
    )

    tax_service.calculate_tax.assert_awaited_once_with(address, 610.0, None)
    assert quote.tax.tax_amount == 17.69
    assert quote.grand_total == 627.69


@pytest.mark.asyncio
async def test_price_order_fully_offline(address):
    """With no remote services the order still prices: base fee plus state tax."""
    service = OrderPricingService(DeliveryFeeService(STORE), TaxService())

    quote = await service.price_order(address, 100.0)

    assert quote.delivery.fee == 10
    assert quote.tax.source == "state-table"
    assert quote.grand_total == 112.9
