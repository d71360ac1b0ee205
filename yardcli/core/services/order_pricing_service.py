"""Prices a whole order: delivery fee, tax and grand total."""

import asyncio
import logging
from typing import List, Optional

from yardcli.core.services.delivery_fee_service import DeliveryFeeService
from yardcli.core.services.tax_service import TaxService
from yardcli.domain.models.common import Dollars, VehicleType
from yardcli.domain.models.pricing import Address, LineItem, OrderQuote, TaxExemption

logger = logging.getLogger(__name__)


class OrderPricingService:
    """Combines the delivery fee and tax services for one order."""

    def __init__(self, delivery_fee_service: DeliveryFeeService, tax_service: TaxService):
        self.delivery_fee_service = delivery_fee_service
        self.tax_service = tax_service

    async def price_order(
        self,
        address: Address,
        subtotal: float,
        line_items: Optional[List[LineItem]] = None,
        exemption: Optional[TaxExemption] = None,
        vehicle_type: Optional[VehicleType] = None,
        tax_delivery: bool = False,
    ) -> OrderQuote:
        """Computes fee and tax for an order.

        Args:
            address: Delivery address.
            subtotal: Merchandise subtotal.
            line_items: Order lines, used to pick the vehicle.
            exemption: Client tax exemption, if any.
            vehicle_type: Explicit vehicle, overrides classification.
            tax_delivery: When True the delivery fee is taxed too, which forces
                the fee to be computed before tax. Otherwise both run concurrently.
        """
        items = line_items or []
        if tax_delivery:
            delivery = await self.delivery_fee_service.calculate_delivery_fee(address, items, vehicle_type)
            tax = await self.tax_service.calculate_tax(address, subtotal + delivery.fee, exemption)
        else:
            delivery, tax = await asyncio.gather(
                self.delivery_fee_service.calculate_delivery_fee(address, items, vehicle_type),
                self.tax_service.calculate_tax(address, subtotal, exemption),
            )

        grand_total = Dollars(round(subtotal + delivery.fee + tax.tax_amount, 2))
        logger.info(
            f"Order priced: subtotal=${subtotal:.2f} delivery=${delivery.fee:.2f} "
            f"tax=${tax.tax_amount:.2f} total=${grand_total:.2f}"
        )
        return OrderQuote(
            subtotal=Dollars(subtotal),
            delivery=delivery,
            tax=tax,
            grand_total=grand_total,
            line_items=list(items),
        )
