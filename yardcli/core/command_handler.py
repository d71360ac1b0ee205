"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work
to the pricing services and local engines, and renders results through
the UserInterface. Failures are reported to the user, never raised to Typer.
"""

import logging
from typing import Dict, List, Mapping, Optional

from yardcli.core.services.delivery_fee_service import DeliveryFeeService
from yardcli.core.services.order_pricing_service import OrderPricingService
from yardcli.core.services.tax_service import TaxService
from yardcli.core.vehicle_classifier import VehicleClassifier
from yardcli.core.zone_rating import ZoneRatingEngine
from yardcli.domain.interfaces.pricing_api import HealthCheckable
from yardcli.domain.interfaces.user_interface import UserInterface
from yardcli.domain.models.common import UnitOfMeasure, VehicleType
from yardcli.domain.models.pricing import (
    Address, DeliveryFeeResult, LineItem, Material, OrderQuote, TaxExemption, TaxResult, ZoneRating
)
from yardcli.infrastructure.clients.pricing_clients import check_available_services

logger = logging.getLogger(__name__)


def parse_line_item(text: str) -> LineItem:
    """Parses 'name:unit:quantity[:category[:net_weight_lbs]]'.

    Example: 'Cedar Mulch:yard:13:mulch'.

    Raises:
        ValueError: If the text is malformed or the unit is unknown.
    """
    parts = [part.strip() for part in text.split(":")]
    if len(parts) < 3 or len(parts) > 5 or not parts[0]:
        raise ValueError(f"Expected 'name:unit:quantity[:category[:net_weight_lbs]]', got '{text}'")
    name, unit_text, quantity_text = parts[:3]
    try:
        unit = UnitOfMeasure(unit_text.lower())
    except ValueError:
        choices = ", ".join(u.value for u in UnitOfMeasure)
        raise ValueError(f"Unknown unit '{unit_text}' (expected one of: {choices})") from None
    category = parts[3] if len(parts) > 3 and parts[3] else None
    net_weight = float(parts[4]) if len(parts) > 4 and parts[4] else None
    return LineItem(material=Material(name=name, unit=unit, category=category),
                    quantity=float(quantity_text), net_weight_lbs=net_weight)


class CommandHandler:
    """Handles incoming commands and delegates to appropriate services."""

    def __init__(
        self,
        delivery_fee_service: DeliveryFeeService,
        tax_service: TaxService,
        order_pricing_service: OrderPricingService,
        zone_engine: ZoneRatingEngine,
        classifier: VehicleClassifier,
        ui: UserInterface,
        health_targets: Optional[Mapping[str, HealthCheckable]] = None,
    ):
        """Initializes the CommandHandler with required services."""
        self.delivery_fee_service = delivery_fee_service
        self.tax_service = tax_service
        self.order_pricing_service = order_pricing_service
        self.zone_engine = zone_engine
        self.classifier = classifier
        self.ui = ui
        self.health_targets = dict(health_targets or {})

    def _check_address(self, address: Address) -> Optional[Address]:
        validation = self.tax_service.validate_address(address)
        if not validation.valid:
            self.ui.display_error(validation.error or "Invalid address")
            return None
        return validation.normalized

    async def handle_quote(
        self,
        address: Address,
        line_items: Optional[List[LineItem]] = None,
        vehicle_type: Optional[VehicleType] = None,
    ) -> Optional[DeliveryFeeResult]:
        """Handles the 'quote' command (delivery fee only)."""
        logger.info(f"Handling 'quote' command for {address.one_line()}")
        normalized = self._check_address(address)
        if normalized is None:
            return None
        try:
            result = await self.delivery_fee_service.calculate_delivery_fee(normalized, line_items, vehicle_type)
        except Exception as e:
            logger.error(f"Quote command failed: {e}", exc_info=True)
            self.ui.display_error(f"Delivery quote failed: {e}")
            return None
        self.ui.display_delivery_fee(result)
        return result

    async def handle_tax(
        self,
        address: Address,
        subtotal: float,
        exemption: Optional[TaxExemption] = None,
    ) -> Optional[TaxResult]:
        """Handles the 'tax' command."""
        logger.info(f"Handling 'tax' command for {address.one_line()} on ${subtotal:.2f}")
        if subtotal < 0:
            self.ui.display_error("Subtotal must not be negative.")
            return None
        normalized = self._check_address(address)
        if normalized is None:
            return None
        try:
            result = await self.tax_service.calculate_tax(normalized, subtotal, exemption)
        except Exception as e:
            logger.error(f"Tax command failed: {e}", exc_info=True)
            self.ui.display_error(f"Tax calculation failed: {e}")
            return None
        self.ui.display_tax(result)
        return result

    async def handle_price_order(
        self,
        address: Address,
        subtotal: float,
        line_items: Optional[List[LineItem]] = None,
        exemption: Optional[TaxExemption] = None,
        vehicle_type: Optional[VehicleType] = None,
        tax_delivery: bool = False,
    ) -> Optional[OrderQuote]:
        """Handles the 'price-order' command (fee, tax and grand total)."""
        logger.info(f"Handling 'price-order' command for {address.one_line()}")
        if subtotal < 0:
            self.ui.display_error("Subtotal must not be negative.")
            return None
        normalized = self._check_address(address)
        if normalized is None:
            return None
        try:
            quote = await self.order_pricing_service.price_order(
                normalized, subtotal, line_items, exemption, vehicle_type, tax_delivery
            )
        except Exception as e:
            logger.error(f"Order pricing failed: {e}", exc_info=True)
            self.ui.display_error(f"Order pricing failed: {e}")
            return None
        self.ui.display_order_quote(quote)
        return quote

    def handle_rate(self, distance_miles: float) -> Optional[ZoneRating]:
        """Handles the 'rate' command: local zone rating for a distance."""
        try:
            rating = self.zone_engine.rate(distance_miles)
        except ValueError as e:
            self.ui.display_error(str(e))
            return None
        self.ui.display_zone_rating(distance_miles, rating)
        return rating

    def handle_zones(self) -> None:
        self.ui.display_zones(self.zone_engine.all_zones())

    def handle_classify(self, line_items: List[LineItem]) -> VehicleType:
        vehicle_type = self.classifier.classify(line_items)
        self.ui.display_vehicle_type(vehicle_type)
        return vehicle_type

    async def handle_health(self) -> Dict[str, bool]:
        """Handles the 'health' command: probes every configured service."""
        status = await check_available_services(self.health_targets)
        self.ui.display_health(status)
        return status
