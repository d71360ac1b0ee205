"""Core service for pricing a delivery.

Cascades through the remote quote function, the remote zone lookup, local
zone rating over a remotely computed distance, and finally a static base
fee. Always returns a populated DeliveryFeeResult.
"""

import logging
from typing import Iterable, List, Optional

from yardcli.core.vehicle_classifier import VehicleClassifier
from yardcli.core.zone_rating import ZoneRatingEngine
from yardcli.domain.interfaces.pricing_api import DeliveryService, QuoteService
from yardcli.domain.models.common import Dollars, VehicleType
from yardcli.domain.models.pricing import Address, DeliveryFeeResult, FeeBreakdown, LineItem
from yardcli.infrastructure.resilience.fallback_resolver import FallbackResolver, Tier

logger = logging.getLogger(__name__)

BASE_FEE = Dollars(10.0) # static fee when nothing else answers

TIER_QUOTE = "quote-calculation"
TIER_ZONE_LOOKUP = "zone-lookup"
TIER_LOCAL_ZONES = "local-zones"


class DeliveryFeeService:
    """Computes delivery fees with graceful degradation."""

    def __init__(
        self,
        store_address: Address,
        quote_service: Optional[QuoteService] = None,
        delivery_service: Optional[DeliveryService] = None,
        zone_engine: Optional[ZoneRatingEngine] = None,
        classifier: Optional[VehicleClassifier] = None,
        resolver: Optional[FallbackResolver] = None,
        base_fee: float = BASE_FEE,
    ):
        """Initializes the DeliveryFeeService.

        Args:
            store_address: Origin of every delivery (the yard).
            quote_service: Remote quote function; its tier is skipped when None.
            delivery_service: Remote zone lookup and distance; both tiers that need
                it are skipped when None.
            zone_engine: Local zone rating. Defaults to the standard zone table.
            classifier: Picks the vehicle from line items.
            resolver: Fallback resolver; one is created if not injected.
            base_fee: Fee returned when every tier fails.
        """
        self.store_address = store_address
        self.quote_service = quote_service
        self.delivery_service = delivery_service
        self.zone_engine = zone_engine or ZoneRatingEngine()
        self.classifier = classifier or VehicleClassifier()
        self.resolver = resolver or FallbackResolver("delivery-fee")
        self.base_fee = Dollars(base_fee)
        logger.info(
            f"DeliveryFeeService initialized (quote={'on' if quote_service else 'off'}, "
            f"zone-lookup={'on' if delivery_service else 'off'})"
        )

    async def calculate_delivery_fee(
        self,
        address: Address,
        line_items: Optional[Iterable[LineItem]] = None,
        vehicle_type: Optional[VehicleType] = None,
    ) -> DeliveryFeeResult:
        """Prices delivery to an address.

        Args:
            address: Delivery destination.
            line_items: Order contents, used to choose the vehicle when
                vehicle_type is not given.
            vehicle_type: Explicit vehicle, overrides classification.

        Returns:
            The first tier's result, or the base fee when all tiers fail.
        """
        if vehicle_type is None:
            vehicle_type = self.classifier.classify(line_items or [])
        logger.debug(f"Pricing delivery to {address.one_line()} with {vehicle_type.value} vehicle")

        result = await self.resolver.resolve(self._tiers(address, vehicle_type), self.default_fee())
        logger.info(f"Delivery fee for {address.one_line()}: ${result.fee:.2f} (source: {result.source})")
        return result

    def default_fee(self) -> DeliveryFeeResult:
        return DeliveryFeeResult(
            fee=self.base_fee,
            breakdown=FeeBreakdown(base_fee=self.base_fee, distance_fee=Dollars(0), zone_fee=Dollars(0), total=self.base_fee),
            source="default",
        )

    def _tiers(self, address: Address, vehicle_type: VehicleType) -> List[Tier]:
        tiers: List[Tier] = []
        if self.quote_service is not None:
            tiers.append((TIER_QUOTE, lambda: self._from_quote(address)))
        if self.delivery_service is not None:
            tiers.append((TIER_ZONE_LOOKUP, lambda: self._from_zone_lookup(address, vehicle_type)))
            tiers.append((TIER_LOCAL_ZONES, lambda: self._from_local_zones(address, vehicle_type)))
        return tiers

    # --- Tiers ---

    async def _from_quote(self, address: Address) -> DeliveryFeeResult:
        # weight is not known at quote time
        quote = await self.quote_service.calculate_quote(self.store_address, address, weight=0)
        return DeliveryFeeResult(
            fee=Dollars(quote.price),
            breakdown=FeeBreakdown(
                base_fee=self.base_fee,
                distance_fee=Dollars(quote.price - self.base_fee),
                zone_fee=Dollars(0),
                total=Dollars(quote.price),
            ),
            zone=quote.zone,
            distance_miles=quote.distance_miles,
            source=TIER_QUOTE,
        )

    async def _from_zone_lookup(self, address: Address, vehicle_type: VehicleType) -> Optional[DeliveryFeeResult]:
        zone = await self.delivery_service.lookup_zone(address)
        if zone is None:
            return None
        fee = Dollars(zone.heavy_fee if vehicle_type is VehicleType.HEAVY else zone.standard_fee)
        return self._zone_result(fee, zone.zone, zone.distance_miles, None, vehicle_type, TIER_ZONE_LOOKUP)

    async def _from_local_zones(self, address: Address, vehicle_type: VehicleType) -> Optional[DeliveryFeeResult]:
        distance = await self.delivery_service.calculate_distance(self.store_address, address)
        if distance is None:
            return None
        rating = self.zone_engine.rate(distance.distance_miles)
        return self._zone_result(
            rating.fee_for(vehicle_type), rating.zone, distance.distance_miles,
            distance.duration_minutes, vehicle_type, TIER_LOCAL_ZONES,
        )

    @staticmethod
    def _zone_result(fee, zone, distance, duration, vehicle_type, source) -> DeliveryFeeResult:
        return DeliveryFeeResult(
            fee=fee,
            breakdown=FeeBreakdown(base_fee=fee, distance_fee=Dollars(0), zone_fee=Dollars(0), total=fee),
            zone=zone,
            distance_miles=distance,
            duration_minutes=duration,
            vehicle_type=vehicle_type,
            source=source,
        )
